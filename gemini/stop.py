"""Hierarchical stop flags with soft and hard stop signals."""

from __future__ import annotations

import logging
import signal as os_signal
import threading
from enum import IntEnum
from typing import Callable, Optional


class Signal(IntEnum):
    NOOP = 0
    SOFT_STOP = 1
    HARD_STOP = 2


_STATE_NAMES = {
    Signal.SOFT_STOP: "soft",
    Signal.HARD_STOP: "hard",
    Signal.NOOP: "no-signal",
}


def get_state_name(state: int) -> str:
    """Return the human-readable name of a signal state."""
    try:
        return _STATE_NAMES[Signal(state)]
    except ValueError:
        raise ValueError(f"unexpected signal {state}") from None


class Flag:
    """A stop flag; a signal travels to all children and optionally to the parent.

    A flag takes the first signal it receives and ignores later ones.
    """

    def __init__(self, name: str, parent: Optional["Flag"] = None) -> None:
        self._name = name
        self._parent = parent
        self._logger: logging.Logger = logging.getLogger(__name__)
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._state = Signal.NOOP
        self._children: list[Flag] = []
        self._handlers: list[Callable[[Signal], None]] = []

    @property
    def name(self) -> str:
        return self._name

    def _send_signal(self, sig: Signal, send_to_parent: bool) -> bool:
        self._logger.debug("flag %s received signal %s", self._name, get_state_name(sig))
        self._event.set()
        with self._lock:
            if self._state != Signal.NOOP:
                return False
            self._state = Signal(sig)
            handlers = list(self._handlers)
            children = list(self._children)
        for handler in handlers:
            handler(self._state)
        for child in children:
            child._send_signal(sig, send_to_parent)
        if send_to_parent and self._parent is not None:
            self._parent._send_signal(sig, send_to_parent)
        return True

    def set_hard(self, send_to_parent: bool) -> bool:
        """Send a hard stop; return False if the flag was already stopped."""
        return self._send_signal(Signal.HARD_STOP, send_to_parent)

    def set_soft(self, send_to_parent: bool) -> bool:
        """Send a soft stop; return False if the flag was already stopped."""
        return self._send_signal(Signal.SOFT_STOP, send_to_parent)

    def create_child(self, name: str) -> "Flag":
        """Create a child flag, stopped already if this flag is stopped."""
        child = Flag(name, self)
        with self._lock:
            self._children.append(child)
            state = self._state
        if state != Signal.NOOP:
            child._send_signal(state, False)
        return child

    def signal_event(self) -> threading.Event:
        """Return an event that is set once any signal reaches this flag."""
        return self._event

    def is_soft(self) -> bool:
        return self._state == Signal.SOFT_STOP

    def is_hard(self) -> bool:
        return self._state == Signal.HARD_STOP

    def is_hard_or_soft(self) -> bool:
        return self._state != Signal.NOOP

    def add_handler(self, handler: Callable[[Signal], None]) -> None:
        """Register a handler; it runs at once if the flag is already stopped."""
        with self._lock:
            self._handlers.append(handler)
            state = self._state
        if state != Signal.NOOP:
            handler(state)

    def add_handler2(self, handler: Callable[[], None], expected_signal: int) -> None:
        """Register a handler run on ``expected_signal``, or on any signal for NOOP."""

        def on_signal(sig: Signal) -> None:
            if expected_signal == Signal.NOOP or sig == expected_signal:
                handler()

        self.add_handler(on_signal)

    def cancel_event_on_signal(self, expected_signal: int) -> threading.Event:
        """Return an event set when the expected signal (or any, for NOOP) arrives."""
        cancelled = threading.Event()
        self.add_handler2(cancelled.set, expected_signal)
        return cancelled

    def set_logger(self, logger: logging.Logger) -> None:
        self._logger = logger


def new_flag(name: str) -> Flag:
    """Create a root flag."""
    return Flag(name)


def start_os_signals_transmitter(logger: logging.Logger, *args: Flag) -> None:
    """Turn the first SIGINT into a soft stop and SIGTERM into a hard stop of the flags."""
    flags = args
    fired = threading.Event()

    def on_os_signal(signum: int, _frame: object) -> None:
        if fired.is_set():
            return
        fired.set()
        if signum == os_signal.SIGINT:
            for flag in flags:
                flag.set_soft(True)
            logger.info("Get SIGINT signal, begin soft stop.")
        else:
            for flag in flags:
                flag.set_hard(True)
            logger.info("Get SIGTERM signal, begin hard stop.")

    os_signal.signal(os_signal.SIGTERM, on_os_signal)
    os_signal.signal(os_signal.SIGINT, on_os_signal)