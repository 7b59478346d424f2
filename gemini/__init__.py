"""CQL types, schema model, statement builders, routing keys, stop flags and a differential store for CQL database testing."""

__version__ = "0.1.0"