[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gemini"
version = "0.1.0"
description = "Schema model, value generation and differential checking for CQL database testing"
requires-python = ">=3.10"
dependencies = []
keywords = ["cql", "cassandra", "scylla", "testing", "fuzzing", "schema"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Testing",
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["gemini"]

[tool.pytest.ini_options]
addopts = "-ra"
