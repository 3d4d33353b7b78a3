[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "axiomchain"
version = "0.1.0"
description = "Deterministic object-based state, transaction pipeline and block execution for an experimental ledger protocol"
requires-python = ">=3.10"
dependencies = []
keywords = ["ledger", "state-machine", "transactions", "blocks", "deterministic", "blake3"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["axiomchain"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
