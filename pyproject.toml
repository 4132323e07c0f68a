[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "belindexer"
version = "0.1.0"
description = "Building blocks for an inscription indexer on a Bellscoin-style chain: typed tables in SQLite, script and envelope parsing, and output offset tracking."
requires-python = ">=3.10"
dependencies = []
keywords = ["inscriptions", "indexer", "key-value", "script", "envelope", "blockchain"]
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
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["belindexer"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
