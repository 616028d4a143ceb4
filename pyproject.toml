[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wickdb"
version = "0.1.0"
description = "Building blocks of an LSM-tree key-value store: atomic write batches and LRU caches"
requires-python = ">=3.10"
dependencies = []
keywords = ["database", "key-value", "lsm", "write-batch", "lru", "cache"]
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
    "Topic :: Database :: Database Engines/Servers",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wickdb"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
