[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dbft"
version = "0.1.0"
description = "Building blocks for delegated Byzantine Fault Tolerance consensus: messages, payloads, blocks, Merkle trees, P-256 keys and a timer"
requires-python = ">=3.10"
keywords = ["dbft", "consensus", "byzantine-fault-tolerance", "blockchain", "merkle", "ecdsa"]
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
    "Topic :: System :: Distributed Computing",
]
dependencies = [
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["dbft"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
