[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "btclib"
version = "0.1.0"
description = "Core data types for a small proof-of-work blockchain: hashes, transactions, blocks, chain state and a CBOR wire protocol"
requires-python = ">=3.10"
dependencies = [
    "cbor2",
]
keywords = ["blockchain", "proof-of-work", "merkle", "utxo", "cbor", "mining"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
btc-mine-block = "btclib.cli:mine_block_main"
btc-block-print = "btclib.cli:block_print_main"
btc-tx-print = "btclib.cli:tx_print_main"

[tool.hatch.build.targets.wheel]
packages = ["btclib"]

[tool.hatch.build.targets.sdist]
include = ["btclib", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
