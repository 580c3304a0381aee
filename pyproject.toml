[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "stockledger"
version = "0.1.0"
description = "Small-business inventory, sales and profit tracking on top of SQLite"
requires-python = ">=3.10"
dependencies = []
keywords = ["inventory", "sales", "stock", "profit", "sqlite", "dashboard"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business",
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
stockledger = "stockledger.app:main"

[tool.hatch.build.targets.wheel]
packages = ["stockledger"]

[tool.pytest.ini_options]
addopts = "-ra"
