[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rnfc"
version = "0.1.0"
description = "Asynchronous NFC protocol layers: ISO 14443-A card selection and ISO-DEP block transport"
requires-python = ">=3.10"
dependencies = []
keywords = ["nfc", "iso14443", "iso-dep", "rfid", "smartcard", "asyncio"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Framework :: AsyncIO",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["rnfc"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
