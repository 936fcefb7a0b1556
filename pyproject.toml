[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "demoscope"
version = "0.1.0"
description = "Building blocks for reading Counter-Strike demo files: headers, byte reading, snappy blocks, packet splitting and net-message helpers."
requires-python = ">=3.10"
dependencies = []
keywords = ["demo", "counter-strike", "cs2", "csgo", "snappy", "replay"]
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
    "Topic :: Games/Entertainment :: First Person Shooters",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["demoscope"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
