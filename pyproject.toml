[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cakedefense"
version = "0.1.0"
description = "A tile-based defence game: protect the cake from waves of pests."
requires-python = ">=3.10"
dependencies = [
    "pygame",
]
keywords = ["game", "tower-defense", "strategy", "pygame"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Real Time Strategy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
cakedefense = "cakedefense.app:main"

[tool.hatch.build.targets.wheel]
packages = ["cakedefense"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
