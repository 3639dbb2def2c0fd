[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rulematrix"
version = "0.1.0"
description = "Building blocks for a rule-chain engine: chain definitions, registries, resource loaders, a worker pool and node-to-node message routing."
requires-python = ">=3.10"
dependencies = []
keywords = ["rule engine", "rule chain", "workflow", "dag", "message routing"]
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
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rulematrix"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
