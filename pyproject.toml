[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sroperator"
version = "0.1.0"
description = "Building blocks of a special-resource operator: state manifests, kernel affinity, readiness polling, event filtering and metrics"
requires-python = ">=3.10"
dependencies = []
keywords = ["kubernetes", "operator", "driver-container", "kernel-module", "readiness"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["sroperator"]

[tool.pytest.ini_options]
addopts = "-ra"
