[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "femtolog"
version = "0.1.0"
description = "An asynchronous logging library with a background worker, byte ring-buffer queues and pluggable sinks"
requires-python = ">=3.10"
dependencies = []
keywords = ["logging", "asynchronous", "ring-buffer", "queue", "sink", "json-lines"]
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
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["femtolog"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
