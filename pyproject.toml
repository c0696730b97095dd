[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "feedlink"
version = "0.1.0"
description = "Client for a feed-based IoT data service: feeds, groups, time service and CSV data records over caller-supplied MQTT and HTTP transports"
requires-python = ">=3.10"
dependencies = []
keywords = ["iot", "mqtt", "feeds", "telemetry", "csv", "client"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet",
    "Topic :: Home Automation",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["feedlink"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
