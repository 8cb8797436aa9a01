[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "skogul"
version = "0.1.0"
description = "Parsers that turn raw metric payloads (JSON, InfluxDB line protocol, M&R, RFC 5424 structured data, Prometheus text) into metric containers"
requires-python = ">=3.10"
dependencies = []
keywords = ["metrics", "telemetry", "influxdb", "prometheus", "syslog", "parser", "monitoring"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["skogul"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
