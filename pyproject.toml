[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wavecommon"
version = "0.1.0"
description = "Shared building blocks for microservices: application errors, retries, tokens, configuration, logging, database helpers, messaging and service discovery."
requires-python = ">=3.10"
keywords = ["microservices", "errors", "retry", "jwt", "consul", "rabbitmq", "redis", "configuration"]
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
dependencies = [
    "pyjwt",
    "python-dotenv",
    "pika",
    "redis",
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["wavecommon"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
