[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cqplugins"
version = "0.1.0"
description = "Group-chat bot building blocks: timed reminders, group management helpers, MIDI melodies, and small lookup and image utilities"
requires-python = ">=3.10"
keywords = ["chat", "bot", "group", "reminder", "cron", "midi", "qq"]
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
    "Topic :: Communications :: Chat",
]
dependencies = [
    "requests",
    "mido",
    "pillow",
    "lxml",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["cqplugins"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
