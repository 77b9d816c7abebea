[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "korganizify"
version = "0.1.0"
description = "Weekly planner library with calendar events, to-do lists, smart scheduling and a calendar sync server"
requires-python = ">=3.10"
dependencies = []
keywords = ["calendar", "planner", "scheduling", "to-do", "sync"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Scheduling",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
korganizify-server = "korganizify.server:main"

[tool.hatch.build.targets.wheel]
packages = ["korganizify"]

[tool.pytest.ini_options]
addopts = "-ra"
