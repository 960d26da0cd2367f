[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "uwscore"
version = "0.1.0"
description = "Building blocks of an HTTP and WebSocket server: URL router, header parser, pub/sub topic tree and app wiring"
requires-python = ">=3.10"
keywords = ["http", "router", "websocket", "pubsub", "headers"]
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
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Typing :: Typed",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["uwscore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
