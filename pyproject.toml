[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "slackmcp"
version = "1.1.15"
description = "Model Context Protocol server exposing Slack channels, history and threads as tools"
requires-python = ">=3.10"
dependencies = [
    "httpx",
]
keywords = ["slack", "mcp", "model-context-protocol", "chat", "sse"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
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

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
slack-mcp-server = "slackmcp.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["slackmcp"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
