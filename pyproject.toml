[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "argus"
version = "0.1.0"
description = "AI agent runtime with tool execution, MCP server support, persistent memory and terminal and Telegram front ends"
requires-python = ">=3.10"
keywords = ["ai", "agent", "llm", "mcp", "tools", "telegram"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Environment :: Console :: Curses",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
    "Topic :: Communications :: Chat",
]
dependencies = [
    "httpx>=0.25",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
    "respx>=0.20",
]

[tool.hatch.build.targets.wheel]
packages = ["argus"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
