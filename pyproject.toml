[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "splicenet"
version = "0.1.0"
description = "Asyncio TCP server toolkit that can try several protocols on one port: raw text, framed messages and HTTP."
requires-python = ">=3.10"
dependencies = []
keywords = ["asyncio", "tcp", "server", "http", "multi-protocol", "handshake", "echo"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Operating System :: OS Independent",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[project.scripts]
splicenet-echo-server = "splicenet.echo_server:main"
splicenet-echo-client = "splicenet.echo_client:main"

[tool.hatch.build.targets.wheel]
packages = ["splicenet"]

[tool.pytest.ini_options]
addopts = "-ra"
