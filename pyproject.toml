[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "waywire"
version = "0.1.0"
description = "Wayland wire protocol primitives: message encoding, object maps, buffered Unix sockets with fd passing"
requires-python = ">=3.10"
dependencies = []
keywords = ["wayland", "protocol", "wire", "unix-socket", "ipc", "scm-rights"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
waywire-registry-dump = "waywire.registry_dump:main"

[tool.hatch.build.targets.wheel]
packages = ["waywire"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
