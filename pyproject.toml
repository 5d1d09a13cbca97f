[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "picokern"
version = "0.1.0"
description = "A small teaching kernel's services as a Python library: initramfs archives, kernel transfer, page and pool allocators, timers, UART buffering, exceptions and mailbox messages"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "kernel",
    "cpio",
    "initramfs",
    "bootloader",
    "buddy-allocator",
    "memory-pool",
    "timer",
    "uart",
    "mailbox",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["picokern"]

[tool.hatch.build.targets.sdist]
include = ["picokern", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
