[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "leenix"
version = "0.1.0"
description = "A simulated hobby-kernel toolkit: 32-bit paging entries, physical memory with a frame allocator, and a small command shell."
requires-python = ">=3.10"
dependencies = []
keywords = ["kernel", "paging", "page-table", "frame-allocator", "e820", "shell", "simulation"]
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
    "Topic :: System :: Operating System Kernels",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
leenix-shell = "leenix.shell:main"

[tool.hatch.build.targets.wheel]
packages = ["leenix"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
