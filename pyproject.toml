[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kernelsim"
version = "0.1.0"
description = "A model of a small x86 teaching kernel: page tables, locks, system call argument fetching, a user heap, a shell parser and wc"
requires-python = ">=3.10"
dependencies = []
keywords = ["kernel", "operating-system", "simulation", "paging", "shell", "education"]
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
test = ["pytest", "hypothesis"]

[project.scripts]
kernelsim-wc = "kernelsim.wc:main"

[tool.hatch.build.targets.wheel]
packages = ["kernelsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
