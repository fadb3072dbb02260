[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "findkit"
version = "0.1.0"
description = "File-matching predicates and an xargs-style command builder"
requires-python = ">=3.10"
dependencies = []
keywords = ["find", "xargs", "files", "matchers", "command-line"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
findkit-xargs = "findkit.xargs:main"

[tool.hatch.build.targets.wheel]
packages = ["findkit"]

[tool.pytest.ini_options]
addopts = "-ra"
