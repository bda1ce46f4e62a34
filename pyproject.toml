[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "homecfg"
version = "0.1.0"
description = "Dotfile manager that symlinks or copies configuration directories and installs the packages they need"
requires-python = ">=3.10"
dependencies = []
keywords = ["dotfiles", "configuration", "symlink", "package-manager", "lockfile"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Environment :: Console :: Curses",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
homecfg = "homecfg.app:main"

[tool.hatch.build.targets.wheel]
packages = ["homecfg"]

[tool.pytest.ini_options]
addopts = "-ra"
