"""Manage dotfile directories: symlink or copy them, install their packages, and record each run in a lockfile."""

__version__ = "0.1.0"