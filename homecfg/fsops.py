"""File-system operations for placing configuration directories."""

from __future__ import annotations

import os
import shutil
import stat


def _remove_all(path: str) -> None:
    """Remove ``path`` and anything under it; a missing path is fine."""
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
        return
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


def symlink(source: str, target: str) -> None:
    """Point ``target`` at ``source``, replacing whatever is at ``target``."""
    os.stat(source)
    try:
        os.stat(target)
    except FileNotFoundError:
        pass
    except OSError:
        return

    try:
        os.symlink(source, target)
    except FileExistsError:
        _remove_all(target)
        os.symlink(source, target)


def is_symlink(path: str) -> bool:
    """True when ``path`` is a symbolic link; a missing path is not one."""
    try:
        info = os.lstat(path)
    except FileNotFoundError:
        return False
    return stat.S_ISLNK(info.st_mode)


def copy_file(source: str, target: str) -> None:
    """Copy the contents of one file over another."""
    with open(source, "rb") as src, open(target, "wb") as dst:
        shutil.copyfileobj(src, dst)


def copy_dir(source: str, target: str) -> None:
    """Copy a directory tree into ``target``, creating it when needed."""
    source_info = os.stat(source)
    if is_symlink(target):
        os.remove(target)

    try:
        os.stat(target)
    except FileNotFoundError:
        os.makedirs(target, mode=stat.S_IMODE(source_info.st_mode))

    target_info = os.stat(target)
    if not stat.S_ISDIR(source_info.st_mode):
        raise NotADirectoryError("from is not a directory")
    if not stat.S_ISDIR(target_info.st_mode):
        raise NotADirectoryError("to is not a directory")

    with os.scandir(source) as scan:
        entries = sorted(scan, key=lambda e: e.name)

    for entry in entries:
        source_path = os.path.join(source, entry.name)
        target_path = os.path.join(target, entry.name)
        if entry.is_dir(follow_symlinks=False):
            copy_dir(source_path, target_path)
        else:
            copy_file(source_path, target_path)


def copy_cfg(source: str, target: str) -> None:
    """Copy a file or directory to ``target``."""
    if stat.S_ISDIR(os.stat(source).st_mode):
        copy_dir(source, target)
    else:
        copy_file(source, target)


def remove_cfg(path: str) -> None:
    """Remove a placed config, whatever it is."""
    _remove_all(path)


def rename_dir(source: str, target: str) -> None:
    """Rename a directory."""
    os.rename(source, target)