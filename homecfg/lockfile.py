"""The lockfile that records placed configs, and diffs between two of them."""

from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping

from homecfg import fsops
from homecfg.configuration import Configuration
from homecfg.instructions import InstallMethod
from homecfg.models import (
    Config,
    GlobalDependency,
    InstallInfo,
    ParseError,
    contains_config,
    contains_global_dep,
    deps_path,
    parse_dependencies,
    parse_requirements,
)

logger = logging.getLogger(__name__)

LOCKFILE_VERSION = "0.1.0"


class Mode(str, Enum):
    """How configs are placed in the target directory."""

    COPY = "copy"
    SYMLINK = "symlink"

    def __str__(self) -> str:
        return self.value


def _mode_value(mode: Mode | str) -> str:
    return mode.value if isinstance(mode, Mode) else mode


def _parse_mode(value: Any) -> Mode | str:
    text = value or ""
    try:
        return Mode(text)
    except ValueError:
        return text


def _write_json(path: str, data: Any, indent: str) -> None:
    if indent:
        text = json.dumps(data, indent=indent, ensure_ascii=False)
    else:
        text = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    with open(path, "w", encoding="utf-8") as handle:
        handle.write(text)


@dataclass
class Lockfile:
    """The state of every config and global dependency after a run."""

    version: str = ""
    mode: Mode | str = ""
    global_dependencies: list[GlobalDependency] = field(default_factory=list)
    configs: list[Config] = field(default_factory=list)
    hidden_configs: list[Config] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "mode": _mode_value(self.mode),
            "globalDependencies": [dep.to_dict() for dep in self.global_dependencies],
            "configs": [cfg.to_dict() for cfg in self.configs],
            "hiddenConfigs": [cfg.to_dict() for cfg in self.hidden_configs],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Lockfile:
        if not isinstance(data, Mapping):
            raise ParseError(f"lockfile must be an object, got {type(data).__name__}")
        return cls(
            version=data.get("version", "") or "",
            mode=_parse_mode(data.get("mode")),
            global_dependencies=[
                GlobalDependency.from_dict(dep) for dep in data.get("globalDependencies") or []
            ],
            configs=[Config.from_dict(cfg) for cfg in data.get("configs") or []],
            hidden_configs=[Config.from_dict(cfg) for cfg in data.get("hiddenConfigs") or []],
        )

    def save(self, path: str, indent: str) -> None:
        """Write the lockfile as JSON; an empty indent writes it compactly."""
        _write_json(path, self.to_dict(), indent)

    def add_config(self, config: Config) -> None:
        self.configs.append(config)

    def append_skipped_config(self, config: Config) -> None:
        self.hidden_configs.append(config)

    def update_install_info(self, info: Mapping[str, InstallInfo]) -> None:
        """Replace the install info of every config named in ``info``."""
        for cfg in (*self.configs, *self.hidden_configs):
            if cfg.name in info:
                cfg.install_info = info[cfg.name]

    def persist_config_selection(self) -> None:
        """Rename config directories so their hidden state matches the selection."""
        for cfg in self.configs:
            if cfg_is_hidden_based_on_from(cfg.source):
                updated = unhide_config_path(cfg.source)
                fsops.rename_dir(cfg.source, updated)
                cfg.source = updated

        for cfg in self.hidden_configs:
            if not cfg_is_hidden_based_on_from(cfg.source):
                updated = hide_config_path(cfg.source)
                fsops.rename_dir(cfg.source, updated)
                cfg.source = updated

    def persist_global_deps_selection(self, src_dir: str) -> None:
        """Rewrite the DEPENDENCIES file of ``src_dir`` from the global dependencies."""
        grouped: dict[str, list[GlobalDependency]] = {}
        for dep in self.global_dependencies:
            if dep.instruction is None:
                continue
            grouped.setdefault(dep.instruction.method.value, []).append(dep)

        with open(deps_path(src_dir), "w", encoding="utf-8") as handle:
            for method, deps in grouped.items():
                handle.write(serialize_global_deps(method, deps))


@dataclass
class LockfileDiff:
    """What changed between two lockfiles."""

    added_configs: list[Config] = field(default_factory=list)
    removed_configs: list[Config] = field(default_factory=list)
    previously_removed_configs: list[Config] = field(default_factory=list)
    added_global_deps: list[GlobalDependency] = field(default_factory=list)
    removed_global_deps: list[GlobalDependency] = field(default_factory=list)
    mode_changed: bool = False
    version_changed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "addedConfigs": [cfg.to_dict() for cfg in self.added_configs],
            "removedConfigs": [cfg.to_dict() for cfg in self.removed_configs],
            "previouslyRemovedConfigs": [
                cfg.to_dict() for cfg in self.previously_removed_configs
            ],
            "addedGlobalDeps": [dep.to_dict() for dep in self.added_global_deps],
            "removedGlobalDeps": [dep.to_dict() for dep in self.removed_global_deps],
            "modeChanged": self.mode_changed,
            "versionChanged": self.version_changed,
        }

    def save(self, path: str, indent: str) -> None:
        """Write the diff as JSON; an empty indent writes it compactly."""
        _write_json(path, self.to_dict(), indent)


def empty_lockfile() -> Lockfile:
    """A fresh lockfile with nothing in it."""
    return Lockfile(version=LOCKFILE_VERSION, mode=Mode.SYMLINK)


def parse_global_dependencies(path: str) -> list[GlobalDependency]:
    """Read the DEPENDENCIES file of ``path`` as global dependencies."""
    return [GlobalDependency(instruction=inst) for inst in parse_dependencies(path)]


def _pkg_names(deps: Iterable[GlobalDependency]) -> list[str]:
    return [dep.instruction.pkg if dep.instruction else "" for dep in deps]


def did_global_dependencies_change(
    deps_a: Iterable[GlobalDependency], deps_b: Iterable[GlobalDependency]
) -> bool:
    """True when the two lists do not name the same packages."""
    names_a = _pkg_names(deps_a)
    names_b = _pkg_names(deps_b)
    if len(names_a) != len(names_b):
        return True
    return any(name not in names_b for name in names_a)


def were_global_dependencies_installed(deps: Iterable[GlobalDependency]) -> bool:
    """True when any dependency was ever installed or uninstalled."""
    return any(dep.install_info.is_installed or dep.install_info.was_uninstalled for dep in deps)


def serialize_global_deps(method: InstallMethod | str, deps: Iterable[GlobalDependency]) -> str:
    """DEPENDENCIES file lines for dependencies that share one method."""
    method = str(method)
    pkgs = _pkg_names(deps)
    if method != InstallMethod.BASH.value:
        return f"{method}:{' '.join(pkgs)}\n"
    return "".join(f"bash:{pkg}\n" for pkg in pkgs)


def copy_install_info(source: Lockfile, target: Lockfile) -> None:
    """Carry the install info of same-named configs and packages into ``target``."""
    for cfg_from in (*source.configs, *source.hidden_configs):
        match = next(
            (
                cfg
                for cfg in (*target.configs, *target.hidden_configs)
                if cfg.name == cfg_from.name
            ),
            None,
        )
        if match is not None:
            match.install_info = copy.deepcopy(cfg_from.install_info)

    for dep_from in source.global_dependencies:
        if dep_from.instruction is None:
            continue
        for dep in target.global_dependencies:
            if dep.instruction is not None and dep.instruction.pkg == dep_from.instruction.pkg:
                dep.install_info = copy.deepcopy(dep_from.install_info)


def _split_last(path: str) -> tuple[str, str]:
    head, sep, name = path.rpartition("/")
    return head + sep, name


def cfg_is_hidden_based_on_from(path: str) -> bool:
    """True when the last path component starts with a dot."""
    return _split_last(path)[1].startswith(".")


def unhide_config_path(path: str) -> str:
    """Drop the leading dot of the last path component."""
    head, name = _split_last(path)
    if not name.startswith("."):
        raise ValueError("Passed config must be hidden")
    return head + name[1:]


def hide_config_path(path: str) -> str:
    """Add a leading dot to the last path component."""
    head, name = _split_last(path)
    if name.startswith("."):
        raise ValueError("Passed config must not be hidden")
    return head + "." + name


def create_lock_based_on_configs(config: Configuration) -> Lockfile:
    """Build a lockfile from the config directories in the source directory."""
    lockfile = empty_lockfile()
    with os.scandir(config.source_cfg_dir) as scan:
        entries = sorted(scan, key=lambda e: e.name)

    for entry in entries:
        if not entry.is_dir(follow_symlinks=False):
            continue
        name = entry.name
        if name == ".git":
            continue

        source = f"{config.source_cfg_dir}/{name}"
        requirements = parse_requirements(source)

        if name.startswith("."):
            logger.info("configs: skipping %s", name)
            visible = name[1:]
            lockfile.append_skipped_config(
                Config(visible, source, f"{config.target_dir}/{visible}", requirements)
            )
            continue

        lockfile.add_config(Config(name, source, f"{config.target_dir}/{name}", requirements))

    lockfile.mode = Mode.COPY if config.copy_mode else Mode.SYMLINK
    logger.debug("lockfile mode set to %s", _mode_value(lockfile.mode))
    return lockfile


def diff_locks(lock_before: Lockfile, lock_after: Lockfile) -> LockfileDiff:
    """Compare two lockfiles."""
    return LockfileDiff(
        added_configs=[
            cfg for cfg in lock_after.configs if not contains_config(lock_before.configs, cfg)
        ],
        removed_configs=[
            cfg for cfg in lock_before.configs if not contains_config(lock_after.configs, cfg)
        ],
        previously_removed_configs=[
            cfg
            for cfg in lock_before.hidden_configs
            if not contains_config(lock_after.hidden_configs, cfg)
        ],
        added_global_deps=[
            dep
            for dep in lock_after.global_dependencies
            if not contains_global_dep(lock_before.global_dependencies, dep)
        ],
        removed_global_deps=[
            dep
            for dep in lock_before.global_dependencies
            if not contains_global_dep(lock_after.global_dependencies, dep)
        ],
        mode_changed=_mode_value(lock_before.mode) != _mode_value(lock_after.mode),
        version_changed=lock_before.version != lock_after.version,
    )


def parse_lockfile(text: str | bytes) -> Lockfile:
    """Parse lockfile JSON."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"invalid lockfile: {exc}") from exc
    return Lockfile.from_dict(data)


def read_or_create_lockfile(path: str) -> Lockfile:
    """Read the lockfile at ``path``, writing an empty one when it is missing."""
    try:
        with open(path, encoding="utf-8") as handle:
            text = handle.read()
    except FileNotFoundError:
        lockfile = empty_lockfile()
        lockfile.save(path, "")
        return lockfile
    return parse_lockfile(text)