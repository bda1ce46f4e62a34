"""Configs, install instructions and the files that describe them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from homecfg.instructions import InstallMethod, is_valid_installation_method

logger = logging.getLogger(__name__)

INSTALL_FILE = "INSTALL"
DEPENDENCIES_FILE = "DEPENDENCIES"


class ParseError(ValueError):
    """Raised when an instruction or a stored record cannot be understood."""


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ParseError(f"{what} must be an object, got {type(data).__name__}")
    return data


@dataclass
class InstallInfo:
    """What is known about the installation state of a package."""

    is_installed: bool = False
    install_time: str = ""
    install_instruction: str = ""
    dependencies_installed: bool = False
    was_uninstalled: bool = False
    uninstall_time: str = ""
    uninstall_instructions: list[str] | None = None

    def matches(self, other: InstallInfo) -> bool:
        """Field-wise equality; unset uninstall instructions never match."""
        instructions_match = (
            self.uninstall_instructions is not None
            and other.uninstall_instructions is not None
            and self.uninstall_instructions == other.uninstall_instructions
        )
        return (
            instructions_match
            and self.is_installed == other.is_installed
            and self.install_time == other.install_time
            and self.install_instruction == other.install_instruction
            and self.dependencies_installed == other.dependencies_installed
            and self.was_uninstalled == other.was_uninstalled
            and self.uninstall_time == other.uninstall_time
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "isInstalled": self.is_installed,
            "installTime": self.install_time,
            "installInstruction": self.install_instruction,
            "dependenciesInstalled": self.dependencies_installed,
            "wasUninstalled": self.was_uninstalled,
            "uninstallTime": self.uninstall_time,
            "uninstallInstructions": (
                None if self.uninstall_instructions is None else list(self.uninstall_instructions)
            ),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> InstallInfo:
        data = _mapping(data, "installInfo")
        instructions = data.get("uninstallInstructions")
        return cls(
            is_installed=bool(data.get("isInstalled", False)),
            install_time=data.get("installTime", "") or "",
            install_instruction=data.get("installInstruction", "") or "",
            dependencies_installed=bool(data.get("dependenciesInstalled", False)),
            was_uninstalled=bool(data.get("wasUninstalled", False)),
            uninstall_time=data.get("uninstallTime", "") or "",
            uninstall_instructions=None if instructions is None else list(instructions),
        )


@dataclass
class InstallInstruction:
    """A package and the method used to install it."""

    method: InstallMethod = InstallMethod.SYSTEM
    pkg: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"method": self.method.value, "pkg": self.pkg}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> InstallInstruction:
        data = _mapping(data, "installInstruction")
        method = data.get("method", "") or ""
        try:
            parsed = InstallMethod(method)
        except ValueError as exc:
            raise ParseError(f"unknown installation method: '{method}'") from exc
        return cls(method=parsed, pkg=data.get("pkg", "") or "")


@dataclass
class Requirements:
    """The install instruction and dependencies of one config."""

    name: str = ""
    install: InstallInstruction | None = None
    dependencies: list[InstallInstruction] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "installInstructions": None if self.install is None else self.install.to_dict(),
            "dependencies": [dep.to_dict() for dep in self.dependencies],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Requirements:
        data = _mapping(data, "requirements")
        install = data.get("installInstructions")
        return cls(
            name=data.get("name", "") or "",
            install=None if install is None else InstallInstruction.from_dict(install),
            dependencies=[
                InstallInstruction.from_dict(dep) for dep in data.get("dependencies") or []
            ],
        )


@dataclass
class Config:
    """A configuration directory and where it is placed."""

    name: str
    source: str
    target: str
    requirements: Requirements = field(default_factory=Requirements)
    install_info: InstallInfo = field(default_factory=InstallInfo)

    def matches(self, other: Config) -> bool:
        """Configs are the same when their names are."""
        return self.name == other.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "from": self.source,
            "to": self.target,
            "requirements": self.requirements.to_dict(),
            "installInfo": self.install_info.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Config:
        data = _mapping(data, "config")
        return cls(
            name=data.get("name", "") or "",
            source=data.get("from", "") or "",
            target=data.get("to", "") or "",
            requirements=Requirements.from_dict(data.get("requirements")),
            install_info=InstallInfo.from_dict(data.get("installInfo")),
        )


@dataclass
class GlobalDependency:
    """A package installed regardless of which configs are active."""

    instruction: InstallInstruction | None = None
    install_info: InstallInfo = field(default_factory=InstallInfo)

    def matches(self, other: GlobalDependency) -> bool:
        """Same instruction and matching install info."""
        instruction_match = (
            self.instruction is not None
            and other.instruction is not None
            and self.instruction == other.instruction
        )
        return instruction_match and self.install_info.matches(other.install_info)

    def to_dict(self) -> dict[str, Any]:
        return {
            "installInstruction": None if self.instruction is None else self.instruction.to_dict(),
            "installInfo": self.install_info.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> GlobalDependency:
        data = _mapping(data, "globalDependency")
        instruction = data.get("installInstruction")
        return cls(
            instruction=None if instruction is None else InstallInstruction.from_dict(instruction),
            install_info=InstallInfo.from_dict(data.get("installInfo")),
        )


def contains_config(configs: Iterable[Config], config: Config) -> bool:
    """True when a config with the same name is among ``configs``."""
    return any(existing.matches(config) for existing in configs)


def contains_global_dep(deps: Iterable[GlobalDependency], dep: GlobalDependency) -> bool:
    """True when a matching global dependency is among ``deps``."""
    return any(existing.matches(dep) for existing in deps)


def parse_install_instruction(text: str) -> InstallInstruction | None:
    """Parse a ``method:pkg`` line; None when the line is commented out."""
    if text[:2] == "//":
        logger.debug("skipping install instructions, because they are commented out: %s", text)
        return None

    if text.count("\n") > 1:
        raise ParseError("multiple installation instructions are not supported")

    parts = text.split(":")
    method = parts[0]
    if not is_valid_installation_method(method):
        raise ParseError(
            f"must be an implemented, valid installation method, instead got: '{method}'"
        )
    if len(parts) < 2:
        raise ParseError(f"missing package in installation instruction: '{text}'")

    return InstallInstruction(method=InstallMethod(method), pkg=parts[1].strip("\n\t"))


def parse_install_instructions(path: str) -> InstallInstruction | None:
    """Read the INSTALL file of a config directory, if there is one."""
    try:
        with open(f"{path}/{INSTALL_FILE}", encoding="utf-8") as handle:
            text = handle.read()
    except FileNotFoundError:
        return None
    if text == "":
        return None
    return parse_install_instruction(text)


def deps_path(directory: str) -> str:
    """Path of the DEPENDENCIES file in ``directory``."""
    return f"{directory}/{DEPENDENCIES_FILE}"


def parse_dependencies(path: str) -> list[InstallInstruction]:
    """Read the DEPENDENCIES file of a directory; empty when it is missing."""
    try:
        with open(deps_path(path), encoding="utf-8") as handle:
            text = handle.read()
    except FileNotFoundError:
        return []

    result: list[InstallInstruction] = []
    for line in text.split("\n"):
        if line == "":
            continue
        instruction = parse_install_instruction(line)
        if instruction is not None:
            result.append(instruction)
    return result


def parse_requirements(path: str) -> Requirements:
    """Read the install instruction and dependencies of a config directory."""
    logger.debug("parsing requirements at %s", path)
    return Requirements(
        install=parse_install_instructions(path),
        dependencies=parse_dependencies(path),
    )