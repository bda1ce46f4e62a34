"""Installation methods and the shell commands they produce."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class InstructionError(Exception):
    """Raised when no command can be built for an installation method."""


class InstallMethod(str, Enum):
    """A way of installing a package."""

    SYSTEM = "system"
    APT = "apt"
    PACMAN = "pacman"
    DNF = "dnf"
    BREW = "brew"

    AUR = "aur"
    YAY = "yay"
    PARU = "paru"
    PACAUR = "pacaur"
    AURMAN = "aurman"

    CARGO = "cargo"
    CARGO_BINSTALL = "cargo-binstall"

    BASH = "bash"

    INVALID = ""

    def __str__(self) -> str:
        return self.value

    def is_empty(self) -> bool:
        """True when no method is set."""
        return self.value == ""

    def create_install_cmd(self, pkg: str) -> str:
        """Build the command that installs ``pkg`` with this method."""
        if self is InstallMethod.SYSTEM:
            return gen_system_install_cmd(_detected.system, pkg)
        if self is InstallMethod.AUR:
            return gen_aur_install_cmd(_detected.aur, pkg)
        if self is InstallMethod.BASH:
            # the package is a command given by the user
            return pkg
        if self in _INSTALL_TEMPLATES:
            return _render(_INSTALL_TEMPLATES, self, pkg)
        raise InstructionError(
            "this installation method is either not implemented, "
            f"or is invalid, method='{self.value}'"
        )

    def create_uninstall_cmd(self, pkg: str) -> str:
        """Build the command that uninstalls ``pkg`` with this method."""
        if self is InstallMethod.SYSTEM:
            return gen_system_uninstall_cmd(_detected.system, pkg)
        if self is InstallMethod.AUR:
            return gen_aur_uninstall_cmd(_detected.aur, pkg)
        if self in _UNINSTALL_TEMPLATES:
            return _render(_UNINSTALL_TEMPLATES, self, pkg)
        raise InstructionError(
            "this uninstallation method is either not implemented, "
            f"or is invalid, method='{self.value}'"
        )


_INSTALL_TEMPLATES: dict[InstallMethod, str] = {
    InstallMethod.APT: "sudo apt install -y {}",
    InstallMethod.PACMAN: "sudo pacman -S --noconfirm {}",
    InstallMethod.DNF: "dnf install {}",
    InstallMethod.BREW: "brew install {}",
    InstallMethod.YAY: "yay -S --sudoloop {}",
    InstallMethod.PARU: "paru -S --sudoloop {}",
    InstallMethod.PACAUR: "pacaur -S {}",
    InstallMethod.AURMAN: "aurman -S {}",
    InstallMethod.CARGO: "cargo install {}",
    InstallMethod.CARGO_BINSTALL: "cargo-binstall {}",
}

_UNINSTALL_TEMPLATES: dict[InstallMethod, str] = {
    InstallMethod.APT: "sudo apt remove -y {}",
    InstallMethod.PACMAN: "sudo pacman -R --noconfirm {}",
    InstallMethod.DNF: "dnf remove {}",
    InstallMethod.BREW: "brew uninstall {}",
    InstallMethod.YAY: "yay -R {}",
    InstallMethod.PARU: "paru -R {}",
    InstallMethod.PACAUR: "pacaur -R {}",
    InstallMethod.AURMAN: "aurman -R {}",
    InstallMethod.CARGO: "cargo uninstall {}",
    InstallMethod.CARGO_BINSTALL: "cargo uninstall {}",
}

_UNVERIFIED = frozenset({InstallMethod.PACAUR, InstallMethod.AURMAN})

_SYSTEM_MANAGERS = (
    InstallMethod.APT,
    InstallMethod.PACMAN,
    InstallMethod.DNF,
    InstallMethod.BREW,
)
_AUR_MANAGERS = (
    InstallMethod.PARU,
    InstallMethod.YAY,
    InstallMethod.PACAUR,
    InstallMethod.AURMAN,
)


def _render(templates: dict[InstallMethod, str], method: InstallMethod, pkg: str) -> str:
    if method in _UNVERIFIED:
        raise InstructionError(f"the command for '{method.value}' has not been verified")
    return templates[method].format(pkg)


@dataclass
class _Detected:
    system: InstallMethod = InstallMethod.INVALID
    aur: InstallMethod = InstallMethod.INVALID


_detected = _Detected()

_COULDNT_FIND_SYSTEM = "couldn't detect system package manager"
_NOT_SYSTEM = "passed in an installation method that is not a system one"
_COULDNT_FIND_AUR = "couldn't detect aur package manager"
_NOT_AUR = "passed in an installation method that is not an aur one"


def is_valid_installation_method(method: str) -> bool:
    """True when ``method`` names a known, non-empty installation method."""
    if method == "":
        return False
    return method in {m.value for m in InstallMethod}


def cmd_available(cmd: InstallMethod | str) -> bool:
    """True when the command can be found on the PATH."""
    name = str(cmd)
    found = shutil.which(name) is not None if name else False
    logger.debug("looked for cmd %s, found=%s", name, found)
    return found


def _first_available(candidates: tuple[InstallMethod, ...]) -> InstallMethod:
    return next((m for m in candidates if cmd_available(m)), InstallMethod.INVALID)


def find_system_pkg_manager() -> InstallMethod:
    """Detect and remember the system package manager."""
    logger.info("Looking for system package manager...")
    found = _first_available(_SYSTEM_MANAGERS)
    logger.info("Result of search for the system package manager: found=%s", found.value)
    _detected.system = found
    return found


def find_aur_pkg_manager() -> InstallMethod:
    """Detect and remember the AUR package manager."""
    logger.info("Looking for aur package manager...")
    found = _first_available(_AUR_MANAGERS)
    logger.info("Result of search for the aur package manager: found=%s", found.value)
    _detected.aur = found
    return found


def init() -> None:
    """Detect the package managers available on this machine."""
    find_system_pkg_manager()
    find_aur_pkg_manager()


def gen_system_install_cmd(manager: InstallMethod | str, pkg: str) -> str:
    """Install command for ``pkg`` using a system package manager."""
    if manager == InstallMethod.INVALID:
        raise InstructionError(_COULDNT_FIND_SYSTEM)
    if manager not in _SYSTEM_MANAGERS:
        raise InstructionError(_NOT_SYSTEM)
    return _render(_INSTALL_TEMPLATES, InstallMethod(manager), pkg)


def gen_system_uninstall_cmd(manager: InstallMethod | str, pkg: str) -> str:
    """Uninstall command for ``pkg``; empty when the manager is unusable."""
    if manager not in _SYSTEM_MANAGERS:
        logger.debug("no system uninstall command for manager '%s'", str(manager))
        return ""
    return _render(_UNINSTALL_TEMPLATES, InstallMethod(manager), pkg)


def gen_aur_install_cmd(manager: InstallMethod | str, pkg: str) -> str:
    """Install command for ``pkg`` using an AUR helper."""
    if manager == InstallMethod.INVALID:
        raise InstructionError(_COULDNT_FIND_AUR)
    if manager not in _AUR_MANAGERS:
        raise InstructionError(_NOT_AUR)
    return _render(_INSTALL_TEMPLATES, InstallMethod(manager), pkg)


def gen_aur_uninstall_cmd(manager: InstallMethod | str, pkg: str) -> str:
    """Uninstall command for ``pkg`` using an AUR helper."""
    if manager == InstallMethod.INVALID:
        raise InstructionError(_COULDNT_FIND_AUR)
    if manager not in _AUR_MANAGERS:
        raise InstructionError(_NOT_AUR)
    return _render(_UNINSTALL_TEMPLATES, InstallMethod(manager), pkg)