"""Running install and uninstall commands and placing configs on disk."""

from __future__ import annotations

import logging
import os
import subprocess
from datetime import datetime, timezone
from typing import Any, Iterable

from homecfg import fsops
from homecfg.instructions import InstructionError
from homecfg.models import Config, GlobalDependency, InstallInfo, InstallInstruction

logger = logging.getLogger(__name__)

UNINSTALL_FILE = "UNINSTALL"
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_RECOVERABLE = (InstructionError, subprocess.CalledProcessError)


class CommandError(subprocess.CalledProcessError):
    """Raised when an install or uninstall command exits unsuccessfully."""


def now() -> str:
    """Current UTC time as ``YYYY-MM-DD HH:MM:SS``."""
    return datetime.now(timezone.utc).strftime(TIME_FORMAT)


def execute(cmd: str) -> None:
    """Run a space-separated command attached to this terminal.

    A command that cannot be started at all is logged and otherwise ignored;
    one that exits with a failure raises CommandError.
    """
    argv = cmd.split(" ")
    try:
        process = subprocess.Popen(argv)
    except OSError as exc:
        logger.warning("could not start command %r: %s", cmd, exc)
        return
    returncode = process.wait()
    if returncode != 0:
        raise CommandError(returncode, argv)
    logger.info("Successfully installed: cmd=%s", cmd)


def _require_method(inst: InstallInstruction, action: str) -> None:
    if inst.method.is_empty():
        raise ValueError(
            f"at this point we should always have valid {action} instructions, got: '{inst}'"
        )


def install_instruction(inst: InstallInstruction) -> str:
    """Install the package of ``inst`` and return the command that was run."""
    _require_method(inst, "installation")
    logger.info("going to install a pkg: method=%s pkg=%s", inst.method.value, inst.pkg)
    cmd = inst.method.create_install_cmd(inst.pkg)
    logger.info("got install cmd: %s", cmd)
    execute(cmd)
    return cmd


def uninstall_instruction(inst: InstallInstruction) -> str:
    """Uninstall the package of ``inst`` and return the command that was run."""
    _require_method(inst, "uninstall")
    logger.info("going to uninstall a pkg: method=%s pkg=%s", inst.method.value, inst.pkg)
    cmd = inst.method.create_uninstall_cmd(inst.pkg)
    logger.info("got uninstall cmd: %s", cmd)
    execute(cmd)
    return cmd


def install_dependencies(dependencies: Iterable[InstallInstruction]) -> None:
    """Install each dependency in turn, stopping at the first failure."""
    for dep in dependencies:
        install_instruction(dep)


def install_global_dependency(dep: GlobalDependency) -> InstallInfo:
    """Install one global dependency and describe the result."""
    if dep.instruction is None:
        raise ValueError("global dependency has no install instruction")
    cmd = install_instruction(dep.instruction)
    return InstallInfo(
        is_installed=True,
        install_time=now(),
        install_instruction=cmd,
        dependencies_installed=True,
        was_uninstalled=False,
        uninstall_time="",
        uninstall_instructions=[],
    )


def _uninstall_script_path(source: str) -> str:
    head, sep, name = source.rpartition("/")
    return f"{head}{sep}.{name}/{UNINSTALL_FILE}"


def run_uninstall_script(cfg: Config, info: InstallInfo) -> bool:
    """Run the config's hidden UNINSTALL script, if present, and record it in ``info``.

    Returns True when the script ran successfully.
    """
    path = _uninstall_script_path(cfg.source)
    logger.debug("checking if UNINSTALL exists at %s", path)
    if not os.path.isfile(path):
        logger.debug("UNINSTALL not found at %s", path)
        return False

    logger.info("running the UNINSTALL script at %s", path)
    try:
        subprocess.run(["bash", path], check=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        logger.debug("UNINSTALL script failed: %s", exc)
        return False

    info.is_installed = False
    info.dependencies_installed = False
    info.install_instruction = ""
    info.install_time = ""
    info.uninstall_instructions = [*(info.uninstall_instructions or []), "bash " + path]
    info.was_uninstalled = True
    info.uninstall_time = now()
    return True


def uninstall_for_cfg(cfg: Config) -> InstallInfo | None:
    """Uninstall what a config installed; None when it was already uninstalled."""
    if cfg.install_info.was_uninstalled:
        logger.debug("skipping already uninstalled packages for config %s", cfg.name)
        return None

    info = InstallInfo()
    run_uninstall_script(cfg, info)

    if cfg.requirements.install is None:
        return info
    logger.info("uninstalling using inferred instructions for config %s", cfg.name)

    try:
        cmd = uninstall_instruction(cfg.requirements.install)
    except _RECOVERABLE as exc:
        logger.debug("uninstalling %s failed, trying to continue: %s", cfg.name, exc)
        return info

    info.uninstall_time = now()
    info.uninstall_instructions = [*(info.uninstall_instructions or []), cmd]
    info.was_uninstalled = True
    info.install_time = ""
    info.install_instruction = ""
    info.is_installed = False
    return info


def symlink_configs(configs: Iterable[Config]) -> None:
    """Symlink every config into place."""
    for cfg in configs:
        logger.info("symlinking %s to %s", cfg.source, cfg.target)
        fsops.symlink(cfg.source, cfg.target)


def copy_configs(configs: Iterable[Config]) -> None:
    """Copy every config into place."""
    for cfg in configs:
        logger.info("copying %s to %s", cfg.source, cfg.target)
        fsops.copy_cfg(cfg.source, cfg.target)


def remove_configs(configs: Iterable[Config]) -> None:
    """Remove every config from its target."""
    for cfg in configs:
        logger.info("removing config from target %s", cfg.target)
        fsops.remove_cfg(cfg.target)


def install(lock: Any) -> dict[str, InstallInfo]:
    """Install the packages of the active configs not yet installed.

    Returns the new install info keyed by config name.
    """
    for_update: dict[str, InstallInfo] = {}
    for cfg in lock.configs:
        if cfg.install_info.is_installed:
            logger.debug("skipping already installed packages for config %s", cfg.name)
            continue

        info = InstallInfo()
        try:
            install_dependencies(cfg.requirements.dependencies)
        except _RECOVERABLE as exc:
            logger.debug("installing dependencies of %s failed, continuing: %s", cfg.name, exc)
            continue
        info.dependencies_installed = True

        if cfg.requirements.install is None:
            logger.debug("there is no INSTALL file for config %s", cfg.name)
            continue

        logger.info("trying to install %s", cfg.name)
        try:
            cmd = install_instruction(cfg.requirements.install)
        except _RECOVERABLE as exc:
            logger.debug("installing %s failed, trying to continue: %s", cfg.name, exc)
            continue

        info.install_time = now()
        info.install_instruction = cmd
        info.is_installed = True
        info.was_uninstalled = False
        info.uninstall_time = ""
        info.uninstall_instructions = []
        for_update[cfg.name] = info
    return for_update


def uninstall(lock: Any) -> dict[str, InstallInfo]:
    """Uninstall the packages of the hidden configs.

    Returns the new install info keyed by config name.
    """
    for_update: dict[str, InstallInfo] = {}
    for cfg in lock.hidden_configs:
        info = uninstall_for_cfg(cfg)
        if info is not None:
            for_update[cfg.name] = info
    return for_update


def install_global_dependencies(dependencies: list[GlobalDependency]) -> None:
    """Install the global dependencies not yet installed, updating them in place."""
    logger.info("installing global dependencies")
    for dep in dependencies:
        if dep.install_info.is_installed:
            pkg = dep.instruction.pkg if dep.instruction else ""
            logger.debug("skipping already installed global dependency %s", pkg)
            continue
        dep.install_info = install_global_dependency(dep)