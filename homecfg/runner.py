"""One non-interactive run: place configs, install packages, record the result."""

from __future__ import annotations

from homecfg import installer
from homecfg.configuration import Configuration
from homecfg.lockfile import (
    Lockfile,
    LockfileDiff,
    copy_install_info,
    create_lock_based_on_configs,
    did_global_dependencies_change,
    diff_locks,
    empty_lockfile,
    parse_global_dependencies,
    read_or_create_lockfile,
    were_global_dependencies_installed,
)
from homecfg.models import ParseError


def _read_previous_lock(config: Configuration) -> Lockfile:
    try:
        return read_or_create_lockfile(config.lockfile_path)
    except (OSError, ParseError) as exc:
        config.logger.info(
            "could not read an existing lockfile, starting from an empty one: %s", exc
        )
        return empty_lockfile()


def execute_plan(
    config: Configuration, lock_before: Lockfile, lock_after: Lockfile
) -> LockfileDiff:
    """Apply ``lock_after`` to the system and save it with its diff from ``lock_before``."""
    log = config.logger
    copy_install_info(lock_before, lock_after)

    deps_changed = did_global_dependencies_change(
        lock_before.global_dependencies, lock_after.global_dependencies
    )
    deps_installed = were_global_dependencies_installed(lock_after.global_dependencies)
    if config.install or config.only_install or config.upgrade:
        if deps_changed or not deps_installed or config.upgrade:
            installer.install_global_dependencies(lock_after.global_dependencies)
        else:
            log.info(
                "global dependencies didn't change since last installation, not installing "
                "(changed=%s, previously installed=%s)",
                deps_changed,
                deps_installed,
            )

    if not config.only_uninstall and not config.only_install:
        if config.copy_mode:
            installer.copy_configs(lock_after.configs)
        else:
            installer.symlink_configs(lock_after.configs)
        try:
            installer.remove_configs(lock_after.hidden_configs)
        except OSError as exc:
            log.error("could not remove a hidden config from the target: %s", exc)
    else:
        log.info(
            "skipping copying/symlinking the config, because --only-install "
            "or --only-uninstall was passed"
        )

    if (config.install or config.only_install or config.upgrade) and not config.only_uninstall:
        lock_after.update_install_info(installer.install(lock_after))

    if (config.uninstall or config.only_uninstall) and not config.only_install:
        lock_after.update_install_info(installer.uninstall(lock_after))

    try:
        lock_after.save(config.lockfile_path, config.default_indent)
    except OSError as exc:
        log.error("something went wrong while trying to save the lockfile: %s", exc)

    diff = diff_locks(lock_before, lock_after)
    try:
        diff.save(config.lockfile_diff_path, config.default_indent)
    except OSError as exc:
        log.error("something went wrong while trying to save the lockfile diff: %s", exc)

    return diff


def run_cli(config: Configuration) -> LockfileDiff:
    """Build a lockfile from the source directory and apply it."""
    lock_before = _read_previous_lock(config)
    lock_after = create_lock_based_on_configs(config)
    lock_after.global_dependencies = parse_global_dependencies(config.source_cfg_dir)
    return execute_plan(config, lock_before, lock_after)