"""Command-line options and the settings derived from them."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass, field

DEFAULT_INDENT = "    "


class ConfigurationError(Exception):
    """Raised when command-line options contradict each other."""


def _flag(txt: str) -> bool:
    return field(default=False, metadata={"txt": txt})


@dataclass
class Configuration:
    """Settings for one run. Toggleable flags carry a ``txt`` label;
    excluded flags come after the others."""

    copy_mode: bool = _flag("copy mode")
    install: bool = _flag("install")
    only_install: bool = _flag("only install")
    uninstall: bool = _flag("uninstall")
    only_uninstall: bool = _flag("only uninstall")
    upgrade: bool = _flag("upgrade")

    debug: bool = _flag("exclude")
    tui: bool = _flag("exclude")

    pkgs_txt: str = ""
    source_dir: str = ""
    target_dir: str = ""

    pkgs: list[str] = field(default_factory=list)
    source_cfg_dir: str = ""
    lockfile_path: str = ""
    lockfile_diff_path: str = ""
    home_dir: str = ""
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("homecfg"))
    default_indent: str = DEFAULT_INDENT

    def display(self) -> None:
        """Log the parsed command-line values at debug level."""
        for name, value in (
            ("copy", self.copy_mode),
            ("dbg", self.debug),
            ("tui", self.tui),
            ("install", self.install),
            ("only-install", self.only_install),
            ("uninstall", self.uninstall),
            ("only-uninstall", self.only_uninstall),
            ("upgrade", self.upgrade),
            ("pkgs", self.pkgs_txt),
            ("sourcedir", self.source_dir),
            ("targetdir", self.target_dir),
        ):
            self.logger.debug("cli args %s=%s", name, value)

    def assert_correctness(self) -> None:
        """Raise ConfigurationError for mutually exclusive flags."""
        conflicts = (
            (self.only_install and self.only_uninstall,
             "cannot pass both --only-install and --only-uninstall"),
            (self.install and self.only_uninstall,
             "cannot pass both --install and --only-uninstall"),
            (self.only_install and self.uninstall,
             "cannot pass both --only-install and --uninstall"),
            (self.install and self.upgrade,
             "cannot pass both --install and --upgrade flags"),
            (self.only_install and self.upgrade,
             "cannot pass both --only-install and --upgrade flags"),
            (self.uninstall and self.upgrade,
             "cannot pass both --uninstall and --upgrade flags"),
            (self.only_uninstall and self.upgrade,
             "cannot pass both --only-uninstall and --upgrade flags"),
        )
        for conflict, message in conflicts:
            if conflict:
                raise ConfigurationError(message)


def _build_parser(home_dir: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="homecfg",
        description="Manage configuration files and the packages they need.",
        allow_abbrev=False,
    )

    def flag(name: str, help_text: str) -> None:
        parser.add_argument(f"-{name}", f"--{name}", action="store_true", help=help_text)

    flag("copy", "copies the config files instead of symlinking them")
    flag("dbg", "set logging level to debug")
    flag("tui", "run the configuration manager in a TUI")
    flag("manage", "install and uninstall packages using INSTALL and UNINSTALL "
                   "instructions (like passing --install and --uninstall)")
    flag("install", "install packages using INSTALL instructions found in config folders")
    flag("only-install", "don't copy configs over, only install the packages that would "
                         "be copied over based on their INSTALL instructions")
    flag("uninstall", "uninstall packages using INSTALL instructions found in config folders")
    flag("only-uninstall", "don't copy configs over, only uninstall the packages for "
                           "configs that would be removed")
    flag("upgrade", "upgrade already installed packages by rerunning the install instruction")
    parser.add_argument(
        "-pkgs", "--pkgs", default="",
        help="work only on these packages, comma separated, e.g. --pkgs fish,ghostty",
    )
    parser.add_argument(
        "-sourcedir", "--sourcedir", default=home_dir + "/.config/homecfg",
        help="source of configuration files, without the trailing /",
    )
    parser.add_argument(
        "-targetdir", "--targetdir", default=home_dir + "/.config",
        help="target for symlinks, without the trailing /",
    )
    return parser


def _make_logger(debug: bool) -> logging.Logger:
    logger = logging.getLogger("homecfg")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    return logger


def parse(argv: list[str] | None = None) -> Configuration:
    """Parse command-line arguments into a Configuration."""
    home_dir = os.environ.get("HOME", "")
    args = _build_parser(home_dir).parse_args(argv)

    install = args.install or args.manage
    uninstall = args.uninstall or args.manage
    pkgs = args.pkgs.split(",") if args.pkgs else []

    return Configuration(
        copy_mode=args.copy,
        install=install,
        only_install=args.only_install,
        uninstall=uninstall,
        only_uninstall=args.only_uninstall,
        upgrade=args.upgrade,
        debug=args.dbg,
        tui=args.tui,
        pkgs_txt=args.pkgs,
        source_dir=args.sourcedir,
        target_dir=args.targetdir,
        pkgs=pkgs,
        source_cfg_dir=args.sourcedir + "/config",
        lockfile_path=args.targetdir + "/hmlock.json",
        lockfile_diff_path=args.targetdir + "/hmlock_diff.json",
        home_dir=home_dir,
        logger=_make_logger(args.dbg),
        default_indent=DEFAULT_INDENT,
    )