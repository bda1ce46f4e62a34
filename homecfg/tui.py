"""Interactive selection of flags, configs and global dependencies before a run."""

from __future__ import annotations

import copy
import curses
import logging
from dataclasses import dataclass, field, fields
from enum import IntEnum
from typing import Any, Iterable

from homecfg.configuration import Configuration
from homecfg.instructions import InstallMethod
from homecfg.lockfile import (
    Lockfile,
    LockfileDiff,
    create_lock_based_on_configs,
    empty_lockfile,
    parse_global_dependencies,
    read_or_create_lockfile,
)
from homecfg.models import Config, GlobalDependency, ParseError
from homecfg.runner import execute_plan

logger = logging.getLogger(__name__)

SELECTED = "[*] "
UNSELECTED = "[ ] "
EXCLUDED = "exclude"


class Screen(IntEnum):
    """The pages of the interactive selection, in order."""

    CLI_ARGS = 0
    CONFIGS = 1
    GLOBAL_DEPS = 2
    # whether to save the selections of the previous screens to disk
    USER_CHOICES = 3

    @classmethod
    def is_valid(cls, value: int) -> bool:
        return value in cls._value2member_map_


_TITLES = {
    Screen.CLI_ARGS: "Program flags",
    Screen.CONFIGS: "Configs - select the ones you want to copy/symlink.",
    Screen.GLOBAL_DEPS: "Packages (global dependencies) - select ones that should be installed.",
    Screen.USER_CHOICES: "Additional information",
}

_HELP_GENERAL = "Space: Toggle current option  Tab: Next page  Shift+Tab: Previous page"
_HELP_LAST = _HELP_GENERAL + "  Enter: Finish selection and run"


@dataclass
class Choices:
    """Whether to write the selections back to the source directory."""

    persist_config_selection: bool = field(
        default=False, metadata={"txt": "Persist config selection"}
    )
    persist_global_deps_selection: bool = field(
        default=False, metadata={"txt": "Persist global dependencies selection"}
    )


def _checkbox(selected: bool) -> str:
    return SELECTED if selected else UNSELECTED


def _flag_fields(value: Any) -> list[Any]:
    return [
        f
        for f in fields(value)
        if isinstance(getattr(value, f.name), bool) and f.metadata.get("txt", "") != EXCLUDED
    ]


def build_flag_items(value: Any) -> list[str]:
    """Checkbox lines for the labelled boolean fields of a dataclass instance."""
    return [
        _checkbox(getattr(value, f.name)) + f.metadata.get("txt", "")
        for f in _flag_fields(value)
    ]


def format_global_dep(dep: GlobalDependency) -> str:
    """``method:pkg`` label of a global dependency."""
    if dep.instruction is None:
        raise ValueError("global dependency has no install instruction")
    return f"{dep.instruction.method.value}:{dep.instruction.pkg}"


def flatten_global_deps(deps: Iterable[GlobalDependency]) -> list[GlobalDependency]:
    """One dependency per package; bash commands are kept whole."""
    flat: list[GlobalDependency] = []
    for dep in deps:
        if dep.instruction is None:
            continue
        if dep.instruction.method is InstallMethod.BASH:
            flat.append(dep)
            continue
        for pkg in dep.instruction.pkg.split(" "):
            sub = copy.deepcopy(dep)
            sub.instruction.pkg = pkg
            flat.append(sub)
    return flat


class TuiModel:
    """Selection state of the interactive screens."""

    def __init__(self, lockfile: Lockfile, config: Configuration) -> None:
        self.lockfile = lockfile
        self.config = config
        self.configs: list[Config] = [*lockfile.configs, *lockfile.hidden_configs]
        self.config_selection: list[bool] = [True] * len(lockfile.configs) + [False] * len(
            lockfile.hidden_configs
        )
        self.flat_global_deps = flatten_global_deps(lockfile.global_dependencies)
        self.global_deps_selection: list[bool] = [True] * len(self.flat_global_deps)
        self.user_choices = Choices()
        self.current_screen = Screen.CLI_ARGS
        self._cursors = {screen: 0 for screen in Screen}

    @property
    def title(self) -> str:
        return _TITLES[self.current_screen]

    @property
    def help_text(self) -> str:
        return _HELP_LAST if self.is_last_screen() else _HELP_GENERAL

    @property
    def cursor(self) -> int:
        return self._cursors[self.current_screen]

    def current_items(self) -> list[str]:
        """The lines of the current screen's list."""
        screen = self.current_screen
        if screen is Screen.CLI_ARGS:
            return build_flag_items(self.config)
        if screen is Screen.CONFIGS:
            return [
                _checkbox(selected) + cfg.name
                for cfg, selected in zip(self.configs, self.config_selection)
            ]
        if screen is Screen.GLOBAL_DEPS:
            return [
                _checkbox(selected) + format_global_dep(dep)
                for dep, selected in zip(self.flat_global_deps, self.global_deps_selection)
            ]
        return build_flag_items(self.user_choices)

    def move(self, delta: int) -> int:
        """Move the cursor by ``delta``, staying inside the list."""
        count = len(self.current_items())
        position = 0 if count == 0 else min(max(self.cursor + delta, 0), count - 1)
        self._cursors[self.current_screen] = position
        return position

    def toggle_current(self) -> bool | None:
        """Flip the item under the cursor; returns its new state."""
        if not self.current_items():
            return None
        index = self.cursor
        screen = self.current_screen
        if screen is Screen.CONFIGS:
            self.config_selection[index] = not self.config_selection[index]
            return self.config_selection[index]
        if screen is Screen.GLOBAL_DEPS:
            self.global_deps_selection[index] = not self.global_deps_selection[index]
            return self.global_deps_selection[index]
        target = self.config if screen is Screen.CLI_ARGS else self.user_choices
        name = _flag_fields(target)[index].name
        new_value = not getattr(target, name)
        setattr(target, name, new_value)
        return new_value

    def next_screen(self) -> Screen:
        """Store the current screen's selection in the lockfile and move on."""
        if self.current_screen is Screen.CONFIGS:
            self.lockfile.configs = [
                cfg for cfg, sel in zip(self.configs, self.config_selection) if sel
            ]
            self.lockfile.hidden_configs = [
                cfg for cfg, sel in zip(self.configs, self.config_selection) if not sel
            ]
        elif self.current_screen is Screen.GLOBAL_DEPS:
            self.lockfile.global_dependencies = [
                dep
                for dep, sel in zip(self.flat_global_deps, self.global_deps_selection)
                if sel
            ]

        if Screen.is_valid(self.current_screen + 1):
            self.current_screen = Screen(self.current_screen + 1)
        return self.current_screen

    def prev_screen(self) -> Screen:
        """Go back one screen, stopping at the first."""
        previous = self.current_screen - 1
        self.current_screen = Screen(previous) if Screen.is_valid(previous) else Screen(0)
        return self.current_screen

    def is_last_screen(self) -> bool:
        return not Screen.is_valid(self.current_screen + 1)


def _addstr(window: Any, row: int, text: str, attr: int = 0) -> None:
    height, width = window.getmaxyx()
    if row >= height or width <= 1:
        return
    try:
        window.addstr(row, 0, text[: width - 1], attr)
    except curses.error:
        pass


def _draw(window: Any, model: TuiModel, accent: int) -> None:
    window.erase()
    height, _ = window.getmaxyx()
    _addstr(window, 0, model.title, curses.A_BOLD)

    list_height = max(1, height - 4)
    items = model.current_items()
    start = (model.cursor // list_height) * list_height
    for row, (index, text) in enumerate(
        enumerate(items[start : start + list_height], start=start), start=2
    ):
        if index == model.cursor:
            _addstr(window, row, "-> " + text, accent)
        else:
            _addstr(window, row, "   " + text)

    if len(items) > list_height:
        pages = (len(items) + list_height - 1) // list_height
        _addstr(window, height - 2, f"{start // list_height + 1}/{pages}")
    _addstr(window, height - 1, model.help_text, curses.A_DIM)
    window.refresh()


def _handle_key(model: TuiModel, key: Any) -> bool:
    """Apply a key press; True when the selection is finished."""
    if key in ("q", "\x03"):
        raise KeyboardInterrupt
    if key == " ":
        model.toggle_current()
    elif key in ("\n", "\r", curses.KEY_ENTER):
        return model.is_last_screen()
    elif key == "\t":
        model.next_screen()
    elif key == curses.KEY_BTAB:
        model.prev_screen()
    elif key in (curses.KEY_UP, "k"):
        model.move(-1)
    elif key in (curses.KEY_DOWN, "j"):
        model.move(1)
    elif key == curses.KEY_PPAGE:
        model.move(-10)
    elif key == curses.KEY_NPAGE:
        model.move(10)
    return False


def _interact(window: Any, model: TuiModel) -> None:
    try:
        curses.curs_set(0)
    except curses.error:
        pass
    accent = curses.A_BOLD
    if curses.has_colors():
        curses.start_color()
        try:
            curses.use_default_colors()
            background = -1
        except curses.error:
            background = curses.COLOR_BLACK
        curses.init_pair(1, curses.COLOR_GREEN, background)
        accent |= curses.color_pair(1)

    while True:
        _draw(window, model, accent)
        if _handle_key(model, window.get_wch()):
            return


def _read_previous_lock(config: Configuration) -> Lockfile:
    try:
        return read_or_create_lockfile(config.lockfile_path)
    except (OSError, ParseError) as exc:
        config.logger.info(
            "could not read an existing lockfile, starting from an empty one: %s", exc
        )
        return empty_lockfile()


def execute_based_on_user_selection(model: TuiModel) -> LockfileDiff:
    """Persist the chosen selections if asked to, then apply the lockfile."""
    config = model.config
    lock_before = _read_previous_lock(config)
    lock_after = model.lockfile

    if model.user_choices.persist_config_selection:
        lock_after.persist_config_selection()
    if model.user_choices.persist_global_deps_selection:
        lock_after.persist_global_deps_selection(config.source_cfg_dir)

    return execute_plan(config, lock_before, lock_after)


def run_tui(config: Configuration) -> LockfileDiff:
    """Let the user choose what to apply, then apply it.

    Quitting the selection raises KeyboardInterrupt.
    """
    lock_after = create_lock_based_on_configs(config)
    lock_after.global_dependencies = parse_global_dependencies(config.source_cfg_dir)

    model = TuiModel(lock_after, config)
    curses.wrapper(_interact, model)
    return execute_based_on_user_selection(model)