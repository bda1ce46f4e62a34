import json
import os

from homecfg.configuration import Configuration
from homecfg.instructions import InstallMethod
from homecfg.lockfile import Lockfile, create_lock_based_on_configs
from homecfg.models import Config, GlobalDependency, InstallInstruction
from homecfg.tui import (
    Choices,
    Screen,
    TuiModel,
    build_flag_items,
    execute_based_on_user_selection,
    flatten_global_deps,
    format_global_dep,
)


def _dep(method, pkg):
    return GlobalDependency(instruction=InstallInstruction(method=method, pkg=pkg))


def _model():
    lock = Lockfile(
        configs=[Config("fish", "/src/fish", "/dst/fish")],
        hidden_configs=[Config("zsh", "/src/.zsh", "/dst/zsh")],
        global_dependencies=[_dep(InstallMethod.PACMAN, "fish git")],
    )
    return TuiModel(lock, Configuration())


def test_format_global_dep():
    assert format_global_dep(_dep(InstallMethod.CARGO, "ripgrep")) == "cargo:ripgrep"


def test_flatten_splits_packages_but_not_bash():
    deps = [_dep(InstallMethod.PACMAN, "fish git"), _dep(InstallMethod.BASH, "echo hi there")]
    flat = flatten_global_deps(deps)
    assert [format_global_dep(d) for d in flat] == [
        "pacman:fish",
        "pacman:git",
        "bash:echo hi there",
    ]
    assert deps[0].instruction.pkg == "fish git"


def test_build_flag_items_for_configuration_skips_excluded():
    items = build_flag_items(Configuration(install=True))
    assert len(items) == 6
    assert items[0] == "[ ] copy mode"
    assert items[1] == "[*] install"
    assert all("exclude" not in item for item in items)


def test_build_flag_items_for_choices():
    items = build_flag_items(Choices(persist_config_selection=True))
    assert items == [
        "[*] Persist config selection",
        "[ ] Persist global dependencies selection",
    ]


def test_configs_screen_items_and_toggle():
    model = _model()
    model.next_screen()
    assert model.current_screen is Screen.CONFIGS
    assert model.current_items() == ["[*] fish", "[ ] zsh"]
    model.move(1)
    assert model.toggle_current() is True
    assert model.current_items() == ["[*] fish", "[*] zsh"]


def test_move_is_clamped():
    model = _model()
    model.current_screen = Screen.CONFIGS
    assert model.move(-5) == 0
    assert model.move(50) == len(model.current_items()) - 1


def test_cli_args_toggle_changes_configuration():
    model = _model()
    model.move(1)
    model.toggle_current()
    assert model.config.install is True
    assert model.current_items()[1] == "[*] install"


def test_next_screen_applies_config_selection():
    model = _model()
    model.current_screen = Screen.CONFIGS
    model.toggle_current()
    model.next_screen()
    assert [c.name for c in model.lockfile.configs] == []
    assert [c.name for c in model.lockfile.hidden_configs] == ["fish", "zsh"]
    assert model.current_screen is Screen.GLOBAL_DEPS


def test_next_screen_applies_global_deps_selection():
    model = _model()
    model.current_screen = Screen.GLOBAL_DEPS
    model.toggle_current()
    model.next_screen()
    assert [d.instruction.pkg for d in model.lockfile.global_dependencies] == ["git"]


def test_screen_bounds():
    model = _model()
    assert model.prev_screen() is Screen.CLI_ARGS
    for _ in range(5):
        model.next_screen()
    assert model.current_screen is Screen.USER_CHOICES
    assert model.is_last_screen()
    model.prev_screen()
    assert not model.is_last_screen()


def test_user_choices_toggle():
    model = _model()
    model.current_screen = Screen.USER_CHOICES
    model.move(1)
    model.toggle_current()
    assert model.user_choices.persist_global_deps_selection is True
    assert model.user_choices.persist_config_selection is False


def _setup(tmp_path):
    src = tmp_path / "src" / "config"
    (src / "a").mkdir(parents=True)
    (src / ".b").mkdir()
    target = tmp_path / "target"
    target.mkdir()
    config = Configuration(
        source_cfg_dir=str(src),
        target_dir=str(target),
        lockfile_path=str(target / "hmlock.json"),
        lockfile_diff_path=str(target / "hmlock_diff.json"),
    )
    return src, target, config


def test_execute_persists_config_selection(tmp_path):
    src, target, config = _setup(tmp_path)
    model = TuiModel(create_lock_based_on_configs(config), config)
    model.current_screen = Screen.CONFIGS
    assert model.current_items() == ["[*] a", "[ ] b"]
    model.toggle_current()
    model.move(1)
    model.toggle_current()
    model.next_screen()
    model.user_choices.persist_config_selection = True

    diff = execute_based_on_user_selection(model)

    assert (src / ".a").is_dir()
    assert (src / "b").is_dir()
    assert os.path.islink(target / "b")
    assert os.readlink(target / "b") == str(src / "b")
    with open(config.lockfile_path, encoding="utf-8") as handle:
        saved = json.load(handle)
    assert [c["name"] for c in saved["configs"]] == ["b"]
    assert [c.name for c in diff.added_configs] == ["b"]


def test_execute_persists_global_deps_selection(tmp_path):
    src, _, config = _setup(tmp_path)
    lock = create_lock_based_on_configs(config)
    lock.global_dependencies = [_dep(InstallMethod.PACMAN, "fish git")]
    model = TuiModel(lock, config)
    model.current_screen = Screen.GLOBAL_DEPS
    model.toggle_current()
    model.next_screen()
    model.user_choices.persist_global_deps_selection = True

    execute_based_on_user_selection(model)

    assert (src / "DEPENDENCIES").read_text(encoding="utf-8") == "pacman:git\n"