import json

import pytest

from homecfg.instructions import InstallMethod
from homecfg.models import (
    Config,
    GlobalDependency,
    InstallInfo,
    InstallInstruction,
    ParseError,
    Requirements,
    contains_config,
    contains_global_dep,
    deps_path,
    parse_dependencies,
    parse_install_instruction,
    parse_install_instructions,
    parse_requirements,
)


def _installed_info(instruction="sudo pacman -S --noconfirm fish"):
    return InstallInfo(
        is_installed=True,
        install_time="2024-01-01 10:00:00",
        install_instruction=instruction,
        dependencies_installed=True,
        uninstall_instructions=[],
    )


def test_parse_install_instruction_basic():
    assert parse_install_instruction("pacman:fish\n") == InstallInstruction(
        InstallMethod.PACMAN, "fish"
    )


def test_parse_install_instruction_strips_tabs():
    result = parse_install_instruction("cargo:\tripgrep\n")
    assert result.method is InstallMethod.CARGO
    assert result.pkg == "ripgrep"


def test_parse_install_instruction_commented_out():
    assert parse_install_instruction("//apt:fish") is None


def test_parse_install_instruction_bash_keeps_spaces():
    result = parse_install_instruction("bash:echo hello world")
    assert result.method is InstallMethod.BASH
    assert result.pkg == "echo hello world"


def test_parse_install_instruction_invalid_method():
    with pytest.raises(ParseError):
        parse_install_instruction("snap:fish")


def test_parse_install_instruction_multiple_lines():
    with pytest.raises(ParseError):
        parse_install_instruction("apt:fish\napt:zsh\n")


def test_parse_install_instruction_missing_package():
    with pytest.raises(ParseError):
        parse_install_instruction("apt")


def test_parse_install_instructions_missing_file(tmp_path):
    assert parse_install_instructions(str(tmp_path)) is None


def test_parse_install_instructions_empty_file(tmp_path):
    (tmp_path / "INSTALL").write_text("")
    assert parse_install_instructions(str(tmp_path)) is None


def test_parse_install_instructions_reads_file(tmp_path):
    (tmp_path / "INSTALL").write_text("brew:ghostty\n")
    assert parse_install_instructions(str(tmp_path)) == InstallInstruction(
        InstallMethod.BREW, "ghostty"
    )


def test_deps_path():
    assert deps_path("/some/dir") == "/some/dir/DEPENDENCIES"


def test_parse_dependencies_missing_file(tmp_path):
    assert parse_dependencies(str(tmp_path)) == []


def test_parse_dependencies_skips_blank_and_commented(tmp_path):
    (tmp_path / "DEPENDENCIES").write_text("apt:fish\n\n//apt:zsh\nyay:ghostty\n")
    assert parse_dependencies(str(tmp_path)) == [
        InstallInstruction(InstallMethod.APT, "fish"),
        InstallInstruction(InstallMethod.YAY, "ghostty"),
    ]


def test_parse_dependencies_bad_line(tmp_path):
    (tmp_path / "DEPENDENCIES").write_text("nonsense:fish\n")
    with pytest.raises(ParseError):
        parse_dependencies(str(tmp_path))


def test_parse_requirements(tmp_path):
    (tmp_path / "INSTALL").write_text("pacman:fish\n")
    (tmp_path / "DEPENDENCIES").write_text("cargo:starship\n")
    reqs = parse_requirements(str(tmp_path))
    assert reqs == Requirements(
        name="",
        install=InstallInstruction(InstallMethod.PACMAN, "fish"),
        dependencies=[InstallInstruction(InstallMethod.CARGO, "starship")],
    )


def test_parse_requirements_empty_dir(tmp_path):
    reqs = parse_requirements(str(tmp_path))
    assert reqs.install is None
    assert reqs.dependencies == []


def test_config_to_dict_keys():
    cfg = Config("fish", "/some/dir", "/some/other/dir")
    data = cfg.to_dict()
    assert set(data) == {"name", "from", "to", "requirements", "installInfo"}
    assert data["from"] == "/some/dir"
    assert data["to"] == "/some/other/dir"


def test_config_round_trip_through_json():
    cfg = Config(
        "fish",
        "/some/dir",
        "/some/other/dir",
        Requirements(
            name="fish",
            install=InstallInstruction(InstallMethod.PACMAN, "fish"),
            dependencies=[InstallInstruction(InstallMethod.APT, "git")],
        ),
        _installed_info(),
    )
    restored = Config.from_dict(json.loads(json.dumps(cfg.to_dict())))
    assert restored == cfg


def test_install_info_default_round_trip_keeps_null_instructions():
    info = InstallInfo()
    data = info.to_dict()
    assert data["uninstallInstructions"] is None
    assert InstallInfo.from_dict(data) == info


def test_global_dependency_round_trip():
    dep = GlobalDependency(InstallInstruction(InstallMethod.SYSTEM, "fish"), _installed_info())
    assert GlobalDependency.from_dict(json.loads(json.dumps(dep.to_dict()))) == dep


def test_global_dependency_round_trip_without_instruction():
    dep = GlobalDependency()
    data = dep.to_dict()
    assert data["installInstruction"] is None
    assert GlobalDependency.from_dict(data) == dep


def test_install_instruction_from_dict_unknown_method():
    with pytest.raises(ParseError):
        InstallInstruction.from_dict({"method": "snap", "pkg": "fish"})


def test_from_dict_rejects_non_mapping():
    with pytest.raises(ParseError):
        Config.from_dict(["fish"])


def test_install_info_matches_requires_set_instructions():
    assert not InstallInfo().matches(InstallInfo())
    assert _installed_info().matches(_installed_info())
    assert not _installed_info("A").matches(_installed_info("B"))


def test_config_matches_by_name_only():
    a = Config("fish", "/a", "/b")
    b = Config("fish", "/c", "/d", install_info=_installed_info())
    c = Config("zsh", "/a", "/b")
    assert a.matches(b)
    assert not a.matches(c)


def test_global_dependency_matches():
    a = GlobalDependency(InstallInstruction(InstallMethod.SYSTEM, "fish"), _installed_info())
    b = GlobalDependency(InstallInstruction(InstallMethod.SYSTEM, "fish"), _installed_info())
    c = GlobalDependency(InstallInstruction(InstallMethod.APT, "fish"), _installed_info())
    assert a.matches(b)
    assert not a.matches(c)
    assert not GlobalDependency(None, _installed_info()).matches(a)


def test_contains_config():
    configs = [Config("fish", "/a", "/b"), Config("zsh", "/a", "/b")]
    assert contains_config(configs, Config("zsh", "/x", "/y"))
    assert not contains_config(configs, Config("ghostty", "/a", "/b"))
    assert not contains_config([], Config("fish", "/a", "/b"))


def test_contains_global_dep():
    dep = GlobalDependency(InstallInstruction(InstallMethod.SYSTEM, "fish"), _installed_info())
    other = GlobalDependency(InstallInstruction(InstallMethod.SYSTEM, "zsh"), _installed_info())
    assert contains_global_dep([dep], dep)
    assert not contains_global_dep([dep], other)