from unittest import mock

import pytest

from homecfg import instructions
from homecfg.instructions import InstallMethod, InstructionError


def _which_for(*available):
    def which(name):
        return f"/usr/bin/{name}" if name in available else None

    return which


@pytest.fixture(autouse=True)
def reset_detection():
    with mock.patch("shutil.which", _which_for()):
        instructions.init()
    yield
    with mock.patch("shutil.which", _which_for()):
        instructions.init()


@pytest.mark.parametrize(
    "method, expected",
    [
        (InstallMethod.APT, "sudo apt install -y fish"),
        (InstallMethod.PACMAN, "sudo pacman -S --noconfirm fish"),
        (InstallMethod.DNF, "dnf install fish"),
        (InstallMethod.BREW, "brew install fish"),
        (InstallMethod.YAY, "yay -S --sudoloop fish"),
        (InstallMethod.PARU, "paru -S --sudoloop fish"),
        (InstallMethod.CARGO, "cargo install fish"),
        (InstallMethod.CARGO_BINSTALL, "cargo-binstall fish"),
    ],
)
def test_install_commands(method, expected):
    assert method.create_install_cmd("fish") == expected


@pytest.mark.parametrize(
    "method, expected",
    [
        (InstallMethod.APT, "sudo apt remove -y fish"),
        (InstallMethod.PACMAN, "sudo pacman -R --noconfirm fish"),
        (InstallMethod.DNF, "dnf remove fish"),
        (InstallMethod.BREW, "brew uninstall fish"),
        (InstallMethod.YAY, "yay -R fish"),
        (InstallMethod.PARU, "paru -R fish"),
        (InstallMethod.CARGO, "cargo uninstall fish"),
        (InstallMethod.CARGO_BINSTALL, "cargo uninstall fish"),
    ],
)
def test_uninstall_commands(method, expected):
    assert method.create_uninstall_cmd("fish") == expected


def test_bash_install_is_the_command_itself():
    assert InstallMethod.BASH.create_install_cmd("echo hi") == "echo hi"


def test_bash_uninstall_is_an_error():
    with pytest.raises(InstructionError):
        InstallMethod.BASH.create_uninstall_cmd("echo hi")


def test_invalid_method_is_an_error():
    with pytest.raises(InstructionError, match="method=''"):
        InstallMethod.INVALID.create_install_cmd("fish")


@pytest.mark.parametrize("method", [InstallMethod.PACAUR, InstallMethod.AURMAN])
def test_unverified_helpers_raise(method):
    with pytest.raises(InstructionError):
        method.create_install_cmd("fish")
    with pytest.raises(InstructionError):
        method.create_uninstall_cmd("fish")


def test_is_empty():
    assert InstallMethod.INVALID.is_empty()
    assert not InstallMethod.APT.is_empty()


@pytest.mark.parametrize("method", [m.value for m in InstallMethod if m.value])
def test_every_named_method_is_valid(method):
    assert instructions.is_valid_installation_method(method)


@pytest.mark.parametrize("method", ["", "npm", "APT"])
def test_unknown_methods_are_invalid(method):
    assert not instructions.is_valid_installation_method(method)


def test_cmd_available_uses_path_lookup():
    with mock.patch("shutil.which", _which_for("apt")):
        assert instructions.cmd_available(InstallMethod.APT)
        assert not instructions.cmd_available(InstallMethod.DNF)


def test_find_system_pkg_manager_prefers_apt_over_pacman():
    with mock.patch("shutil.which", _which_for("pacman", "apt")):
        assert instructions.find_system_pkg_manager() is InstallMethod.APT


def test_find_system_pkg_manager_none_found():
    with mock.patch("shutil.which", _which_for()):
        assert instructions.find_system_pkg_manager() is InstallMethod.INVALID


def test_find_aur_pkg_manager_prefers_paru_over_yay():
    with mock.patch("shutil.which", _which_for("yay", "paru")):
        assert instructions.find_aur_pkg_manager() is InstallMethod.PARU


def test_system_method_uses_detected_manager():
    with mock.patch("shutil.which", _which_for("pacman")):
        instructions.init()
    assert InstallMethod.SYSTEM.create_install_cmd("fish") == "sudo pacman -S --noconfirm fish"
    assert InstallMethod.SYSTEM.create_uninstall_cmd("fish") == "sudo pacman -R --noconfirm fish"


def test_system_method_without_manager_fails():
    with pytest.raises(InstructionError, match="couldn't detect system package manager"):
        InstallMethod.SYSTEM.create_install_cmd("fish")


def test_aur_method_uses_detected_manager():
    with mock.patch("shutil.which", _which_for("yay")):
        instructions.init()
    assert InstallMethod.AUR.create_install_cmd("fish") == "yay -S --sudoloop fish"
    assert InstallMethod.AUR.create_uninstall_cmd("fish") == "yay -R fish"


def test_aur_method_without_manager_fails():
    with pytest.raises(InstructionError, match="couldn't detect aur package manager"):
        InstallMethod.AUR.create_install_cmd("fish")


def test_gen_system_install_rejects_non_system_manager():
    with pytest.raises(InstructionError, match="not a system one"):
        instructions.gen_system_install_cmd(InstallMethod.CARGO, "fish")


def test_gen_system_uninstall_swallows_bad_manager():
    assert instructions.gen_system_uninstall_cmd(InstallMethod.INVALID, "fish") == ""
    assert instructions.gen_system_uninstall_cmd(InstallMethod.YAY, "fish") == ""


def test_gen_aur_rejects_non_aur_manager():
    with pytest.raises(InstructionError, match="not an aur one"):
        instructions.gen_aur_install_cmd(InstallMethod.APT, "fish")
    with pytest.raises(InstructionError, match="not an aur one"):
        instructions.gen_aur_uninstall_cmd(InstallMethod.APT, "fish")


def test_gen_accepts_plain_strings():
    assert instructions.gen_system_install_cmd("apt", "fish") == "sudo apt install -y fish"
    assert instructions.gen_aur_install_cmd("paru", "fish") == "paru -S --sudoloop fish"