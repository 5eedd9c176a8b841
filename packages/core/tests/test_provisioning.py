"""Tests for Copilot CLI install-if-absent."""

import pytest

from adolens_core.errors import ProvisioningError, SubprocessError
from adolens_core.provisioning import NPM_INSTALL, WINGET_INSTALL, ensure_copilot_cli, install_command


def test_install_command_per_platform():
    assert install_command("windows")[0] == "winget"
    assert install_command("linux") == NPM_INSTALL
    assert install_command("darwin") == NPM_INSTALL


def test_already_installed_skips_install(make_runner):
    runner = make_runner(probes={"copilot": True})
    assert ensure_copilot_cli(runner, system="linux") is False
    assert runner.runs() == []


def test_missing_installs_via_npm(make_runner):
    runner = make_runner(probes={"copilot": False})
    assert ensure_copilot_cli(runner, system="linux") is True
    assert runner.runs()[0][1] == NPM_INSTALL


def test_missing_installs_via_winget_and_refreshes_path(make_runner, mocker):
    refresh = mocker.patch("adolens_core.provisioning.refresh_windows_path")
    runner = make_runner(probes={"copilot": False})
    ensure_copilot_cli(runner, system="windows")
    assert runner.runs()[0][1] == WINGET_INSTALL
    refresh.assert_called_once()


def test_install_non_zero_exit(make_runner):
    runner = make_runner(probes={"copilot": False}, run_codes={"npm": 1})
    with pytest.raises(ProvisioningError, match="Exit code: 1"):
        ensure_copilot_cli(runner, system="linux")


def test_install_spawn_error(make_runner):
    runner = make_runner(probes={"copilot": False}, run_error=SubprocessError("Failed to run npm: not found"))
    with pytest.raises(ProvisioningError, match="not found"):
        ensure_copilot_cli(runner, system="linux")
