import subprocess

import pytest

from biosprep import wmi
from biosprep.errors import ManagementInterfaceError
from biosprep.models import ChassisKind


class Recorder:
    def __init__(self, outputs):
        self.outputs = list(outputs)
        self.scripts = []

    def __call__(self, args, **kwargs):
        self.scripts.append(args[-1])
        out = self.outputs.pop(0)
        if isinstance(out, Exception):
            raise out
        return out


@pytest.fixture
def run(monkeypatch):
    def install(*outputs):
        recorder = Recorder(outputs)
        monkeypatch.setattr(wmi.subprocess, "check_output", recorder)
        return recorder

    return install


def test_query_settings(run):
    recorder = run('["SecureBoot,Disable","VTdFeature,Enable;[Optional:Disable,Enable]"]\n')
    snapshots = wmi.ManagementInterface().query_settings()
    assert [s.raw_state for s in snapshots] == ["SecureBoot,Disable", "VTdFeature,Enable"]
    assert "Lenovo_BiosSetting" in recorder.scripts[0]
    assert "root/wmi" in recorder.scripts[0]


def test_query_settings_single_and_empty(run):
    run('"SecureBoot,Enable"', "")
    interface = wmi.ManagementInterface()
    assert [s.name for s in interface.query_settings()] == ["SecureBoot"]
    assert interface.query_settings() == []


def test_chassis_types(run):
    run("[10]", "35")
    interface = wmi.ManagementInterface()
    assert interface.get_chassis_types() == [10]
    assert interface.get_chassis_types() == [35]


def test_set_setting_quotes_argument(run):
    recorder = run("Success\r\n")
    assert wmi.ManagementInterface().set_setting("SecureBoot,Enable,it's") == "Success"
    assert "SetBiosSetting" in recorder.scripts[0]
    assert "'SecureBoot,Enable,it''s'" in recorder.scripts[0]


def test_save_settings_without_password(run):
    recorder = run("Success\n")
    assert wmi.ManagementInterface().save_settings() == "Success"
    assert "Lenovo_SaveBiosSettings" in recorder.scripts[0]
    assert "parameter=''" in recorder.scripts[0]


def test_powershell_failure(run):
    run(subprocess.CalledProcessError(1, ["powershell"], stderr="Invalid class"))
    with pytest.raises(ManagementInterfaceError, match="Invalid class"):
        wmi.ManagementInterface().query_settings()


def test_powershell_missing(run):
    run(FileNotFoundError("powershell"))
    with pytest.raises(ManagementInterfaceError):
        wmi.ManagementInterface().get_manufacturer()


def test_unparseable_json(run):
    run("not json")
    with pytest.raises(ManagementInterfaceError):
        wmi.ManagementInterface().query_settings()


def test_read_profile(run):
    run("LENOVO\n", "ThinkPad X1 Carbon\n", "[9]", "2\n")
    profile = wmi.read_profile(wmi.ManagementInterface())
    assert profile.manufacturer == "LENOVO"
    assert profile.model == "ThinkPad X1 Carbon"
    assert profile.chassis_kind == ChassisKind.LAPTOP
    assert profile.admin_password_locked


def test_chassis_kind():
    assert wmi.chassis_kind([3]) == ChassisKind.DESKTOP
    assert wmi.chassis_kind([]) == ChassisKind.DESKTOP
    assert wmi.chassis_kind([3, 10]) == ChassisKind.LAPTOP


@pytest.mark.parametrize("output", ['["ten"]', "[null]", '[{"code": 10}]'])
def test_unexpected_chassis_types(run, output):
    run(output)
    with pytest.raises(ManagementInterfaceError, match="Unexpected chassis types"):
        wmi.ManagementInterface().get_chassis_types()
