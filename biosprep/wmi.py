import json
import logging
import subprocess
from typing import List

from .constants import (
    LAPTOP_CHASSIS_TYPES,
    PASSWORD_CLASS,
    POWERSHELL,
    SAVE_CLASS,
    SET_CLASS,
    SETTING_CLASS,
    SUPERVISOR_PASSWORD_BIT,
    WMI_NAMESPACE,
)
from .errors import ManagementInterfaceError
from .models import ChassisKind, MachineProfile, SettingSnapshot

log = logging.getLogger("biosprep.wmi")


def ps_quote(value: str) -> str:
    """Quote a value as a PowerShell single-quoted string literal."""
    return "'" + value.replace("'", "''") + "'"


class ManagementInterface:
    """
    Vendor management interface reached through PowerShell CIM cmdlets.
    Every call blocks until PowerShell exits; nothing is retried.
    """

    def _run(self, script: str) -> str:
        """
        Run a PowerShell script and return its stdout.
        """
        try:
            return subprocess.check_output(
                POWERSHELL + [script],
                text=True,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ManagementInterfaceError(f"PowerShell is not available: {e}") from e
        except subprocess.CalledProcessError as e:
            raise ManagementInterfaceError(
                f"PowerShell exited with {e.returncode}: {(e.stderr or '').strip()}"
            ) from e

    def _run_json(self, script: str):
        out = self._run(f"{script} | ConvertTo-Json -Compress")
        if not out.strip():
            return None
        try:
            return json.loads(out)
        except ValueError as e:
            raise ManagementInterfaceError(f"Unparseable management interface output: {out!r}") from e

    def _cim(self, class_name: str, namespace: str = None) -> str:
        cmd = f"Get-CimInstance -ClassName {class_name}"
        if namespace:
            cmd += f" -Namespace {namespace}"
        return f"({cmd})"

    def get_manufacturer(self) -> str:
        return self._run(f"{self._cim('Win32_ComputerSystem')}.Manufacturer").strip()

    def get_model(self) -> str:
        return self._run(f"{self._cim('Win32_ComputerSystemProduct')}.Version").strip()

    def get_chassis_types(self) -> List[int]:
        data = self._run_json(f"@({self._cim('Win32_SystemEnclosure')}.ChassisTypes)")
        if data is None:
            return []
        if not isinstance(data, list):
            data = [data]
        try:
            return [int(code) for code in data]
        except (TypeError, ValueError) as e:
            raise ManagementInterfaceError(f"Unexpected chassis types: {data!r}") from e

    def get_password_state(self) -> int:
        out = self._run(f"{self._cim(PASSWORD_CLASS, WMI_NAMESPACE)}.PasswordState").strip()
        try:
            return int(out)
        except ValueError as e:
            raise ManagementInterfaceError(f"Unexpected password state: {out!r}") from e

    def query_settings(self) -> List[SettingSnapshot]:
        data = self._run_json(
            f"@({self._cim(SETTING_CLASS, WMI_NAMESPACE)} | "
            "Where-Object { $_.CurrentSetting } | "
            "Select-Object -ExpandProperty CurrentSetting)"
        )
        if data is None:
            return []
        if isinstance(data, str):
            data = [data]
        return [SettingSnapshot.parse(item) for item in data if item]

    def _invoke(self, class_name: str, method: str, parameter: str) -> str:
        script = (
            f"({self._cim(class_name, WMI_NAMESPACE)} | "
            f"Invoke-CimMethod -MethodName {method} "
            f"-Arguments @{{parameter={ps_quote(parameter)}}}).return"
        )
        return self._run(script).strip()

    def set_setting(self, command: str) -> str:
        return self._invoke(SET_CLASS, "SetBiosSetting", command)

    def save_settings(self, password: str = "") -> str:
        return self._invoke(SAVE_CLASS, "SaveBiosSettings", password or "")


def chassis_kind(chassis_types) -> ChassisKind:
    if any(code in LAPTOP_CHASSIS_TYPES for code in chassis_types):
        return ChassisKind.LAPTOP
    return ChassisKind.DESKTOP


def read_profile(interface: ManagementInterface, manufacturer: str = None) -> MachineProfile:
    """
    Probe manufacturer, model, chassis and password state. The password
    state lives in a vendor class, so callers check the manufacturer first
    and pass it in.
    """
    if manufacturer is None:
        manufacturer = interface.get_manufacturer()
    model = interface.get_model()
    kind = chassis_kind(interface.get_chassis_types())
    locked = bool(interface.get_password_state() & SUPERVISOR_PASSWORD_BIT)
    log.debug("Raw profile: manufacturer=%r model=%r chassis=%s locked=%s", manufacturer, model, kind.value, locked)
    return MachineProfile(
        manufacturer=manufacturer,
        model=model,
        chassis_kind=kind,
        admin_password_locked=locked,
    )
