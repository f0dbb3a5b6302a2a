import logging
from typing import Dict, Optional

from . import rules
from .constants import EXPECTED_MANUFACTURER, SUCCESS
from .errors import (
    FirmwareLockedError,
    ManagementInterfaceError,
    SettingChangeError,
    SettingsUnavailableError,
    WrongManufacturerError,
)
from .models import MachineProfile, RunReport, SettingRule, SettingSnapshot, StepResult
from .wmi import read_profile

log = logging.getLogger("biosprep.reconciler")


class FirmwareReconciler:
    """
    Brings secure boot, the security chip and the virtualization settings
    to their enabled state.

    Each setting is only touched when its current literal is one of the
    known disabled literals for the chassis kind. A change is a set call
    followed by a save call; the first non-success result aborts the run
    and nothing already written is rolled back.
    """

    def __init__(self, interface, convert_boot_mode=False, guard_prep=False, dry_run=False, password=None):
        self.interface = interface
        self.convert_boot_mode = convert_boot_mode
        self.guard_prep = guard_prep
        self.dry_run = dry_run
        self.password = password or None
        self.profile: Optional[MachineProfile] = None
        self.rules: Dict[str, SettingRule] = {}
        self.settings: Dict[str, SettingSnapshot] = {}
        self.report = RunReport(dry_run=dry_run)

    def run(self) -> RunReport:
        self.preflight()

        if not self.convert_boot_mode:
            if self.guard_prep:
                log.warning("Guard prep requested without boot mode conversion; ignoring")
            log.info("Boot mode conversion not requested, nothing to do")
            return self.report

        self.convert_boot_mode_step()
        if self.guard_prep:
            self.guard_prep_step()
        return self.report

    def preflight(self) -> MachineProfile:
        """
        Fail fast on a foreign machine, unsupported firmware or a locked
        firmware with no password at hand.
        """
        try:
            manufacturer = self.interface.get_manufacturer()
        except ManagementInterfaceError as e:
            raise SettingsUnavailableError(f"Unable to read the manufacturer: {e}") from e
        log.info("Manufacturer: %s", manufacturer)
        if manufacturer.strip().upper() != EXPECTED_MANUFACTURER:
            raise WrongManufacturerError(
                f"Manufacturer {manufacturer!r} is not {EXPECTED_MANUFACTURER}"
            )

        try:
            self.profile = read_profile(self.interface, manufacturer)
        except ManagementInterfaceError as e:
            raise SettingsUnavailableError(f"Unable to probe the machine: {e}") from e
        self.report.profile = self.profile
        log.info(
            "Model: %s, chassis: %s, supervisor password set: %s",
            self.profile.model or "unknown",
            self.profile.chassis_kind.value,
            self.profile.admin_password_locked,
        )

        self.rules = rules.rules_for(self.profile.chassis_kind)
        self.settings = self._read_settings()
        secure_boot = self.rules[rules.SECURE_BOOT]
        if secure_boot.name not in self.settings:
            raise SettingsUnavailableError(
                f"Firmware does not report {secure_boot.name!r}; firmware is outdated or unsupported"
            )

        if self.profile.admin_password_locked and not self.password:
            raise FirmwareLockedError("Firmware is protected by a supervisor password and none was supplied")
        if self.password and not self.profile.admin_password_locked:
            log.warning("A password was supplied but no supervisor password is set; it will not be sent")
        return self.profile

    def convert_boot_mode_step(self) -> StepResult:
        return self._reconcile(rules.SECURE_BOOT)

    def guard_prep_step(self):
        results = [self._reconcile(rules.TPM)]
        virtualization = self._reconcile(rules.VIRTUALIZATION)
        results.append(virtualization)
        if virtualization.outcome == "applied":
            # the VT-d literal reported by the firmware changes once VT is toggled
            log.info("Re-reading settings after enabling virtualization")
            self.settings = self._read_settings()
        results.append(self._reconcile(rules.IO_VIRTUALIZATION))
        return results

    def _read_settings(self) -> Dict[str, SettingSnapshot]:
        try:
            snapshots = self.interface.query_settings()
        except ManagementInterfaceError as e:
            raise SettingsUnavailableError(f"Unable to read firmware settings: {e}") from e
        if not snapshots:
            raise SettingsUnavailableError("Firmware reported no settings")
        log.debug("Read %d firmware settings", len(snapshots))
        return {snapshot.name: snapshot for snapshot in snapshots}

    @property
    def _send_password(self) -> Optional[str]:
        if self.profile is not None and self.profile.admin_password_locked:
            return self.password
        return None

    def _reconcile(self, key: str) -> StepResult:
        rule = self.rules[key]
        snapshot = self.settings.get(rule.name)
        if snapshot is None:
            log.warning("%s: setting not reported by firmware, skipping", rule.name)
            return self._record(StepResult(setting=rule.name, outcome="missing"))

        log.info("%s: current state %r", rule.name, snapshot.raw_state)
        if not rules.needs_change(rule, snapshot):
            log.info("%s: not in a known disabled state, leaving as is", rule.name)
            return self._record(StepResult(setting=rule.name, current_state=snapshot.raw_state, outcome="skipped"))

        password = self._send_password
        command = rules.build_command(rule, password)
        shown = rules.mask_command(command, password)
        result = StepResult(setting=rule.name, current_state=snapshot.raw_state, command=shown, outcome="planned")

        if self.dry_run:
            log.info("%s: dry run, would send %r and save", rule.name, shown)
            return self._record(result)

        log.info("%s: sending %r", rule.name, shown)
        self._call(rule, result, "set", self.interface.set_setting, command)
        log.info("%s: saving firmware settings", rule.name)
        self._call(rule, result, "save", self.interface.save_settings, password or "")

        result.outcome = "applied"
        log.info("%s: enabled", rule.name)
        return self._record(result)

    def _call(self, rule: SettingRule, result: StepResult, what: str, method, argument: str) -> None:
        try:
            status = method(argument)
        except ManagementInterfaceError as e:
            status = None
            # PowerShell echoes the failing script line, password included
            detail = rules.redact(str(e), self.password)
        else:
            detail = f"returned {status!r}"
        if status == SUCCESS:
            return

        result.outcome = "failed"
        result.detail = f"{what} {detail}"
        self._record(result)
        raise SettingChangeError(
            rule.key,
            f"{rule.name}: {what} {detail}",
            rule.exit_code,
        )

    def _record(self, result: StepResult) -> StepResult:
        self.report.steps.append(result)
        return result
