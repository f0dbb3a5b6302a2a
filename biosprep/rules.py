"""
Per-chassis firmware literals.

ThinkPad (laptop) and ThinkCentre (desktop) firmware name the same settings
differently and use different verbs, so each chassis kind carries its own
table. Only the literals listed in ``disabled_states`` trigger a change.
"""
from typing import Dict, Optional

from .constants import (
    EXIT_BOOT_MODE_FAILED,
    EXIT_TPM_FAILED,
    EXIT_VIRTUALIZATION_FAILED,
    PASSWORD_MASK,
)
from .models import ChassisKind, SettingRule, SettingSnapshot

SECURE_BOOT = "secure_boot"
TPM = "tpm"
VIRTUALIZATION = "virtualization"
IO_VIRTUALIZATION = "io_virtualization"

GUARD_PREP_ORDER = (TPM, VIRTUALIZATION, IO_VIRTUALIZATION)


def _rule(key, name, disabled, verb, exit_code) -> SettingRule:
    return SettingRule(
        key=key,
        name=name,
        disabled_states=frozenset(f"{name},{state}" for state in disabled),
        enable_verb=verb,
        exit_code=exit_code,
    )


LAPTOP_RULES = {
    SECURE_BOOT: _rule(SECURE_BOOT, "SecureBoot", ["Disable"], "Enable", EXIT_BOOT_MODE_FAILED),
    TPM: _rule(TPM, "SecurityChip", ["Disable", "Inactive"], "Active", EXIT_TPM_FAILED),
    VIRTUALIZATION: _rule(
        VIRTUALIZATION, "VirtualizationTechnology", ["Disable"], "Enable", EXIT_VIRTUALIZATION_FAILED
    ),
    IO_VIRTUALIZATION: _rule(
        IO_VIRTUALIZATION, "VTdFeature", ["Disable"], "Enable", EXIT_VIRTUALIZATION_FAILED
    ),
}

DESKTOP_RULES = {
    SECURE_BOOT: _rule(SECURE_BOOT, "Secure Boot", ["Disabled", "Disable"], "Enabled", EXIT_BOOT_MODE_FAILED),
    TPM: _rule(TPM, "Security Chip", ["Disabled", "Inactive"], "Active", EXIT_TPM_FAILED),
    VIRTUALIZATION: _rule(
        VIRTUALIZATION,
        "Intel(R) Virtualization Technology",
        ["Disabled", "Disable"],
        "Enabled",
        EXIT_VIRTUALIZATION_FAILED,
    ),
    IO_VIRTUALIZATION: _rule(
        IO_VIRTUALIZATION, "VT-d", ["Disabled", "Disable"], "Enabled", EXIT_VIRTUALIZATION_FAILED
    ),
}


def rules_for(chassis_kind: ChassisKind) -> Dict[str, SettingRule]:
    if chassis_kind == ChassisKind.LAPTOP:
        return LAPTOP_RULES
    return DESKTOP_RULES


def needs_change(rule: SettingRule, snapshot: Optional[SettingSnapshot]) -> bool:
    if snapshot is None:
        return False
    return snapshot.raw_state in rule.disabled_states


def build_command(rule: SettingRule, password: Optional[str] = None) -> str:
    tokens = [rule.name, rule.enable_verb]
    if password:
        tokens.append(password)
    return ",".join(tokens)


def mask_command(command: str, password: Optional[str]) -> str:
    if not password:
        return command
    suffix = "," + password
    if command.endswith(suffix):
        return command[: -len(suffix)] + "," + PASSWORD_MASK
    return command


def redact(text: str, password: Optional[str]) -> str:
    """Mask every occurrence of the password, raw or PowerShell-quoted."""
    if not password:
        return text
    for form in (password.replace("'", "''"), password):
        text = text.replace(form, PASSWORD_MASK)
    return text
