import datetime
from enum import Enum
from typing import FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChassisKind(str, Enum):
    DESKTOP = "Desktop"
    LAPTOP = "Laptop"


class MachineProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    manufacturer: str
    model: str = ""
    chassis_kind: ChassisKind
    admin_password_locked: bool


class SettingSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    raw_state: str

    @classmethod
    def parse(cls, current_setting: str) -> "SettingSnapshot":
        """
        Build a snapshot from a Lenovo_BiosSetting.CurrentSetting string.
        Newer firmware appends ";[Optional:...]" hints after the value.
        """
        raw_state = current_setting.split(";", 1)[0].strip()
        return cls(name=raw_state.split(",", 1)[0], raw_state=raw_state)


class SettingRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    disabled_states: FrozenSet[str]
    enable_verb: str
    exit_code: int


class StepResult(BaseModel):
    setting: str
    current_state: Optional[str] = None
    command: Optional[str] = None
    outcome: str  # skipped|planned|applied|failed|missing
    detail: str = ""


class RunReport(BaseModel):
    started_at: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )
    dry_run: bool = False
    profile: Optional[MachineProfile] = None
    steps: List[StepResult] = Field(default_factory=list)
    exit_code: Optional[int] = None
