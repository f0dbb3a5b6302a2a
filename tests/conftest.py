import pytest

from biosprep.models import SettingSnapshot

LAPTOP_SETTINGS = [
    "SecureBoot,Disable",
    "SecurityChip,Inactive",
    "VirtualizationTechnology,Disable",
    "VTdFeature,Disable",
    "WakeOnLAN,ACOnly;[Optional:Disable,ACOnly,ACandBattery,Enable]",
]

DESKTOP_SETTINGS = [
    "Secure Boot,Disabled",
    "Security Chip,Disabled",
    "Intel(R) Virtualization Technology,Disabled",
    "VT-d,Disabled",
]


class FakeInterface:
    """Records every call made against the management interface."""

    def __init__(
        self,
        manufacturer="LENOVO",
        model="ThinkPad T14 Gen 4",
        chassis_types=(10,),
        password_state=0,
        settings=LAPTOP_SETTINGS,
        set_status="Success",
        save_status="Success",
    ):
        self.manufacturer = manufacturer
        self.model = model
        self.chassis_types = list(chassis_types)
        self.password_state = password_state
        self.settings = list(settings)
        self.set_status = set_status
        self.save_status = save_status
        # replaces the reported settings after virtualization is enabled
        self.settings_after_vt = None
        self.calls = []
        self.queries = 0

    def get_manufacturer(self):
        return self.manufacturer

    def get_model(self):
        return self.model

    def get_chassis_types(self):
        return self.chassis_types

    def get_password_state(self):
        return self.password_state

    def query_settings(self):
        self.queries += 1
        return [SettingSnapshot.parse(s) for s in self.settings]

    def set_setting(self, command):
        self.calls.append(("set", command))
        status = self.set_status(command) if callable(self.set_status) else self.set_status
        if status == "Success" and self.settings_after_vt is not None and "Virtualization" in command:
            self.settings = self.settings_after_vt
        return status

    def save_settings(self, password=""):
        self.calls.append(("save", password))
        if callable(self.save_status):
            return self.save_status(sum(1 for call in self.calls if call[0] == "save"))
        return self.save_status


@pytest.fixture
def laptop():
    return FakeInterface()


@pytest.fixture
def desktop():
    return FakeInterface(model="ThinkCentre M90q", chassis_types=(35,), settings=DESKTOP_SETTINGS)
