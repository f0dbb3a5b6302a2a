from .constants import (
    EXIT_FAILURE,
    EXIT_PASSWORD_LOCKED,
    EXIT_SETTINGS_UNREADABLE,
    EXIT_WRONG_MANUFACTURER,
)


class BiosPrepError(Exception):
    """Fatal condition; ``exit_code`` becomes the process exit status."""

    exit_code = EXIT_FAILURE

    def __init__(self, message, exit_code=None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ManagementInterfaceError(Exception):
    """The vendor management interface could not be queried or invoked."""


class WrongManufacturerError(BiosPrepError):
    exit_code = EXIT_WRONG_MANUFACTURER


class FirmwareLockedError(BiosPrepError):
    exit_code = EXIT_PASSWORD_LOCKED


class SettingsUnavailableError(BiosPrepError):
    exit_code = EXIT_SETTINGS_UNREADABLE


class SettingChangeError(BiosPrepError):
    def __init__(self, setting, message, exit_code):
        super().__init__(message, exit_code)
        self.setting = setting
