EXPECTED_MANUFACTURER = "LENOVO"

# command prefix for every CIM query and method call
POWERSHELL = ["powershell", "-NoProfile", "-NonInteractive", "-Command"]

WMI_NAMESPACE = "root/wmi"
SETTING_CLASS = "Lenovo_BiosSetting"
SET_CLASS = "Lenovo_SetBiosSetting"
SAVE_CLASS = "Lenovo_SaveBiosSettings"
PASSWORD_CLASS = "Lenovo_BiosPasswordSettings"

SUCCESS = "Success"

# Lenovo_BiosPasswordSettings.PasswordState bit for the supervisor password
SUPERVISOR_PASSWORD_BIT = 0x02

# SMBIOS chassis type codes for portable machines
LAPTOP_CHASSIS_TYPES = {8, 9, 10, 11, 12, 14, 18, 21, 30, 31, 32}

PASSWORD_MASK = "****"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_WRONG_MANUFACTURER = 2
EXIT_PASSWORD_LOCKED = 3
EXIT_SETTINGS_UNREADABLE = 4
EXIT_BOOT_MODE_FAILED = 5
EXIT_TPM_FAILED = 6
EXIT_VIRTUALIZATION_FAILED = 7
