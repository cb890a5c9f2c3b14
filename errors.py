import os
from enum import Enum
from typing import Iterable, Optional, List


class BootErrorCode(Enum):
    """
    Central registry of boot pipeline error codes.
    Each code maps to a default user-facing summary.
    """
    # Configuration & environment (1xxx)
    SETTINGS_LOAD_FAILED = ("CFG_1001", "Could not load Lunchbox settings.")
    PLUGINS_DIR_CREATE_FAILED = ("CFG_1002", "Could not create plugins directory.")

    # Prerequisites (2xxx)
    DEPENDENCIES_UNMET = ("DEP_2001", "Unmet Python dependencies.")
    SOFTWARE_NOT_FOUND = ("DEP_2002", "Required software could not be found.")
    VERSION_UNDETERMINED = ("DEP_2003", "Software was found, but the version could not be determined.")
    VERSION_TOO_OLD = ("DEP_2004", "Software was found, but a newer version is required.")
    ROLES_MISSING = ("DEP_2005", "The following required ansible-galaxy roles are missing:")
    ROLE_LIST_FAILED = ("DEP_2006", 'Could not execute "ansible-galaxy list".')

    # Network (3xxx)
    MANIFEST_UNAVAILABLE = ("NET_3001", "Could not get list of ansible roles.")
    MANIFEST_FETCH_FAILED = ("NET_3002", "Could not parse list of ansible roles.")

    # Virtual machine (4xxx)
    VM_NOT_FOUND = ("VM_4001", "Could not find the managed virtual machine.")

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message


class BootError(Exception):
    """
    A boot operation failure.

    Carries a one-line summary plus ordered detail lines (commands tried,
    captured stderr, remediation help). ``str()`` renders the full
    human-readable text shown in the status display.
    """

    def __init__(
        self,
        error_code: BootErrorCode,
        summary: Optional[str] = None,
        detail_lines: Optional[Iterable[str]] = None,
    ):
        self.error_code = error_code
        self.summary = summary or error_code.message
        self.detail_lines: List[str] = list(detail_lines or [])
        super().__init__(self.render())

    @property
    def code(self) -> str:
        return self.error_code.code

    def render(self) -> str:
        return os.linesep.join([self.summary] + self.detail_lines)

    def __str__(self) -> str:
        return self.render()


def raise_boot_error(
    error_code: BootErrorCode,
    summary: Optional[str] = None,
    detail_lines: Optional[Iterable[str]] = None,
):
    """
    Raise a BootError using the centralized error registry.
    """
    raise BootError(error_code, summary=summary, detail_lines=detail_lines)
