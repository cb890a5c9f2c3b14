"""
Version comparison for external tool checks.
"""

import re
from enum import IntEnum
from typing import Optional, Pattern, Union

from packaging.version import InvalidVersion, Version


class VersionOrder(IntEnum):
    LESS = -1
    EQUAL = 0
    GREATER = 1


def compare_versions(found: str, required: str) -> VersionOrder:
    """
    Compare two dot-separated version strings.

    Components compare numerically, so ``1.7.10`` is newer than ``1.7.9``;
    missing trailing components count as zero.

    Raises:
        ValueError: either string is not a version
    """
    try:
        left, right = Version(found), Version(required)
    except InvalidVersion as e:
        raise ValueError(f"Cannot compare versions {found!r} and {required!r}: {e}") from e
    if left < right:
        return VersionOrder.LESS
    if left > right:
        return VersionOrder.GREATER
    return VersionOrder.EQUAL


def extract_version(text: str, pattern: Union[str, Pattern[str]]) -> Optional[str]:
    """Return capture group 1 of the first match of ``pattern`` in ``text``."""
    if isinstance(pattern, str):
        pattern = re.compile(pattern, re.IGNORECASE)
    match = pattern.search(text)
    if not match:
        return None
    return match.group(1)
