"""
Tests for version helpers.
"""

import migrations_sdk
from migrations_sdk.version import get_version, get_version_info


def test_version_string_matches_info():
    major, minor, patch, pre_release = get_version_info()

    expected = f"{major}.{minor}.{patch}" + (f"-{pre_release}" if pre_release else "")
    assert get_version() == expected
    assert migrations_sdk.__version__ == expected
