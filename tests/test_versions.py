"""
Tests for version extraction and comparison.
"""

import re

import pytest

from lunchbox.utils.versions import VersionOrder, compare_versions, extract_version


class TestCompareVersions:
    @pytest.mark.parametrize("found,required,expected", [
        ("1.7.4", "1.7.4", VersionOrder.EQUAL),
        ("1.7.10", "1.7.9", VersionOrder.GREATER),
        ("1.6.0", "1.7.4", VersionOrder.LESS),
        ("5.0.10", "5.0.9", VersionOrder.GREATER),
        ("2.0", "1.9.9", VersionOrder.GREATER),
        ("1.7", "1.7.0", VersionOrder.EQUAL),
    ])
    def test_numeric_component_order(self, found, required, expected):
        assert compare_versions(found, required) is expected

    def test_invalid_version_raises_value_error(self):
        with pytest.raises(ValueError):
            compare_versions("not-a-version", "1.0.0")


class TestExtractVersion:
    def test_vagrant_output(self):
        assert extract_version("Vagrant 1.8.1\n", r"Vagrant (\d+\.\d+\.\d+)") == "1.8.1"

    def test_string_pattern_ignores_case(self):
        assert extract_version("vagrant 1.8.1", r"Vagrant (\d+\.\d+\.\d+)") == "1.8.1"

    def test_compiled_pattern_used_as_is(self):
        pattern = re.compile(r"vagrant-vbguest \((\d+\.\d+\.\d+)\)")
        listing = "vagrant-hostsupdater (1.0.2)\nvagrant-vbguest (0.11.0)\n"
        assert extract_version(listing, pattern) == "0.11.0"

    def test_virtualbox_revision_suffix(self):
        assert extract_version("5.0.10r104061\n", r"(\d+\.\d+\.\d+)") == "5.0.10"

    def test_no_match(self):
        assert extract_version("command not found", r"Vagrant (\d+\.\d+\.\d+)") is None
