"""Tests for shared helpers."""

from uuid import uuid4

from keygate.utils import is_uuid, sanitize_input


class TestIsUuid:
    """Tests for key id format checks."""

    def test_uuid4_accepted(self):
        assert is_uuid(str(uuid4()))
        assert is_uuid(str(uuid4()).upper())

    def test_malformed_rejected(self):
        assert not is_uuid("not-a-uuid")
        assert not is_uuid(str(uuid4()).replace("-", ""))
        assert not is_uuid("00000000-0000-0000-0000-000000000000")


class TestSanitizeInput:
    """Tests for owner id sanitizing."""

    def test_strips_markup_characters(self):
        assert sanitize_input("<script>'x'\"") == "scriptx"

    def test_trims_and_truncates(self):
        assert sanitize_input("  owner  ") == "owner"
        assert len(sanitize_input("a" * 300)) == 255
