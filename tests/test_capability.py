"""Tests for utility probing and test skipping."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from bgharness.capability import have_utilities, missing_utilities, require_utilities

MISSING = "bgharness-no-such-utility-7f3a"


class TestMissingUtilities:
    """Tests for missing_utilities()."""

    def test_all_present(self) -> None:
        assert missing_utilities(sys.executable) == []

    def test_reports_only_missing(self) -> None:
        assert missing_utilities(sys.executable, MISSING) == [MISSING]

    def test_preserves_order(self) -> None:
        assert missing_utilities("zz-" + MISSING, MISSING) == ["zz-" + MISSING, MISSING]

    def test_custom_search_path(self, tmp_path: Path) -> None:
        tool = tmp_path / "mytool"
        tool.write_text("#!/bin/sh\n")
        tool.chmod(0o755)
        assert missing_utilities("mytool", path=str(tmp_path)) == []
        assert missing_utilities("mytool", path=str(tmp_path / "empty")) == ["mytool"]

    def test_no_names(self) -> None:
        assert missing_utilities() == []


class TestHaveUtilities:
    """Tests for have_utilities()."""

    def test_true_when_present(self) -> None:
        assert have_utilities(sys.executable) is True

    def test_false_when_any_missing(self) -> None:
        assert have_utilities(sys.executable, MISSING) is False


class TestRequireUtilities:
    """Tests for require_utilities()."""

    def test_missing_skips_instead_of_failing(self) -> None:
        with pytest.raises(pytest.skip.Exception, match=MISSING):
            require_utilities(sys.executable, MISSING)

    def test_present_does_nothing(self) -> None:
        require_utilities(sys.executable)

    @pytest.mark.requires(MISSING)
    def test_requires_marker_skips(self) -> None:
        pytest.fail("should have been skipped by the requires marker")
