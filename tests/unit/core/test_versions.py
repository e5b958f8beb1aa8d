"""Unit tests for version constraint matching."""

import pytest
from provctl.core.versions import satisfies, upstream_version, version_key


class TestUpstreamVersion:
    """Tests for upstream_version and version_key."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1:2.43.0-1ubuntu7", "2.43.0"),
            ("2.45.2_1", "2.45.2"),
            ("3.4+dfsg", "3.4"),
            ("2.45.2.20240615", "2.45.2.20240615"),
        ],
    )
    def test_strips_packaging_suffixes(self, raw: str, expected: str) -> None:
        """Epochs, revisions and rebuild numbers are removed."""
        assert upstream_version(raw) == expected

    def test_version_key(self) -> None:
        """Only numeric components are kept."""
        assert version_key("1:2.43.0-1ubuntu7") == (2, 43, 0)
        assert version_key("3.2a") == (3, 2)


class TestSatisfies:
    """Tests for satisfies."""

    @pytest.mark.parametrize("constraint", [None, "", "  "])
    def test_empty_constraint_accepts_anything(self, constraint: str | None) -> None:
        """No constraint means any installed version."""
        assert satisfies("0.1", constraint)

    @pytest.mark.parametrize(
        ("installed", "constraint", "expected"),
        [
            ("1:2.43.0-1ubuntu7", ">=2.30", True),
            ("2.29.9", ">=2.30", False),
            ("2.30", "==2.30.0", True),
            ("2.30.1", "2.30.1", True),
            ("2.30.1", "!=2.30.1", False),
            ("3.0", ">=2.30, <3", False),
            ("2.99", ">=2.30, <3", True),
            ("2.45.2_1", "==2.45.*", True),
            ("2.46.0", "==2.45.*", False),
            ("2.46.0", "!=2.45.*", True),
            ("1.4.5", "~=1.4.2", True),
            ("1.5.0", "~=1.4.2", False),
            ("10.0", ">9.9", True),
        ],
    )
    def test_clauses(self, installed: str, constraint: str, expected: bool) -> None:
        """Comparison operators work on numeric components."""
        assert satisfies(installed, constraint) is expected

    @pytest.mark.parametrize("constraint", [">=", ">=abc", ">=2.*"])
    def test_invalid_constraints(self, constraint: str) -> None:
        """Unparseable constraints raise ValueError."""
        with pytest.raises(ValueError):
            satisfies("1.0", constraint)
