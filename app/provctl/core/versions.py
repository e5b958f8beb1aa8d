"""Version constraint matching for package items.

Package managers report versions in their own formats (Debian
``1:2.43.0-1ubuntu7``, Homebrew ``2.45.2_1``, Chocolatey ``2.45.2.20240615``).
Matching compares the numeric components of the upstream version, which
is what a provisioning constraint like ``>=2.30`` is meant to express.
"""

import re

_OPERATORS = ("~=", ">=", "<=", "==", "!=", ">", "<", "=")
_NUMBER = re.compile(r"\d+")


def upstream_version(version: str) -> str:
    """Strip epoch, Debian revision and Homebrew rebuild suffixes.

    Examples:
        >>> upstream_version("1:2.43.0-1ubuntu7")
        '2.43.0'
        >>> upstream_version("2.45.2_1")
        '2.45.2'
    """
    version = version.strip()
    if ":" in version:
        version = version.split(":", 1)[1]
    version = version.split("-", 1)[0]
    version = version.split("_", 1)[0]
    version = version.split("+", 1)[0]
    return version


def version_key(version: str) -> tuple[int, ...]:
    """Return the numeric components of a version for ordering."""
    return tuple(int(part) for part in _NUMBER.findall(upstream_version(version)))


def _compare(left: tuple[int, ...], right: tuple[int, ...]) -> int:
    width = max(len(left), len(right))
    padded_left = left + (0,) * (width - len(left))
    padded_right = right + (0,) * (width - len(right))
    return (padded_left > padded_right) - (padded_left < padded_right)


def _prefix_matches(installed: tuple[int, ...], prefix: tuple[int, ...]) -> bool:
    return installed[: len(prefix)] == prefix


def _matches_clause(installed: str, clause: str) -> bool:
    clause = clause.strip()
    operator = next((op for op in _OPERATORS if clause.startswith(op)), "==")
    wanted = clause[len(operator) :].strip() if clause.startswith(operator) else clause
    if not wanted:
        msg = f"Empty version in constraint clause '{clause}'"
        raise ValueError(msg)

    installed_key = version_key(installed)

    if wanted.endswith(".*") or wanted.endswith("*"):
        prefix = version_key(wanted.rstrip("*").rstrip("."))
        if operator in ("==", "="):
            return _prefix_matches(installed_key, prefix)
        if operator == "!=":
            return not _prefix_matches(installed_key, prefix)
        msg = f"Wildcards are only allowed with == or != ('{clause}')"
        raise ValueError(msg)

    wanted_key = version_key(wanted)
    if not wanted_key:
        msg = f"No numeric version in constraint clause '{clause}'"
        raise ValueError(msg)

    result = _compare(installed_key, wanted_key)
    if operator in ("==", "="):
        return result == 0
    if operator == "!=":
        return result != 0
    if operator == ">=":
        return result >= 0
    if operator == "<=":
        return result <= 0
    if operator == ">":
        return result > 0
    if operator == "<":
        return result < 0
    # ~=: at least the given version, same release series
    return result >= 0 and _prefix_matches(installed_key, wanted_key[:-1] or wanted_key)


def satisfies(installed: str, constraint: str | None) -> bool:
    """Check an installed version against a constraint.

    A constraint is one or more comma-separated clauses, all of which must
    hold (e.g. ``">=2.30, <3"``). An empty constraint accepts any version.

    Args:
        installed: Version string reported by the package manager.
        constraint: Constraint expression, or None.

    Returns:
        True if the installed version satisfies every clause.

    Raises:
        ValueError: If the constraint cannot be parsed.
    """
    if not constraint or not constraint.strip():
        return True
    return all(_matches_clause(installed, clause) for clause in constraint.split(","))
