"""Package operators for executing installation actions.

This module provides abstract and concrete implementations of package
operators for different package managers (APT, Homebrew, Chocolatey).
"""

from provctl.core.context import ExecutionContext
from provctl.models.platform import PackageManagerKind
from provctl.operators.apt import AptOperator
from provctl.operators.base import Operator
from provctl.operators.brew import BrewOperator
from provctl.operators.choco import ChocoOperator

OPERATORS: dict[PackageManagerKind, type[Operator]] = {
    PackageManagerKind.APT: AptOperator,
    PackageManagerKind.BREW: BrewOperator,
    PackageManagerKind.CHOCO: ChocoOperator,
}


def get_operator(kind: PackageManagerKind, context: ExecutionContext | None = None) -> Operator:
    """Create the operator for a package manager."""
    return OPERATORS[kind](context)


__all__ = ["AptOperator", "BrewOperator", "ChocoOperator", "OPERATORS", "Operator", "get_operator"]
