"""Dependency specifier parsing, rewriting and upgrade planning."""

from .models import DepsReference, ParsedSpecifier, PendingUpgrade
from .parser import DepsFileParser
from .planner import DependencyUpgradePlanner, UpgradeMode
from .specifier import build_specifier_pattern, format_specifier, rewrite_specifiers

__all__ = [
    "DependencyUpgradePlanner",
    "DepsFileParser",
    "DepsReference",
    "ParsedSpecifier",
    "PendingUpgrade",
    "UpgradeMode",
    "build_specifier_pattern",
    "format_specifier",
    "rewrite_specifiers",
]
