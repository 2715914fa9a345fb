"""
Dependency Manifest Actions.

Project-scoped secondary actions of recipes, such as raising a dependency to
a new release line in ``requirements*.txt`` and ``pyproject.toml``.
"""

from rule_switcheroo.dependencies.actions import (
  ActionResult,
  SecondaryAction,
  UpgradeDependencyVersion,
  run_secondary_actions,
)

__all__ = ["ActionResult", "SecondaryAction", "UpgradeDependencyVersion", "run_secondary_actions"]
