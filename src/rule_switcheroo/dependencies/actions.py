"""
Secondary Actions.

Project-scoped steps a recipe declares next to its tree rewrite. They are
independent of each other and of the per-unit rewrites: they run once per
project, after every unit was processed, whether or not any unit matched.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from rule_switcheroo.dependencies.manifests import (
  edit_pyproject_text,
  edit_requirements_text,
  find_manifests,
  pyproject_declares,
  tomllib,
)
from rule_switcheroo.dependencies.versions import TargetVersion

logger = logging.getLogger(__name__)


class ActionResult(BaseModel):
  """
  Outcome of one secondary action over one project.
  """

  action: str = Field(description="Label of the action.")
  success: bool = Field(default=True, description="False if any manifest could not be processed.")
  changed_files: List[str] = Field(default_factory=list, description="Manifests that were (or would be) edited.")
  messages: List[str] = Field(default_factory=list, description="Human readable notes.")
  errors: List[str] = Field(default_factory=list, description="Per-manifest failures.")


class SecondaryAction(ABC):
  """A project-scoped step of a recipe."""

  @property
  @abstractmethod
  def label(self) -> str:
    """Short description used in reports."""

  @abstractmethod
  def run(self, root: Path, dry_run: bool = False) -> ActionResult:
    """
    Applies the action to the project rooted at `root`.

    Args:
        root: Project directory.
        dry_run: Report what would change without writing.

    Returns:
        ActionResult: Never raises for per-manifest problems.
    """


class UpgradeDependencyVersion(SecondaryAction):
  """
  Raises the declared version of a dependency to a release line.

  Exact pins move to the new line (``==3.14.9`` -> ``==4.*``), ranges are
  replaced by the line's range (``>=3,<4`` -> ``>=4,<5``). Requirements that
  are unpinned, already admit the target, or require something newer are left
  alone, so the action never downgrades and can run repeatedly.
  """

  def __init__(self, package: str, version: str) -> None:
    """
    Args:
        package: Distribution name, e.g. ``mockwebserver``.
        version: ``4.X`` (any 4.x), ``4.9.X`` or an exact ``4.9.3``.

    Raises:
        ValueError: If `version` is not understood.
    """
    self.package = package
    self.target = TargetVersion.parse(version)
    self.version = version

  @property
  def label(self) -> str:
    return f"upgrade {self.package} to {self.version}"

  def _new_spec(self, spec: str) -> Optional[str]:
    if not self.target.is_outdated(spec):
      return None
    return self.target.rewrite(spec)

  def edit(self, path: Path, text: str) -> str:
    """
    Returns the edited manifest body (identical when nothing applies).

    Raises:
        tomllib.TOMLDecodeError: For a pyproject that is not valid TOML,
            before or after editing.
    """
    if path.name == "pyproject.toml":
      if not pyproject_declares(text, self.package):
        return text
      edited = edit_pyproject_text(text, self.package, self._new_spec)
      tomllib.loads(edited)
      return edited
    return edit_requirements_text(text, self.package, self._new_spec)

  def run(self, root: Path, dry_run: bool = False) -> ActionResult:
    result = ActionResult(action=self.label)
    for path in find_manifests(root):
      try:
        text = path.read_text(encoding="utf-8")
        edited = self.edit(path, text)
        if edited == text:
          continue
        if not dry_run:
          path.write_text(edited, encoding="utf-8")
      except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        result.success = False
        result.errors.append(f"{path}: {e}")
        logger.debug("Dependency upgrade failed for %s: %s", path, e)
        continue

      result.changed_files.append(str(path))
      verb = "Would upgrade" if dry_run else "Upgraded"
      result.messages.append(f"{verb} {self.package} to {self.version} in {path}")
    return result


def run_secondary_actions(actions: Sequence[SecondaryAction], root: Path, dry_run: bool = False) -> List[ActionResult]:
  """
  Runs `actions` in declared order over the project at `root`.

  Args:
      actions: Usually ``recipe.recipe_list()``.
      root: Project directory.
      dry_run: Forwarded to every action.

  Returns:
      List[ActionResult]: One result per action.
  """
  return [action.run(root, dry_run=dry_run) for action in actions]
