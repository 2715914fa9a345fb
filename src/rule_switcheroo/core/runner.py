"""
Project Runner.

Applies a `RewriteEngine` to every Python unit of a file or directory, on a
thread pool, then runs the recipe's secondary actions once over the project.

Each unit gets its own visitor, cursor and trace logger (built inside
`RewriteEngine.run`); only the engine, the recipe's immutable templates and
the lock-protected `ExecutionContext` are shared between workers. Writing the
results is left to the caller.
"""

import fnmatch
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from rule_switcheroo.config import RuntimeConfig
from rule_switcheroo.core.context import Diagnostic, ExecutionContext
from rule_switcheroo.core.engine import RewriteEngine, RewriteResult
from rule_switcheroo.dependencies import ActionResult, run_secondary_actions
from rule_switcheroo.dependencies.manifests import SKIPPED_DIRS

logger = logging.getLogger(__name__)


@dataclass
class ProjectReport:
  """
  Everything a project run produced.

  Attributes:
      root: The file or directory that was processed.
      results: Rewrite result per unit, in path order.
      actions: Secondary action results, in declared order.
      diagnostics: All diagnostics recorded during the run.
  """

  root: Path
  results: Dict[Path, RewriteResult] = field(default_factory=dict)
  actions: List[ActionResult] = field(default_factory=list)
  diagnostics: List[Diagnostic] = field(default_factory=list)

  @property
  def changed(self) -> List[Path]:
    return [path for path, result in self.results.items() if result.changed]

  @property
  def failed(self) -> List[Path]:
    return [path for path, result in self.results.items() if not result.success]


class ProjectRunner:
  """
  Drives one recipe over a whole project.
  """

  def __init__(self, engine: Optional[RewriteEngine] = None, config: Optional[RuntimeConfig] = None):
    """
    Args:
        engine: The engine to use. Built from `config` if None.
        config: Runtime configuration (workers, exclusions, dependency upgrade).
    """
    self.config = config or (engine.config if engine else RuntimeConfig())
    self.engine = engine or RewriteEngine(config=self.config)

  def collect_units(self, root: Path) -> List[Path]:
    """
    Lists the Python files under `root` (or `root` itself for a file).

    Virtualenv and VCS directories are skipped, as are files matching one of
    the configured ``exclude`` glob patterns (relative to `root`).
    """
    if root.is_file():
      return [root]

    units = []
    for path in sorted(root.rglob("*.py")):
      relative = path.relative_to(root)
      if any(part in SKIPPED_DIRS for part in relative.parts[:-1]):
        continue
      if any(fnmatch.fnmatch(relative.as_posix(), pattern) for pattern in self.config.exclude):
        continue
      units.append(path)
    return units

  def _label(self, root: Path, path: Path) -> str:
    if root.is_file():
      return path.name
    return path.relative_to(root).as_posix()

  def _rewrite_unit(self, path: Path, label: str, context: ExecutionContext) -> RewriteResult:
    try:
      code = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
      return RewriteResult(success=False, errors=[f"{label}: {e}"])
    return self.engine.run(code, context=context, unit=label)

  def run(self, root: Path, dry_run: bool = False) -> ProjectReport:
    """
    Rewrites every unit, then runs the secondary actions.

    Args:
        root: A Python file or a project directory.
        dry_run: Forwarded to secondary actions (units are never written here).

    Returns:
        ProjectReport: Per-unit results and action results.
    """
    context = ExecutionContext(self.config)
    report = ProjectReport(root=root)
    units = self.collect_units(root)
    logger.debug("Rewriting %d unit(s) with %d worker(s)", len(units), self.config.workers)

    with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
      futures = [(path, pool.submit(self._rewrite_unit, path, self._label(root, path), context)) for path in units]
      for path, future in futures:
        report.results[path] = future.result()

    # Secondary actions are project scoped; a single file has no project.
    if self.config.upgrade_dependencies and root.is_dir():
      report.actions = run_secondary_actions(self.engine.recipe.recipe_list(), root, dry_run=dry_run)

    report.diagnostics = context.diagnostics
    return report
