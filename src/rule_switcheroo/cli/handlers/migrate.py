"""
Migrate Command Handler.

This module implements the logic for the `rule_switcheroo migrate` command.
It orchestrates:
1. Configuration loading (TOML + CLI overrides).
2. Rewriting every unit via the `ProjectRunner`.
3. Output writing (stdout, ``--out`` or ``--in-place``) and trace dumping.
4. Reporting of diagnostics and dependency upgrades.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from rich.table import Table

from rule_switcheroo.config import RuntimeConfig
from rule_switcheroo.core.engine import RewriteResult
from rule_switcheroo.core.runner import ProjectReport, ProjectRunner
from rule_switcheroo.utils.console import (
  console,
  log_error,
  log_info,
  log_success,
  log_warning,
)


def handle_migrate(
  input_path: Path,
  output_path: Optional[Path],
  in_place: bool,
  recipe: Optional[str],
  workers: Optional[int],
  dry_run: bool,
  skip_dependencies: bool,
  recipe_options: Dict[str, Any],
  json_trace_path: Optional[Path] = None,
) -> int:
  """
  Handles the 'migrate' command execution.

  Args:
      input_path: Source file or project directory.
      output_path: Destination file (for a file) or directory (for a directory).
      in_place: Overwrite changed units where they are.
      recipe: Override for the recipe key.
      workers: Override for the worker count.
      dry_run: Report only; neither units nor manifests are written.
      skip_dependencies: Do not run the recipe's secondary actions.
      recipe_options: Recipe options in addition to the TOML ones.
      json_trace_path: Optional path to dump the trace events of every unit.

  Returns:
      int: Exit code (0 for success, 1 for failure).
  """
  if not input_path.exists():
    log_error(f"Input not found: {input_path}")
    return 1

  if input_path.is_dir() and not (output_path or in_place or dry_run):
    log_error("Directory migration requires --out or --in-place (or --dry-run).")
    return 1

  try:
    config = RuntimeConfig.load(
      recipe=recipe,
      workers=workers,
      upgrade_dependencies=False if skip_dependencies else None,
      recipe_options=recipe_options,
      search_path=input_path,
    )
    runner = ProjectRunner(config=config)
  except ValueError as e:
    log_error(f"Invalid configuration: {e}")
    return 1

  log_info(f"Running [recipe]{runner.engine.recipe.display_name}[/recipe] on [path]{input_path}[/path]")
  report = runner.run(input_path, dry_run=dry_run)

  if json_trace_path:
    _write_trace(report, json_trace_path)

  _write_units(report, output_path, in_place, dry_run)
  _report_actions(report)
  _print_summary(report)
  return 1 if report.failed else 0


def _write_trace(report: ProjectReport, json_trace_path: Path) -> None:
  trace = {_label(report, path): result.trace_events for path, result in report.results.items()}
  try:
    json_trace_path.parent.mkdir(parents=True, exist_ok=True)
    with open(json_trace_path, "wt", encoding="utf-8") as f:
      json.dump(trace, f, indent=2)
    log_info(f"Trace saved to [path]{json_trace_path}[/path]")
  except OSError as e:
    log_error(f"Failed to write trace: {e}")


def _label(report: ProjectReport, path: Path) -> str:
  if report.root.is_file():
    return path.name
  return path.relative_to(report.root).as_posix()


def _destination(report: ProjectReport, path: Path, output_path: Optional[Path], in_place: bool) -> Optional[Path]:
  if in_place:
    return path
  if output_path is None:
    return None
  if report.root.is_file():
    return output_path
  return output_path / path.relative_to(report.root)


def _write_units(report: ProjectReport, output_path: Optional[Path], in_place: bool, dry_run: bool) -> None:
  for path, result in report.results.items():
    if not result.success:
      continue

    if dry_run:
      if result.changed:
        log_info(f"Would rewrite [path]{path}[/path]")
      continue

    destination = _destination(report, path, output_path, in_place)
    if destination is None:
      # Single file without destination: print to stdout.
      print(result.code, end="")
      continue
    if in_place and not result.changed:
      continue

    try:
      destination.parent.mkdir(parents=True, exist_ok=True)
      with open(destination, "wt", encoding="utf-8") as f:
        f.write(result.code)
    except OSError as e:
      log_error(f"Failed to write {destination}: {e}")
      continue
    if result.changed:
      log_success(f"Migrated: [path]{path}[/path] -> [path]{destination}[/path]")


def _report_actions(report: ProjectReport) -> None:
  for action in report.actions:
    for message in action.messages:
      log_success(message)
    for error in action.errors:
      log_warning(f"{action.action}: {error}")


def _print_summary(report: ProjectReport) -> None:
  """
  Renders a summary table of units with issues to the console.

  Args:
      report: The project report.
  """
  results: Dict[str, RewriteResult] = {_label(report, p): r for p, r in report.results.items()}
  total = len(results)
  changed = len(report.changed)
  issues = sum(1 for r in results.values() if not r.success or r.has_errors)

  if issues == 0:
    log_success(f"Migration Complete: {changed}/{total} files rewritten.")
    return

  table = Table(title="Migration Report")
  table.add_column("File", style="cyan")
  table.add_column("Status", justify="center")
  table.add_column("Issues", style="red")

  for filename, res in results.items():
    if res.success and not res.has_errors:
      continue
    status = "Failed" if not res.success else "Warnings"
    table.add_row(filename, status, "; ".join(res.errors) or "Unknown Error")

  console.print(table)
  console.print(f"\n[bold]Summary:[/bold] {changed} rewritten, {issues} with issues, {total} scanned.")
