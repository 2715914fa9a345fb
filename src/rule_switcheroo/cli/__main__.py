"""
Main Entry Point for rule-switcheroo CLI.

This module handles argument parsing and dispatches to the command handlers
defined in `rule_switcheroo.cli.handlers`.
"""

import argparse
from pathlib import Path
from typing import List, Optional

from rule_switcheroo import __version__
from rule_switcheroo.cli import handlers
from rule_switcheroo.config import parse_cli_key_values


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Parses arguments via argparse and calls the appropriate handler function.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  parser = argparse.ArgumentParser(description="rule-switcheroo: Targeted Python test code migrations")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: MIGRATE ---
  cmd_mig = subparsers.add_parser("migrate", help="Apply a recipe to a Python file or project directory")
  cmd_mig.add_argument("path", type=Path, help="Input source file or directory")
  destination = cmd_mig.add_mutually_exclusive_group()
  destination.add_argument("--out", type=Path, help="Output destination (file or dir)")
  destination.add_argument("--in-place", action="store_true", help="Overwrite rewritten files")
  cmd_mig.add_argument("--recipe", default=None, help="Recipe key (default: from toml)")
  cmd_mig.add_argument("--workers", type=int, default=None, help="Files rewritten concurrently (default: from toml)")
  cmd_mig.add_argument("--dry-run", action="store_true", help="Report changes without writing anything")
  cmd_mig.add_argument(
    "--skip-dependencies",
    action="store_true",
    help="Do not upgrade dependency versions in requirements / pyproject manifests",
  )
  cmd_mig.add_argument(
    "--json-trace", type=Path, default=None, help="Dump the execution trace of every file to a JSON file."
  )
  cmd_mig.add_argument(
    "--config",
    nargs="*",
    help="Recipe options in key=value format (e.g. lifecycle_method_name=tear_down)",
  )

  # --- Command: RECIPES ---
  subparsers.add_parser("recipes", help="List available recipes")

  args = parser.parse_args(argv)

  if args.command == "migrate":
    return handlers.handle_migrate(
      args.path,
      args.out,
      args.in_place,
      args.recipe,
      args.workers,
      args.dry_run,
      args.skip_dependencies,
      parse_cli_key_values(args.config),
      json_trace_path=args.json_trace,
    )

  elif args.command == "recipes":
    return handlers.handle_recipes()

  return 0


if __name__ == "__main__":
  raise SystemExit(main())
