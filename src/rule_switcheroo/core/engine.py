"""
Orchestration Engine for Tree Rewrites.

This module provides the `RewriteEngine`, the driver that applies one recipe
to one compilation unit. The pipeline consists of:

1.  **Parsing**: Source text to a LibCST module (`run` only).
2.  **Gate**: The recipe's preconditions. A closed gate returns the input tree.
3.  **Traversal**: The recipe's visitor, on a metadata wrapper that resolves
    qualified names without copying the tree.
4.  **Import Fixing**: Queued add / remove requests, applied only when the
    traversal queued any.

`rewrite_tree` is the tree-in / tree-out API and lets parse errors surface;
`run` wraps everything into a `RewriteResult` for hosts such as the CLI.
"""

import logging
from typing import Any, Dict, List, Optional

import libcst as cst
from pydantic import BaseModel, Field

from rule_switcheroo.config import RuntimeConfig
from rule_switcheroo.core.context import ExecutionContext
from rule_switcheroo.core.import_fixer import ImportFixer
from rule_switcheroo.core.preconditions import check
from rule_switcheroo.core.resolution import parse_unit, wrap_unit
from rule_switcheroo.core.tracer import TraceLogger
from rule_switcheroo.recipes import Recipe, get_recipe_class

logger = logging.getLogger(__name__)


class RewriteResult(BaseModel):
  """
  Structured result of a single unit rewrite.
  """

  code: str = Field(default="", description="The rewritten source code.")
  changed: bool = Field(default=False, description="True if the recipe modified the unit.")
  errors: List[str] = Field(default_factory=list, description="Diagnostics recorded for this unit.")
  success: bool = Field(
    default=True,
    description="True if the pipeline completed without fatal failures.",
  )
  trace_events: List[Dict[str, Any]] = Field(default_factory=list, description="A log of internal trace events.")

  @property
  def has_errors(self) -> bool:
    """
    Returns True if any diagnostics were recorded during the rewrite.

    Returns:
        bool: True if errors list is non-empty.
    """
    return len(self.errors) > 0


class RewriteEngine:
  """
  Applies one recipe to single units.

  The engine holds no per-unit state, so one instance can serve many worker
  threads: every call builds its own visitor, cursor and tracer.
  """

  def __init__(self, recipe: Optional[Recipe] = None, config: Optional[RuntimeConfig] = None):
    """
    Initializes the Engine.

    Args:
        recipe (Recipe, optional): The recipe to apply. Built from `config` if None.
        config (RuntimeConfig, optional): The runtime configuration. Defaults apply if None.
    """
    self.config = config or RuntimeConfig()
    if recipe is None:
      recipe_cls = get_recipe_class(self.config.recipe)
      if recipe_cls is None:
        raise ValueError(f"Unknown recipe: '{self.config.recipe}'")
      recipe = recipe_cls(self.config.parse_recipe_options(recipe_cls.options_model))
    self.recipe = recipe

  def parse(self, code: str) -> cst.Module:
    """
    Parses source string into a LibCST Module.

    Raises:
        libcst.ParserSyntaxError: If the input code is invalid Python.
    """
    return parse_unit(code)

  def rewrite_tree(
    self,
    tree: cst.Module,
    context: Optional[ExecutionContext] = None,
    tracer: Optional[TraceLogger] = None,
    unit: Optional[str] = None,
  ) -> cst.Module:
    """
    Rewrites one parsed unit.

    Args:
        tree: The unit. Never modified.
        context: Execution context receiving diagnostics.
        tracer: Trace sink for this unit.
        unit: Label used in diagnostics.

    Returns:
        cst.Module: The new tree, or `tree` itself when nothing was rewritten.
    """
    context = context or ExecutionContext(self.config)
    tracer = tracer or TraceLogger()

    gate = self.recipe.preconditions()
    tracer.start_phase("Preconditions", str(gate) if gate is not None else "none")
    passed = check(gate, tree, context)
    tracer.log_inspection(str(gate), "passed" if passed else "rejected")
    tracer.end_phase()
    if not passed:
      return tree

    tracer.start_phase("Rewrite", self.recipe.display_name)
    visitor = self.recipe.get_visitor(context, tracer, unit)
    new_tree = wrap_unit(tree).visit(visitor)
    tracer.end_phase()

    if new_tree is tree or not (visitor.imports_to_add or visitor.imports_to_remove):
      return new_tree

    tracer.start_phase("Import Fixer", "Applying queued import requests")
    fixer = ImportFixer(add=visitor.imports_to_add, remove=visitor.imports_to_remove, tracer=tracer)
    new_tree = new_tree.visit(fixer)
    tracer.end_phase()
    return new_tree

  def run(self, code: str, context: Optional[ExecutionContext] = None, unit: Optional[str] = None) -> RewriteResult:
    """
    Executes the full pipeline on source text.

    Args:
        code (str): The input source string.
        context (ExecutionContext, optional): Shared run context.
        unit (str, optional): Label of the unit, e.g. its path.

    Returns:
        RewriteResult: Object containing rewritten code and diagnostics.
    """
    context = context or ExecutionContext(self.config)
    tracer = TraceLogger()
    tracer.start_phase("Unit", unit or "<string>")

    try:
      tree = self.parse(code)
    except cst.ParserSyntaxError as e:
      tracer.log_diagnostic("parse_error", str(e))
      tracer.end_phase()
      return RewriteResult(
        code=code,
        errors=[f"{unit + ': ' if unit else ''}Parse Error: {e.message}"],
        success=False,
        trace_events=tracer.export(),
      )

    seen = len(context.diagnostics)
    new_tree = self.rewrite_tree(tree, context, tracer, unit)
    tracer.end_phase()

    errors = [d.render() for d in context.diagnostics[seen:] if d.unit == unit]
    new_code = new_tree.code
    changed = new_tree is not tree and new_code != code
    logger.debug("Rewrote %s: changed=%s, %d diagnostic(s)", unit or "<string>", changed, len(errors))
    return RewriteResult(
      code=new_code,
      changed=changed,
      errors=errors,
      trace_events=tracer.export(),
    )
