"""
Base Rewriter Implementation with Cursor Tracking and Structural Sharing.

This module provides the ``BaseRewriter`` class, which serves as the foundation
for recipe visitors. It handles:

1.  **Cursor Management**: Every visited node gets a `Frame` on the rewriter's
    `Cursor`, so post-order hooks can exchange messages with enclosing nodes.
2.  **Structural Sharing**: A subtree in which no hook produced a new node is
    handed back as the *original* node object. A traversal that rewrites
    nothing therefore returns its input tree itself.
3.  **Symbol Resolution**: Qualified names from `QualifiedNameProvider`.
4.  **Import Requests**: ``maybe_add_import`` / ``maybe_remove_import`` queue
    work for the import fixer that runs after the traversal. ``ensure_importable``
    refuses names whose short form the module already binds to another symbol.
5.  **Error Reporting**: Synthesis failures become diagnostics on the
    execution context instead of aborting the unit.
"""

import logging
from typing import Dict, FrozenSet, List, Optional, Union

import libcst as cst
from libcst.metadata import QualifiedNameProvider

from rule_switcheroo.core.context import Diagnostic, DiagnosticKind, ExecutionContext
from rule_switcheroo.core.cursor import Cursor
from rule_switcheroo.core.errors import SynthesisError
from rule_switcheroo.core.scanners import module_bindings
from rule_switcheroo.core.tracer import TraceLogger
from rule_switcheroo.utils.node_diff import describe_node

logger = logging.getLogger(__name__)


class BaseRewriter(cst.CSTTransformer):
  """
  The base class for recipe traversals.

  Subclasses implement ``leave_*`` hooks and use `cursor` to post findings to
  enclosing declarations. A rewriter instance serves exactly one traversal.
  """

  METADATA_DEPENDENCIES = (QualifiedNameProvider,)

  def __init__(
    self,
    context: ExecutionContext,
    tracer: Optional[TraceLogger] = None,
    unit: Optional[str] = None,
  ):
    """
    Initializes the rewriter.

    Args:
        context: The run's execution context (configuration, diagnostics sink).
        tracer: Trace sink for this unit. A private one is created if omitted.
        unit: Label of the unit being rewritten, used in diagnostics.
    """
    self.context = context
    self.tracer = tracer or TraceLogger()
    self.unit = unit
    self.cursor = Cursor()

    self.imports_to_add: List[str] = []
    self.imports_to_remove: List[str] = []
    self.module_bindings: Dict[str, str] = {}
    self.diagnostics: List[Diagnostic] = []

  def visit_Module(self, node: cst.Module) -> Optional[bool]:
    self.module_bindings = module_bindings(node.body)
    return True

  def on_visit(self, node: cst.CSTNode) -> bool:
    self.cursor.push(node)
    return super().on_visit(node)

  def on_leave(
    self, original_node: cst.CSTNode, updated_node: cst.CSTNode
  ) -> Union[cst.CSTNode, cst.RemovalSentinel, cst.FlattenSentinel]:
    result = super().on_leave(original_node, updated_node)
    frame = self.cursor.pop()
    if not frame.dirty and (result is updated_node or result is original_node):
      return original_node
    if frame.parent is not None:
      frame.parent.dirty = True
    return result

  def qualified_names(self, node: cst.CSTNode) -> FrozenSet[str]:
    """
    Fully qualified names `node` may denote.

    Args:
        node: Usually a `Name` or `Attribute` of the original tree.

    Returns:
        FrozenSet[str]: Empty for nodes without resolution data.
    """
    return frozenset(q.name for q in self.get_metadata(QualifiedNameProvider, node, set()))

  def ensure_importable(self, *fqns: str) -> None:
    """
    Checks that synthesized code may refer to each of `fqns` by its short name.

    Args:
        *fqns: Fully qualified names the code about to be synthesized uses.

    Raises:
        SynthesisError: If the module already binds a short name to a
            different symbol or to a local definition.
    """
    for fqn in fqns:
      name = fqn.rpartition(".")[2]
      bound = self.module_bindings.get(name)
      if bound is not None and bound != fqn:
        raise SynthesisError(f"'{name}' is already bound to {bound or 'a local definition'}, cannot refer to {fqn}")

  def maybe_add_import(self, fqn: str) -> None:
    """Queues an import of `fqn`, added later only if its name ends up used."""
    if fqn not in self.imports_to_add:
      self.imports_to_add.append(fqn)

  def maybe_remove_import(self, fqn: str) -> None:
    """Queues removal of `fqn`'s import, performed later only if unused."""
    if fqn not in self.imports_to_remove:
      self.imports_to_remove.append(fqn)

  def report_synthesis_error(self, node: cst.CSTNode, error: SynthesisError) -> None:
    """
    Records a class-scoped synthesis failure.

    Args:
        node: The declaration that was left unmodified.
        error: The failure.
    """
    diagnostic = Diagnostic(
      kind=DiagnosticKind.SYNTHESIS_ERROR,
      message=error.reason,
      node=describe_node(node),
      unit=self.unit,
    )
    self.diagnostics.append(diagnostic)
    self.context.add_diagnostic(diagnostic)
    self.tracer.log_diagnostic(diagnostic.kind.value, diagnostic.render())
    logger.debug("Synthesis failed for %s: %s", diagnostic.node, error.reason)
