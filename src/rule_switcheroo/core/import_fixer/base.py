"""
Base Import Fixer Logic.

Defines the base class for the ImportFixer, handling initialization and the
state shared by the mixins: the queued requests, the identifiers the module
uses, and what was actually done.
"""

from typing import Iterable, List, Optional, Set

import libcst as cst

from rule_switcheroo.core.scanners import collect_used_names
from rule_switcheroo.core.tracer import TraceLogger


class BaseImportFixer(cst.CSTTransformer):
  """
  Base class for import manipulation.

  Requests are "maybe" requests: an addition only happens if the short name is
  used and still unbound, a removal only if the bound name is unused outside
  import statements. Both are therefore safe to repeat.
  """

  def __init__(
    self,
    add: Iterable[str] = (),
    remove: Iterable[str] = (),
    tracer: Optional[TraceLogger] = None,
  ):
    """
    Initializes the fixer state.

    Args:
        add: Fully qualified names to import (``okio.IOException``), in order.
        remove: Fully qualified names whose imports may be dropped.
        tracer: Optional trace sink for import actions.
    """
    self.to_add: List[str] = list(dict.fromkeys(add))
    self.to_remove: Set[str] = set(remove)
    self.tracer = tracer

    self.added: List[str] = []
    self.removed: List[str] = []
    self._used_names: Set[str] = set()

  def visit_Module(self, node: cst.Module) -> Optional[bool]:
    # Usage is computed once on the module as handed in; imports never count.
    self._used_names = collect_used_names(node)
    return True

  def _record(self, action: str, fqn: str) -> None:
    if action == "add":
      self.added.append(fqn)
    else:
      self.removed.append(fqn)
    if self.tracer is not None:
      self.tracer.log_import(action, fqn)
