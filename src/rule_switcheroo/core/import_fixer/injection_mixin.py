"""
Import Injection Mixin.

Handles the post-processing of the Module to:
1.  Decide which queued imports are needed (name used, not yet bound).
2.  Merge them into an existing ``from module import ...`` statement, or
    insert new statements after the last top-level import.
3.  Perform final deduplication of import statements.
"""

from typing import Dict, List, Optional, Set, Tuple

import libcst as cst

from rule_switcheroo.core.import_fixer.utils import (
  create_dotted_name,
  get_signature,
  is_docstring,
  is_future_import,
  is_import_line,
)
from rule_switcheroo.core.scanners import get_full_name, module_bindings


def _find_from_import(body: List[cst.CSTNode], module: str) -> Optional[Tuple[int, int]]:
  for idx, stmt in enumerate(body):
    if not isinstance(stmt, cst.SimpleStatementLine):
      continue
    for pos, small in enumerate(stmt.body):
      if not isinstance(small, cst.ImportFrom) or small.relative or small.module is None:
        continue
      if isinstance(small.names, cst.ImportStar):
        continue
      if get_full_name(small.module) == module:
        return idx, pos
  return None


class InjectionMixin(cst.CSTTransformer):
  """
  Mixin for injecting imports at the Module level.
  """

  def leave_Module(self, original_node: cst.Module, updated_node: cst.Module) -> cst.Module:
    """
    Post-process module to inject imports and perform final deduplication.

    Args:
        original_node: Original module.
        updated_node: Module after children processing.

    Returns:
        Modified module with injected imports.
    """
    body = list(updated_node.body)
    bound = module_bindings(body)

    pending: Dict[str, List[str]] = {}
    for fqn in self.to_add:
      module, _, name = fqn.rpartition(".")
      if not module or name not in self._used_names:
        continue
      if name in bound:
        if bound[name] != fqn and self.tracer is not None:
          self.tracer.log_inspection(fqn, "skipped", f"'{name}' is already bound to {bound[name] or 'a local'}")
        continue
      bound[name] = fqn
      pending.setdefault(module, []).append(name)
      self._record("add", fqn)

    if not pending:
      return updated_node

    injections: List[cst.CSTNode] = []
    for module, names in pending.items():
      aliases = [cst.ImportAlias(name=cst.Name(name)) for name in names]
      found = _find_from_import(body, module)
      if found is not None:
        idx, pos = found
        line = body[idx]
        existing = line.body[pos]
        merged = existing.with_changes(names=[*existing.names, *aliases])
        small = list(line.body)
        small[pos] = merged
        body[idx] = line.with_changes(body=small)
        continue

      injections.append(
        cst.SimpleStatementLine(body=[cst.ImportFrom(module=create_dotted_name(module), names=aliases)])
      )

    insert_idx = self._insertion_index(body)
    merged_body = body[:insert_idx] + injections + body[insert_idx:]

    # -- Final Deduplication Pass --
    clean_body = []
    seen_imports: Set[str] = set()
    for stmt in merged_body:
      if is_import_line(stmt):
        sig = get_signature(stmt)
        if sig in seen_imports:
          continue
        seen_imports.add(sig)
      clean_body.append(stmt)

    return updated_node.with_changes(body=clean_body)

  @staticmethod
  def _insertion_index(body: List[cst.CSTNode]) -> int:
    """After the last top-level import, else after the docstring and future imports."""
    last_import = None
    for i, stmt in enumerate(body):
      if is_import_line(stmt):
        last_import = i
    if last_import is not None:
      return last_import + 1

    insert_idx = 0
    for i, stmt in enumerate(body):
      if is_docstring(stmt, i) or is_future_import(stmt):
        insert_idx = i + 1
        continue
      break
    return insert_idx
