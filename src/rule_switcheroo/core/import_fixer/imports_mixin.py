"""
Import Pruning Mixin.

Drops aliases of ``import`` / ``from ... import`` statements that a rewrite
made obsolete. An alias goes only when its fully qualified target was queued
for removal and its local name is no longer referenced anywhere in the module.
A statement left without aliases is removed from its block.
"""

from typing import List, Optional, Union

import libcst as cst

from rule_switcheroo.core.import_fixer.utils import alias_target


class ImportMixin(cst.CSTTransformer):
  """
  Mixin for pruning Import statements.
  """

  def leave_SimpleStatementLine(
    self, original_node: cst.SimpleStatementLine, updated_node: cst.SimpleStatementLine
  ) -> Union[cst.SimpleStatementLine, cst.RemovalSentinel]:
    if not self.to_remove:
      return updated_node

    changed = False
    body: List[cst.BaseSmallStatement] = []
    for small in updated_node.body:
      if isinstance(small, (cst.Import, cst.ImportFrom)):
        pruned = self._prune(small)
        if pruned is not small:
          changed = True
        if pruned is None:
          continue
        small = pruned
      body.append(small)

    if not changed:
      return updated_node
    if not body:
      return cst.RemoveFromParent()

    body[-1] = body[-1].with_changes(semicolon=cst.MaybeSentinel.DEFAULT)
    return updated_node.with_changes(body=body)

  def _prune(
    self, node: Union[cst.Import, cst.ImportFrom]
  ) -> Optional[Union[cst.Import, cst.ImportFrom]]:
    """
    Returns `node` untouched, a copy with fewer aliases, or None when every
    alias went away.
    """
    if isinstance(node, cst.ImportFrom) and isinstance(node.names, cst.ImportStar):
      return node

    keep = []
    for alias in node.names:
      target = alias_target(node, alias)
      if target is not None:
        local, fqn = target
        if fqn in self.to_remove and local not in self._used_names:
          self._record("remove", fqn)
          continue
      keep.append(alias)

    if len(keep) == len(node.names):
      return node
    if not keep:
      return None

    parenthesized = isinstance(node, cst.ImportFrom) and node.lpar is not None
    if not parenthesized or not isinstance(node.names[-1].comma, cst.Comma):
      keep[-1] = keep[-1].with_changes(comma=cst.MaybeSentinel.DEFAULT)
    return node.with_changes(names=keep)
