"""
Auto-formatter for synthesized code.

Runs after a structural edit, never before. It only touches statements that
were not part of the original block. Indentation needs no work: LibCST blocks
built from templates carry no explicit indent, so they render with the host
module's default indent.

Spacing rules for new block members:

- A new compound statement (``def`` / ``class``) copies the blank lines (not
  the comments) in front of the closest preceding compound sibling that is
  not the first statement of the block. With no such sibling it
  gets one blank line inside a class and two at module level.
- A new simple statement gets no blank lines.
"""

from typing import List, Sequence, Set

import libcst as cst


def _block_of(node: cst.CSTNode) -> Sequence[cst.CSTNode]:
  if isinstance(node, cst.Module):
    return node.body
  if isinstance(node, cst.IndentedBlock):
    return node.body
  if isinstance(node, (cst.ClassDef, cst.FunctionDef)) and isinstance(node.body, cst.IndentedBlock):
    return node.body.body
  return ()


def _default_gap(container: cst.CSTNode) -> List[cst.EmptyLine]:
  if isinstance(container, cst.Module):
    return [cst.EmptyLine(indent=False), cst.EmptyLine(indent=False)]
  return [cst.EmptyLine(indent=False)]


def _format_statements(
  container: cst.CSTNode, statements: Sequence[cst.CSTNode], existing: Set[int]
) -> List[cst.CSTNode]:
  formatted: List[cst.CSTNode] = []
  last_gap = None

  for stmt in statements:
    is_compound = isinstance(stmt, (cst.FunctionDef, cst.ClassDef))
    if id(stmt) in existing:
      if is_compound and formatted:
        last_gap = [line for line in stmt.leading_lines if line.comment is None]
      formatted.append(stmt)
      continue

    if is_compound:
      gap = [line.deep_clone() for line in last_gap] if last_gap is not None else _default_gap(container)
      # The first statement of a block hugs the header.
      if not formatted:
        gap = []
      stmt = stmt.with_changes(leading_lines=gap)
      last_gap = gap or last_gap
    elif isinstance(stmt, (cst.SimpleStatementLine, cst.BaseCompoundStatement)):
      stmt = stmt.with_changes(leading_lines=())
    formatted.append(stmt)

  return formatted


def auto_format(original: cst.CSTNode, updated: cst.CSTNode) -> cst.CSTNode:
  """
  Reformats the members `updated` gained relative to `original`.

  Args:
      original: The node before the edit.
      updated: The node after the edit (same kind as `original`).

  Returns:
      cst.CSTNode: `updated`, with new members spaced like their siblings.
  """
  new_statements = _block_of(updated)
  if not new_statements:
    return updated

  existing = {id(stmt) for stmt in _block_of(original)}
  formatted = _format_statements(updated, new_statements, existing)

  if isinstance(updated, (cst.Module, cst.IndentedBlock)):
    return updated.with_changes(body=formatted)
  return updated.with_changes(body=updated.body.with_changes(body=formatted))
