"""
Utilities for the Import Fixer.

Contains static helper functions for analyzing import nodes, generating
signatures for deduplication, and creating CST nodes.
"""

from typing import Optional, Tuple, Union

import libcst as cst

from rule_switcheroo.core.scanners import get_full_name
from rule_switcheroo.utils.node_diff import capture_node_source


def create_dotted_name(name_str: str) -> Union[cst.Name, cst.Attribute]:
  """
  Creates a CST node structure for a dotted path string.

  Args:
      name_str (str): Dot-separated path (e.g. "junit.jupiter.api").

  Returns:
      Union[cst.Name, cst.Attribute]: The constructed node.
  """
  parts = name_str.split(".")
  node = cst.Name(parts[0])
  for part in parts[1:]:
    node = cst.Attribute(value=node, attr=cst.Name(part))
  return node


def alias_target(
  node: Union[cst.Import, cst.ImportFrom], alias: cst.ImportAlias
) -> Optional[Tuple[str, str]]:
  """
  The local name one import alias binds, and the dotted path it imports.

  ``from junit import Rule as R`` gives ``("R", "junit.Rule")``;
  ``import junit.Rule`` gives ``("junit", "junit.Rule")``.

  Args:
      node: The import statement holding `alias`.
      alias: One of its aliases.

  Returns:
      Optional[Tuple[str, str]]: (local name, imported path), or None for
      relative imports.
  """
  imported = get_full_name(alias.name)
  local = None
  if alias.asname and isinstance(alias.asname.name, cst.Name):
    local = alias.asname.name.value

  if isinstance(node, cst.Import):
    return local or imported.split(".")[0], imported

  if node.relative or node.module is None:
    return None
  return local or imported, f"{get_full_name(node.module)}.{imported}"


def is_import_line(node: cst.CSTNode) -> bool:
  """True for a simple statement line made only of import statements."""
  if not isinstance(node, cst.SimpleStatementLine) or not node.body:
    return False
  return all(isinstance(small, (cst.Import, cst.ImportFrom)) for small in node.body)


def get_signature(node: cst.CSTNode) -> str:
  """
  Computes a deduplication signature for an import statement.

  It normalizes the source code representation to ignore basic formatting
  differences, allowing detection of duplicate import injections.

  Args:
      node: The CST node to sign.

  Returns:
      str: Normalized source code string.
  """
  target = node
  if isinstance(target, cst.SimpleStatementLine) and len(target.body) == 1:
    target = target.body[0]
  if isinstance(target, (cst.Import, cst.ImportFrom)):
    target = target.with_changes(semicolon=cst.MaybeSentinel.DEFAULT)

  src = capture_node_source(target)
  return " ".join(src.split())


def is_docstring(node: cst.CSTNode, idx: int) -> bool:
  """
  Determines if a statement node represents a module docstring.

  Args:
      node: The statement node from the module body.
      idx: The index of this statement in the body list.

  Returns:
      bool: True if it is a docstring (string expression at index 0).
  """
  if idx != 0:
    return False
  if isinstance(node, cst.SimpleStatementLine):
    if len(node.body) == 1 and isinstance(node.body[0], cst.Expr):
      expr = node.body[0].value
      if isinstance(expr, (cst.SimpleString, cst.ConcatenatedString)):
        return True
  return False


def is_future_import(node: cst.CSTNode) -> bool:
  """
  Determines if a statement is a `from __future__ import ...` directive.

  Args:
      node: The statement node.

  Returns:
      bool: True if it is a future import.
  """
  if isinstance(node, cst.SimpleStatementLine):
    for small_stmt in node.body:
      if isinstance(small_stmt, cst.ImportFrom):
        if small_stmt.module and isinstance(small_stmt.module, cst.Name):
          if small_stmt.module.value == "__future__":
            return True
  return False
