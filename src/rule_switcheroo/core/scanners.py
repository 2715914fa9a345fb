"""
Read-only scanners for symbol usage.

These visitors never modify the tree; they answer whole-unit questions:

1.  `SymbolUsageScanner`: does the unit reference a fully qualified symbol
    (``okhttp3.mockwebserver.MockWebServer``) through any import binding?
    Backs the `UsesType` precondition.
2.  `NameUsageCollector`: which plain identifiers are used outside import
    statements? Backs the import manager's "remove if unused" and
    "add if used" decisions.
"""

from typing import Dict, Sequence, Set, Union

import libcst as cst


def get_full_name(node: cst.CSTNode) -> str:
  """
  Flattens a Name / Attribute chain to a dotted string.

  Args:
    node: Typically a `cst.Name` (``x``) or `cst.Attribute` (``x.y.z``).

  Returns:
    str: ``"x.y.z"``, or an empty string if any link of the chain is not a
    plain name (e.g. ``f().y``).

  Example:
    >>> get_full_name(cst.Attribute(value=cst.Name("junit"), attr=cst.Name("Rule")))
    'junit.Rule'
  """
  if isinstance(node, cst.Name):
    return node.value
  if isinstance(node, cst.Attribute):
    base = get_full_name(node.value)
    if not base:
      return ""
    return f"{base}.{node.attr.value}"
  return ""


def import_bindings(node: Union[cst.Import, cst.ImportFrom]) -> Dict[str, str]:
  """
  Local names bound by one import statement, mapped to what they denote.

  - ``import a.b`` binds ``a`` -> ``a``
  - ``import a.b as c`` binds ``c`` -> ``a.b``
  - ``from a.b import C as D`` binds ``D`` -> ``a.b.C``

  Relative and star imports bind nothing resolvable and are skipped.

  Args:
    node: The import node.

  Returns:
    Dict[str, str]: local name -> fully qualified name.
  """
  bindings: Dict[str, str] = {}
  if isinstance(node, cst.Import):
    for alias in node.names:
      full_name = get_full_name(alias.name)
      if alias.asname and isinstance(alias.asname.name, cst.Name):
        bindings[alias.asname.name.value] = full_name
      else:
        root = full_name.split(".")[0]
        bindings[root] = root
    return bindings

  if node.relative or node.module is None or isinstance(node.names, cst.ImportStar):
    return bindings

  module_name = get_full_name(node.module)
  for alias in node.names:
    imported = get_full_name(alias.name)
    if alias.asname and isinstance(alias.asname.name, cst.Name):
      bindings[alias.asname.name.value] = f"{module_name}.{imported}"
    else:
      bindings[imported] = f"{module_name}.{imported}"
  return bindings


def module_bindings(body: Sequence[cst.CSTNode]) -> Dict[str, str]:
  """
  Names bound at module level.

  Imports map to the fully qualified name they denote; local definitions
  (classes, functions, assignments) map to an empty string.

  Args:
    body: The statements of a module.

  Returns:
    Dict[str, str]: local name -> fully qualified name, or "".
  """
  bound: Dict[str, str] = {}
  for stmt in body:
    if isinstance(stmt, (cst.ClassDef, cst.FunctionDef)):
      bound[stmt.name.value] = ""
    elif isinstance(stmt, cst.SimpleStatementLine):
      for small in stmt.body:
        if isinstance(small, (cst.Import, cst.ImportFrom)):
          bound.update(import_bindings(small))
        elif isinstance(small, cst.Assign):
          for target in small.targets:
            if isinstance(target.target, cst.Name):
              bound[target.target.value] = ""
        elif isinstance(small, cst.AnnAssign) and isinstance(small.target, cst.Name):
          bound[small.target.value] = ""
  return bound


class SymbolUsageScanner(cst.CSTVisitor):
  """
  Detects references to a fully qualified symbol in a single linear scan.

  While walking, it records every import binding and every dotted reference
  made outside import statements. Resolution happens once at the end, so a
  reference that precedes its (function-local) import is still found.

  Attributes:
    fqn (str): The symbol looked for, e.g. ``junit.Rule``.
  """

  def __init__(self, fqn: str) -> None:
    self.fqn = fqn
    self._bindings: Dict[str, str] = {}
    self._references: Set[str] = set()
    self._in_import = False

  def visit_Import(self, node: cst.Import) -> None:
    self._in_import = True
    self._bindings.update(import_bindings(node))

  def leave_Import(self, original_node: cst.Import) -> None:
    self._in_import = False

  def visit_ImportFrom(self, node: cst.ImportFrom) -> None:
    self._in_import = True
    self._bindings.update(import_bindings(node))

  def leave_ImportFrom(self, original_node: cst.ImportFrom) -> None:
    self._in_import = False

  def visit_Attribute(self, node: cst.Attribute) -> bool:
    if self._in_import:
      return False
    full_name = get_full_name(node)
    if full_name:
      self._references.add(full_name)
    # The attribute name itself is not a free identifier.
    node.value.visit(self)
    return False

  def visit_Name(self, node: cst.Name) -> None:
    if not self._in_import:
      self._references.add(node.value)

  def found(self) -> bool:
    """
    Resolves the recorded references against the import bindings.

    Returns:
      bool: True if at least one reference denotes `fqn`.
    """
    for ref in self._references:
      root, _, rest = ref.partition(".")
      bound = self._bindings.get(root)
      if bound is None:
        continue
      resolved = f"{bound}.{rest}" if rest else bound
      if resolved == self.fqn:
        return True
    return False


class NameUsageCollector(cst.CSTVisitor):
  """
  Collects identifiers referenced outside import statements.

  Attribute names (the ``y`` in ``x.y``) are not free identifiers and are not
  collected, so ``self.Rule`` does not keep ``from junit import Rule`` alive.

  Attributes:
    used (Set[str]): The collected names.
  """

  def __init__(self) -> None:
    self.used: Set[str] = set()

  def visit_Import(self, node: cst.Import) -> bool:
    return False

  def visit_ImportFrom(self, node: cst.ImportFrom) -> bool:
    return False

  def visit_Attribute(self, node: cst.Attribute) -> bool:
    node.value.visit(self)
    return False

  def visit_Name(self, node: cst.Name) -> None:
    self.used.add(node.value)


def collect_used_names(node: cst.CSTNode) -> Set[str]:
  """
  Convenience wrapper around `NameUsageCollector`.

  Args:
    node: Usually the whole module.

  Returns:
    Set[str]: Identifiers used outside imports.
  """
  collector = NameUsageCollector()
  node.visit(collector)
  return collector.used
