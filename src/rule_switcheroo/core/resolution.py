"""
Tree Provider: parsing and symbol resolution.

The rewriting core consumes already-resolved trees. Resolution is delegated
to LibCST's metadata machinery: `QualifiedNameProvider` attaches to each
`Name` / `Attribute` the fully qualified names it may denote, following
``import ... as ...`` aliases. Matching by those names instead of by source
text lets ``from junit import Rule as R`` and ``junit.Rule`` match the same
pattern.
"""

from typing import Any, Callable, Collection, FrozenSet, Mapping

import libcst as cst
from libcst.metadata import MetadataWrapper, QualifiedName, QualifiedNameProvider

Resolver = Callable[[cst.CSTNode], FrozenSet[str]]


def parse_unit(code: str) -> cst.Module:
  """
  Parses one compilation unit.

  Args:
      code: Python source code.

  Returns:
      cst.Module: The concrete syntax tree.

  Raises:
      libcst.ParserSyntaxError: If the code is not valid Python.
  """
  return cst.parse_module(code)


def wrap_unit(tree: cst.Module) -> MetadataWrapper:
  """
  Prepares `tree` for metadata resolution without copying it.

  Parsed modules never contain the same node object twice, so skipping the
  defensive deep copy is safe, and it keeps the node identities of the caller's
  tree: untouched subtrees of a rewrite are the caller's own objects.

  Args:
      tree: A parsed module.

  Returns:
      MetadataWrapper: Wrapper whose `.module` is `tree` itself.
  """
  return MetadataWrapper(tree, unsafe_skip_copy=True)


class NameResolver:
  """
  Callable view over a resolved qualified-name table.

  ``resolver(node)`` returns the fully qualified names of `node`, or an empty
  set for nodes outside the table (synthesized nodes, partial trees).

  Entries may be lazy (recent LibCST resolves `QualifiedNameProvider` on
  demand); they are computed on first lookup.
  """

  def __init__(self, table: Mapping[cst.CSTNode, Any]) -> None:
    self._table = table

  @classmethod
  def for_wrapper(cls, wrapper: MetadataWrapper) -> "NameResolver":
    """Resolves `QualifiedNameProvider` over the wrapped module."""
    return cls(wrapper.resolve(QualifiedNameProvider))

  def __call__(self, node: cst.CSTNode) -> FrozenSet[str]:
    entry = self._table.get(node, ())
    if callable(entry):
      entry = entry()
    names: Collection[QualifiedName] = entry or ()
    return frozenset(q.name for q in names)
