"""
Structural Pattern Matchers.

Matchers are small immutable objects describing a node shape. They compare
*resolved* identities (fully qualified names supplied by a resolver) rather
than source text, and fail closed: a node without resolution data never
matches and never raises.

- `AnnotationMatcher("junit.Rule")` recognizes a marker applied to a
  declaration: a decorator (``@AfterEach`` / ``@AfterEach()``), an element of
  ``Annotated[...]`` metadata, or the bare marker expression.
- `TypeMatcher("okhttp3.mockwebserver.MockWebServer")` recognizes a declaration
  whose declared type is that class, looking through ``Annotated[T, ...]``.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import libcst as cst

from rule_switcheroo.core.resolution import Resolver

ANNOTATED_FQNS: Tuple[str, ...] = ("typing.Annotated", "typing_extensions.Annotated")


def marker_expression(node: cst.CSTNode) -> Optional[cst.BaseExpression]:
  """
  Extracts the expression naming the marker type.

  ``@throws(IOException)`` and ``Rule()`` are reduced to their callee.

  Args:
      node: A `Decorator`, `SubscriptElement` or expression.

  Returns:
      Optional[cst.BaseExpression]: The marker expression, or None.
  """
  if isinstance(node, cst.Decorator):
    node = node.decorator
  elif isinstance(node, cst.SubscriptElement):
    if not isinstance(node.slice, cst.Index):
      return None
    node = node.slice.value

  if isinstance(node, cst.Call):
    node = node.func
  if isinstance(node, cst.BaseExpression):
    return node
  return None


def annotated_parts(expr: cst.BaseExpression, resolve: Resolver) -> Optional[cst.Subscript]:
  """
  Returns `expr` if it is an ``Annotated[T, ...]`` subscript, else None.

  Args:
      expr: An annotation expression.
      resolve: Qualified-name resolver.
  """
  if not isinstance(expr, cst.Subscript):
    return None
  if not any(fqn in ANNOTATED_FQNS for fqn in resolve(expr.value)):
    return None
  if not expr.slice or not isinstance(expr.slice[0].slice, cst.Index):
    return None
  return expr


def declared_type_expression(node: cst.CSTNode, resolve: Resolver) -> Optional[cst.BaseExpression]:
  """
  Finds the expression holding a declaration's type.

  Args:
      node: An `AnnAssign`, `Param`, `Annotation` or a type expression.
      resolve: Qualified-name resolver (used to recognize ``Annotated``).

  Returns:
      Optional[cst.BaseExpression]: The type expression, ``Annotated`` unwrapped.
  """
  if isinstance(node, (cst.AnnAssign, cst.Param)):
    node = node.annotation
  if node is None:
    return None
  if isinstance(node, cst.Annotation):
    node = node.annotation
  if not isinstance(node, cst.BaseExpression):
    return None

  annotated = annotated_parts(node, resolve)
  if annotated is not None:
    return annotated.slice[0].slice.value
  return node


@dataclass(frozen=True)
class AnnotationMatcher:
  """
  Matches a marker of fully qualified type `fqn`.

  Attributes:
      fqn: e.g. ``junit.jupiter.api.AfterEach``.
  """

  fqn: str

  def matches(self, node: cst.CSTNode, resolve: Resolver) -> bool:
    expr = marker_expression(node)
    if expr is None:
      return False
    return self.fqn in resolve(expr)

  def __str__(self) -> str:
    return f"@{self.fqn}"


@dataclass(frozen=True)
class TypeMatcher:
  """
  Matches a declaration whose declared type is the class `fqn`.

  Attributes:
      fqn: e.g. ``okhttp3.mockwebserver.MockWebServer``.
  """

  fqn: str

  def matches(self, node: cst.CSTNode, resolve: Resolver) -> bool:
    expr = declared_type_expression(node, resolve)
    if expr is None:
      return False
    return self.fqn in resolve(expr)

  def __str__(self) -> str:
    return self.fqn
