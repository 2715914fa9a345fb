"""
Template Synthesizer.

A `Template` is a snippet of Python with typed placeholders that is parsed
once, checked once, and then spliced into host trees any number of times.

Placeholders
------------

``{name}`` is an untyped placeholder; ``{name:pkg.mod.Type}`` declares that
the fragment bound to it must resolve to ``pkg.mod.Type``. Declared types
must be listed in the template's imports.

.. code-block:: python

    close_call = Template.build(
      "{server:okhttp3.mockwebserver.MockWebServer}.close()",
      imports=("okhttp3.mockwebserver.MockWebServer",),
    )
    method = close_call.apply(
      method,
      InsertionPoint.last_statement(),
      TypedFragment(server_expr, "okhttp3.mockwebserver.MockWebServer"),
    )

Insertion slots
---------------

- ``last_statement``: append the template's statements to the target block.
- ``throws_clause``: append the template's expression to the target
  function's ``@throws(...)`` decorator (creating it when missing).

Applying never mutates the target. The returned node has passed through the
auto-formatter.
"""

import builtins
import re
import textwrap
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple, Union

import libcst as cst

from rule_switcheroo.core.errors import SynthesisError, TemplateError
from rule_switcheroo.core.formatting import auto_format
from rule_switcheroo.core.import_fixer.utils import create_dotted_name
from rule_switcheroo.core.scanners import collect_used_names, get_full_name

PLACEHOLDER_RE = re.compile(r"\{\s*(?P<name>[A-Za-z_]\w*)\s*(?::\s*(?P<type>[A-Za-z_][\w.]*)\s*)?\}")

_RESERVED = "__tpl_{}__"

_IMPLICIT_NAMES: FrozenSet[str] = frozenset(dir(builtins)) | {"self", "cls"}


class TemplateKind(str, Enum):
  STATEMENTS = "statements"
  EXPRESSION = "expression"


class InsertionSlot(str, Enum):
  LAST_STATEMENT = "last_statement"
  THROWS_CLAUSE = "throws_clause"


_SLOTS_BY_KIND = {
  TemplateKind.STATEMENTS: frozenset({InsertionSlot.LAST_STATEMENT}),
  TemplateKind.EXPRESSION: frozenset({InsertionSlot.THROWS_CLAUSE}),
}


@dataclass(frozen=True)
class InsertionPoint:
  """
  Where a template is spliced into its target.

  Attributes:
      slot: The kind of position.
      decorator: For throws clauses, the local spelling of the throws decorator.
  """

  slot: InsertionSlot
  decorator: Optional[str] = None

  @classmethod
  def last_statement(cls) -> "InsertionPoint":
    return cls(InsertionSlot.LAST_STATEMENT)

  @classmethod
  def throws_clause(cls, decorator: str = "throws") -> "InsertionPoint":
    return cls(InsertionSlot.THROWS_CLAUSE, decorator)


@dataclass(frozen=True)
class Placeholder:
  name: str
  type_fqn: Optional[str] = None
  # Appears where only an identifier is legal (def name, attribute name, ...).
  name_only: bool = False


@dataclass(frozen=True)
class TypedFragment:
  """
  An already-resolved tree fragment bound to a placeholder.

  Attributes:
      node: The expression (or `Name`) to splice in.
      type_fqn: Its resolved type, None when unknown.
  """

  node: cst.CSTNode
  type_fqn: Optional[str] = None


FragmentLike = Union[TypedFragment, cst.CSTNode]


class _PlaceholderTransformer(cst.CSTTransformer):
  def __init__(self, bindings: Dict[str, cst.CSTNode]) -> None:
    self.bindings = bindings

  def leave_Name(self, original_node: cst.Name, updated_node: cst.Name) -> cst.BaseExpression:
    bound = self.bindings.get(updated_node.value)
    if bound is None:
      return updated_node
    # A fresh copy per use keeps node identities unique within the host tree.
    return bound.deep_clone()


class _NameSlotCollector(cst.CSTVisitor):
  def __init__(self) -> None:
    self.names: Set[str] = set()

  def visit_FunctionDef(self, node: cst.FunctionDef) -> None:
    self.names.add(node.name.value)

  def visit_ClassDef(self, node: cst.ClassDef) -> None:
    self.names.add(node.name.value)

  def visit_Param(self, node: cst.Param) -> None:
    self.names.add(node.name.value)

  def visit_Attribute(self, node: cst.Attribute) -> None:
    self.names.add(node.attr.value)


class _SignatureSymbolCollector(cst.CSTVisitor):
  """Names used by decorators and annotations of a statement template."""

  def __init__(self) -> None:
    self.names: Set[str] = set()

  def visit_Decorator(self, node: cst.Decorator) -> None:
    self.names |= collect_used_names(node.decorator)

  def visit_Annotation(self, node: cst.Annotation) -> None:
    self.names |= collect_used_names(node.annotation)


def _is_trivial(stmt: cst.CSTNode) -> bool:
  if not isinstance(stmt, cst.SimpleStatementLine):
    return False
  if stmt.trailing_whitespace.comment is not None:
    return False
  if any(line.comment is not None for line in stmt.leading_lines):
    return False
  for small in stmt.body:
    if isinstance(small, cst.Pass):
      continue
    if isinstance(small, cst.Expr) and isinstance(small.value, cst.Ellipsis):
      continue
    return False
  return True


def _strip_trivial(body: Sequence[cst.CSTNode]) -> List[cst.CSTNode]:
  if body and all(_is_trivial(stmt) for stmt in body):
    return []
  return list(body)


def _expand_suite(suite: cst.SimpleStatementSuite) -> cst.IndentedBlock:
  lines = [
    cst.SimpleStatementLine(body=[small.with_changes(semicolon=cst.MaybeSentinel.DEFAULT)]) for small in suite.body
  ]
  return cst.IndentedBlock(header=suite.trailing_whitespace, body=lines)


def _append_statements(target: cst.CSTNode, statements: Sequence[cst.CSTNode]) -> cst.CSTNode:
  if isinstance(target, (cst.Module, cst.IndentedBlock)):
    return target.with_changes(body=[*_strip_trivial(target.body), *statements])

  if isinstance(target, (cst.ClassDef, cst.FunctionDef)):
    body = target.body
    if isinstance(body, cst.SimpleStatementSuite):
      body = _expand_suite(body)
    return target.with_changes(body=_append_statements(body, statements))

  raise SynthesisError(f"{type(target).__name__} has no statement block to append to")


def _append_throws(target: cst.CSTNode, entry: cst.BaseExpression, decorator: str) -> cst.CSTNode:
  if not isinstance(target, cst.FunctionDef):
    raise SynthesisError(f"{type(target).__name__} has no throws clause")

  new_arg = cst.Arg(value=entry)
  decorators = list(target.decorators)

  for idx, deco in enumerate(decorators):
    expr = deco.decorator
    if isinstance(expr, cst.Call) and get_full_name(expr.func) == decorator:
      args = list(expr.args)
      if args and isinstance(args[-1].comma, cst.Comma):
        args[-1] = args[-1].with_changes(comma=cst.MaybeSentinel.DEFAULT)
      decorators[idx] = deco.with_changes(decorator=expr.with_changes(args=[*args, new_arg]))
      break
    if get_full_name(expr) == decorator:
      decorators[idx] = deco.with_changes(decorator=cst.Call(func=expr, args=[new_arg]))
      break
  else:
    decorators.append(cst.Decorator(decorator=cst.Call(func=create_dotted_name(decorator), args=[new_arg])))

  return target.with_changes(decorators=decorators)


@dataclass(frozen=True, eq=False)
class Template:
  """
  A parsed, checked, reusable code template. Immutable; safe to share.

  Attributes:
      source: The template text as written.
      imports: Fully qualified names the template refers to.
      kind: Statements or a single expression.
      placeholders: Placeholders in order of first appearance.
      prototype: Pre-parsed nodes (placeholders as reserved identifiers).
  """

  source: str
  imports: Tuple[str, ...]
  kind: TemplateKind
  placeholders: Tuple[Placeholder, ...]
  prototype: Tuple[cst.CSTNode, ...]

  @property
  def slots(self) -> FrozenSet[InsertionSlot]:
    return _SLOTS_BY_KIND[self.kind]

  @classmethod
  def build(
    cls,
    source: str,
    imports: Iterable[str] = (),
    kind: TemplateKind = TemplateKind.STATEMENTS,
  ) -> "Template":
    """
    Parses and checks a template.

    Args:
        source: Template text (dedented automatically).
        imports: Fully qualified names the template refers to.
        kind: Whether the text is a block of statements or one expression.

    Returns:
        Template: The built template.

    Raises:
        TemplateError: On syntax errors, inconsistent placeholders, placeholder
            types missing from `imports`, or symbols outside the template's
            symbol environment.
    """
    imports = tuple(imports)
    found: Dict[str, Placeholder] = {}

    def _swap(match: "re.Match[str]") -> str:
      name, type_fqn = match.group("name"), match.group("type")
      known = found.get(name)
      if known is None:
        found[name] = Placeholder(name, type_fqn)
      elif type_fqn is not None and known.type_fqn != type_fqn:
        raise TemplateError(f"Placeholder '{name}' is declared with conflicting types")
      return _RESERVED.format(name)

    text = PLACEHOLDER_RE.sub(_swap, textwrap.dedent(source)).strip()

    for placeholder in found.values():
      if placeholder.type_fqn and placeholder.type_fqn not in imports:
        raise TemplateError(
          f"Placeholder '{placeholder.name}' declares type {placeholder.type_fqn}, which is not a template import"
        )

    try:
      if kind is TemplateKind.EXPRESSION:
        prototype: Tuple[cst.CSTNode, ...] = (cst.parse_expression(text),)
      else:
        prototype = tuple(cst.parse_module(text + "\n").body)
    except cst.ParserSyntaxError as e:
      raise TemplateError(f"Template does not parse: {e.message}") from e

    if not prototype:
      raise TemplateError("Template is empty")

    reserved = {_RESERVED.format(name): name for name in found}
    environment = _IMPLICIT_NAMES | set(reserved) | {fqn.rsplit(".", 1)[-1] for fqn in imports}
    unknown = cls._referenced_symbols(prototype, kind) - environment
    if unknown:
      raise TemplateError(f"Template refers to unknown symbol(s): {', '.join(sorted(unknown))}")

    slot_collector = _NameSlotCollector()
    for node in prototype:
      node.visit(slot_collector)
    placeholders = tuple(
      Placeholder(p.name, p.type_fqn, _RESERVED.format(p.name) in slot_collector.names) for p in found.values()
    )

    return cls(source=source, imports=imports, kind=kind, placeholders=placeholders, prototype=prototype)

  @staticmethod
  def _referenced_symbols(prototype: Sequence[cst.CSTNode], kind: TemplateKind) -> Set[str]:
    if kind is TemplateKind.EXPRESSION:
      return collect_used_names(prototype[0])
    collector = _SignatureSymbolCollector()
    for node in prototype:
      node.visit(collector)
    return collector.names

  def apply(self, target: cst.CSTNode, point: InsertionPoint, *fragments: FragmentLike, **named: FragmentLike) -> Any:
    """
    Splices the template into `target`.

    Args:
        target: The node receiving the fragment.
        point: The insertion slot.
        *fragments: Bound to the placeholders not bound by keyword, in order.
        **named: Fragments bound by placeholder name.

    Returns:
        The new `target` node (the input is left untouched).

    Raises:
        SynthesisError: On binding / type mismatches or an unusable slot.
    """
    if point.slot not in self.slots:
      raise SynthesisError(f"A {self.kind.value} template cannot fill a {point.slot.value} slot")

    nodes = self._instantiate(self._bind(fragments, named))

    if point.slot is InsertionSlot.LAST_STATEMENT:
      updated = _append_statements(target, nodes)
    else:
      updated = _append_throws(target, nodes[0], point.decorator or "throws")
    return auto_format(target, updated)

  def _bind(self, fragments: Sequence[FragmentLike], named: Dict[str, FragmentLike]) -> Dict[str, cst.CSTNode]:
    declared = {p.name for p in self.placeholders}
    unknown = set(named) - declared
    if unknown:
      raise SynthesisError(f"Unknown placeholder(s): {', '.join(sorted(unknown))}")

    positional = [p.name for p in self.placeholders if p.name not in named]
    if len(fragments) != len(positional):
      raise SynthesisError(f"Template expects {len(positional)} positional fragment(s), got {len(fragments)}")

    raw: Dict[str, FragmentLike] = dict(named)
    raw.update(zip(positional, fragments))

    bindings: Dict[str, cst.CSTNode] = {}
    for placeholder in self.placeholders:
      fragment = raw[placeholder.name]
      if not isinstance(fragment, TypedFragment):
        fragment = TypedFragment(fragment)

      if placeholder.type_fqn is not None and fragment.type_fqn != placeholder.type_fqn:
        raise SynthesisError(
          f"Placeholder '{placeholder.name}' expects {placeholder.type_fqn}, got {fragment.type_fqn or 'an untyped fragment'}"
        )
      if placeholder.name_only and not isinstance(fragment.node, cst.Name):
        raise SynthesisError(f"Placeholder '{placeholder.name}' only accepts an identifier")
      bindings[_RESERVED.format(placeholder.name)] = fragment.node
    return bindings

  def _instantiate(self, bindings: Dict[str, cst.CSTNode]) -> Tuple[cst.CSTNode, ...]:
    transformer = _PlaceholderTransformer(bindings)
    # Prototype nodes are shared by every application; hand out fresh copies.
    return tuple(node.deep_clone().visit(transformer) for node in self.prototype)
