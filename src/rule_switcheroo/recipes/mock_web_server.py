"""
MockWebServer ``@Rule`` to lifecycle-closed field.

Rewrites test classes that keep an ``okhttp3`` 3.x style ``MockWebServer``
field marked as a ``junit.Rule``::

    class ServerTest:
      server: Annotated[MockWebServer, Rule] = MockWebServer()

into the 4.x style where the test class closes the server itself::

    class ServerTest:
      server: MockWebServer = MockWebServer()

      @AfterEach
      @throws(IOException)
      def after_each_test(self):
        self.server.close()

When the class already has an ``@AfterEach`` method, the ``close()`` call is
appended to it and ``IOException`` is added to its ``@throws`` clause instead.

Only one server field and one lifecycle method are tracked per class. With
several candidates, the last one in source order wins. When a name the new code
needs (``AfterEach``, ``throws``, ``IOException``) is already imported from
somewhere else, the class is left unchanged and a synthesis error is reported.
"""

from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Set

import libcst as cst
from pydantic import BaseModel, Field, field_validator

from rule_switcheroo.core.context import ExecutionContext
from rule_switcheroo.core.errors import SynthesisError
from rule_switcheroo.core.matchers import ANNOTATED_FQNS, AnnotationMatcher, TypeMatcher, annotated_parts
from rule_switcheroo.core.preconditions import Precondition, UsesType, and_
from rule_switcheroo.core.rewriter import BaseRewriter
from rule_switcheroo.core.scanners import get_full_name
from rule_switcheroo.core.templates import InsertionPoint, Template, TemplateKind, TypedFragment
from rule_switcheroo.core.tracer import TraceLogger
from rule_switcheroo.dependencies.actions import SecondaryAction, UpgradeDependencyVersion
from rule_switcheroo.recipes.base import Recipe, register_recipe
from rule_switcheroo.utils.node_diff import capture_node_source, describe_node

RULE_FQN = "junit.Rule"
AFTER_EACH_FQN = "junit.jupiter.api.AfterEach"
THROWS_FQN = "junit.jupiter.api.throws"
MOCK_WEB_SERVER_FQN = "okhttp3.mockwebserver.MockWebServer"
IO_EXCEPTION_FQN = "okio.IOException"
ABSTRACT_METHOD_FQN = "abc.abstractmethod"

VARIABLE_KEY = "mock-web-server-variable"
METHOD_KEY = "after-each-method"

RULE = AnnotationMatcher(RULE_FQN)
AFTER_EACH = AnnotationMatcher(AFTER_EACH_FQN)
THROWS = AnnotationMatcher(THROWS_FQN)
ABSTRACT = AnnotationMatcher(ABSTRACT_METHOD_FQN)
MOCK_WEB_SERVER = TypeMatcher(MOCK_WEB_SERVER_FQN)

CLOSE_METHOD = Template.build(
  """
  @AfterEach
  @throws(IOException)
  def {method}(self):
      {server:okhttp3.mockwebserver.MockWebServer}.close()
  """,
  imports=(AFTER_EACH_FQN, THROWS_FQN, IO_EXCEPTION_FQN, MOCK_WEB_SERVER_FQN),
)

CLOSE_STATEMENT = Template.build(
  "{server:okhttp3.mockwebserver.MockWebServer}.close()",
  imports=(MOCK_WEB_SERVER_FQN,),
)

THROWS_IO_EXCEPTION = Template.build("IOException", imports=(IO_EXCEPTION_FQN,), kind=TemplateKind.EXPRESSION)


class MockWebServerOptions(BaseModel):
  """``recipe_options`` understood by this recipe."""

  lifecycle_method_name: str = Field("after_each_test", description="Name of a synthesized @AfterEach method.")

  @field_validator("lifecycle_method_name")
  @classmethod
  def validate_identifier(cls, v: str) -> str:
    v = v.strip()
    if not v.isidentifier():
      raise ValueError(f"Not a valid method name: '{v}'")
    return v


@dataclass(frozen=True)
class LifecycleMethod:
  """
  An ``@AfterEach`` method as seen when the traversal left it.

  Attributes:
      original: The method in the input tree.
      updated: The method after its own subtree was rewritten.
      throws: Resolved names declared in its ``@throws(...)`` clause.
      throws_spelling: Local spelling of its throws decorator, if it has one.
      abstract: Whether it is an ``abc.abstractmethod`` (no body to extend).
  """

  original: cst.FunctionDef
  updated: cst.FunctionDef
  throws: FrozenSet[str] = frozenset()
  throws_spelling: Optional[str] = None
  abstract: bool = False


def _members(class_node: cst.ClassDef) -> List[cst.CSTNode]:
  if isinstance(class_node.body, cst.IndentedBlock):
    return list(class_node.body.body)
  return []


def _member_names(class_node: cst.ClassDef) -> Set[str]:
  names: Set[str] = set()
  for stmt in _members(class_node):
    if isinstance(stmt, (cst.FunctionDef, cst.ClassDef)):
      names.add(stmt.name.value)
    elif isinstance(stmt, cst.SimpleStatementLine):
      for small in stmt.body:
        if isinstance(small, cst.AnnAssign) and isinstance(small.target, cst.Name):
          names.add(small.target.value)
        elif isinstance(small, cst.Assign):
          names.update(t.target.value for t in small.targets if isinstance(t.target, cst.Name))
  return names


class MockWebServerRewriter(BaseRewriter):
  """
  Visitor of the MockWebServer migration.

  The templates are class attributes so variants can swap them.
  """

  close_method_template = CLOSE_METHOD
  close_statement_template = CLOSE_STATEMENT
  throws_entry_template = THROWS_IO_EXCEPTION

  def __init__(
    self,
    context: ExecutionContext,
    tracer: Optional[TraceLogger] = None,
    unit: Optional[str] = None,
    options: Optional[MockWebServerOptions] = None,
  ):
    super().__init__(context, tracer, unit)
    self.options = options or MockWebServerOptions()

  def _enclosing_class_frame(self, start=None):
    """
    The frame of the class owning the current node, when the nearest
    enclosing scope is that class.
    """
    frames = start.ancestors() if start is not None else self.cursor.current.ancestors()
    for frame in frames:
      if isinstance(frame.node, cst.FunctionDef):
        return None
      if isinstance(frame.node, cst.ClassDef):
        return frame
    return None

  def _field_reference(self, node: cst.AnnAssign) -> Optional[cst.Attribute]:
    """
    ``self.<name>`` for a class field (``name: T`` in the class body) or an
    instance attribute (``self.name: T`` in a method), else None.
    """
    target = node.target
    if isinstance(target, cst.Name):
      if self._enclosing_class_frame() is None:
        return None
      name = target.value
    elif isinstance(target, cst.Attribute) and get_full_name(target.value) == "self":
      method_frame = self.cursor.first_enclosing((cst.ClassDef, cst.FunctionDef))
      if method_frame is None or not isinstance(method_frame.node, cst.FunctionDef):
        return None
      if self._enclosing_class_frame(method_frame) is None:
        return None
      name = target.attr.value
    else:
      return None
    return cst.Attribute(value=cst.Name("self"), attr=cst.Name(name))

  def leave_AnnAssign(self, original_node: cst.AnnAssign, updated_node: cst.AnnAssign) -> cst.AnnAssign:
    reference = self._field_reference(original_node)
    if reference is None or not MOCK_WEB_SERVER.matches(original_node, self.qualified_names):
      return updated_node

    annotated = annotated_parts(original_node.annotation.annotation, self.qualified_names)
    if annotated is None:
      return updated_node
    markers = {
      idx for idx, element in enumerate(annotated.slice) if idx > 0 and RULE.matches(element, self.qualified_names)
    }
    if not markers:
      return updated_node

    self.tracer.log_match(f"{RULE} {MOCK_WEB_SERVER}", describe_node(original_node))

    subscript = updated_node.annotation.annotation
    kept = [element for idx, element in enumerate(subscript.slice) if idx not in markers]
    if len(kept) == 1:
      annotation = kept[0].slice.value
    else:
      kept[-1] = kept[-1].with_changes(comma=cst.MaybeSentinel.DEFAULT)
      annotation = subscript.with_changes(slice=kept)

    for fqn in ANNOTATED_FQNS:
      self.maybe_remove_import(fqn)

    self.cursor.post(cst.ClassDef, VARIABLE_KEY, TypedFragment(reference, MOCK_WEB_SERVER_FQN))
    return updated_node.with_changes(annotation=updated_node.annotation.with_changes(annotation=annotation))

  def leave_FunctionDef(self, original_node: cst.FunctionDef, updated_node: cst.FunctionDef) -> cst.FunctionDef:
    resolve = self.qualified_names
    if not any(AFTER_EACH.matches(d, resolve) for d in original_node.decorators):
      return updated_node
    if self._enclosing_class_frame() is None:
      return updated_node

    throws: Set[str] = set()
    spelling = None
    for decorator in original_node.decorators:
      if not THROWS.matches(decorator, resolve):
        continue
      expr = decorator.decorator
      if isinstance(expr, cst.Call):
        spelling = get_full_name(expr.func) or None
        for arg in expr.args:
          throws |= resolve(arg.value)
      else:
        spelling = get_full_name(expr) or None

    method = LifecycleMethod(
      original=original_node,
      updated=updated_node,
      throws=frozenset(throws),
      throws_spelling=spelling,
      abstract=any(ABSTRACT.matches(d, resolve) for d in original_node.decorators),
    )
    self.tracer.log_match(str(AFTER_EACH), describe_node(original_node))
    self.cursor.post(cst.ClassDef, METHOD_KEY, method)
    return updated_node

  def leave_ClassDef(self, original_node: cst.ClassDef, updated_node: cst.ClassDef) -> cst.ClassDef:
    variable: Optional[TypedFragment] = self.cursor.take(VARIABLE_KEY)
    method: Optional[LifecycleMethod] = self.cursor.take(METHOD_KEY)
    if variable is None:
      return updated_node

    try:
      if method is None:
        rewritten = self._add_close_method(updated_node, variable)
      else:
        rewritten = self._close_in_method(updated_node, variable, method)
    except SynthesisError as e:
      self.report_synthesis_error(original_node, e)
      return original_node

    self.maybe_remove_import(RULE_FQN)
    self.tracer.log_mutation(
      describe_node(original_node), capture_node_source(original_node), capture_node_source(rewritten)
    )
    return rewritten

  def _add_close_method(self, class_node: cst.ClassDef, variable: TypedFragment) -> cst.ClassDef:
    base = self.options.lifecycle_method_name
    taken = _member_names(class_node)
    self.ensure_importable(AFTER_EACH_FQN, THROWS_FQN, IO_EXCEPTION_FQN)

    name, suffix = base, 1
    while name in taken:
      name = f"{base}_{suffix}"
      suffix += 1

    rewritten = self.close_method_template.apply(
      class_node, InsertionPoint.last_statement(), variable, method=cst.Name(name)
    )
    self.maybe_add_import(AFTER_EACH_FQN)
    self.maybe_add_import(THROWS_FQN)
    self.maybe_add_import(IO_EXCEPTION_FQN)
    return rewritten

  def _close_in_method(
    self, class_node: cst.ClassDef, variable: TypedFragment, method: LifecycleMethod
  ) -> cst.ClassDef:
    if method.abstract:
      self.tracer.log_inspection(describe_node(method.original), "skipped", "abstract lifecycle method has no body")
      return class_node

    members = _members(class_node)
    index = next(
      (i for i, stmt in enumerate(members) if stmt is method.updated or stmt is method.original),
      None,
    )
    if index is None:
      raise SynthesisError(f"Lifecycle method '{method.original.name.value}' is not a member of the class body")

    needed = []
    if IO_EXCEPTION_FQN not in method.throws:
      needed.append(IO_EXCEPTION_FQN)
      if method.throws_spelling is None:
        needed.append(THROWS_FQN)
    self.ensure_importable(*needed)

    rewritten = self.close_statement_template.apply(members[index], InsertionPoint.last_statement(), variable)
    if IO_EXCEPTION_FQN not in method.throws:
      point = InsertionPoint.throws_clause(method.throws_spelling or "throws")
      rewritten = self.throws_entry_template.apply(rewritten, point)
      self.maybe_add_import(IO_EXCEPTION_FQN)
      if method.throws_spelling is None:
        self.maybe_add_import(THROWS_FQN)

    members[index] = rewritten
    return class_node.with_changes(body=class_node.body.with_changes(body=members))


@register_recipe("update_mock_web_server")
class UpdateMockWebServer(Recipe):
  """
  okhttp3 3.x ``@Rule MockWebServer`` to the 4.x lifecycle-closed server.
  """

  display_name = "okhttp3 3.x MockWebserver @Rule To 4.x MockWebServer"
  description = "Replace usages of okhttp3 3.x @Rule MockWebServer with 4.x MockWebServer."
  options_model = MockWebServerOptions

  def preconditions(self) -> Precondition:
    return and_(UsesType(RULE_FQN), UsesType(MOCK_WEB_SERVER_FQN))

  def get_visitor(
    self,
    context: ExecutionContext,
    tracer: Optional[TraceLogger] = None,
    unit: Optional[str] = None,
  ) -> MockWebServerRewriter:
    return MockWebServerRewriter(context, tracer, unit, self.options)

  def recipe_list(self) -> List[SecondaryAction]:
    return [UpgradeDependencyVersion("mockwebserver", "4.X")]
