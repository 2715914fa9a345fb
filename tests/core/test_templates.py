"""
Tests for template building, binding and insertion.
"""

import libcst as cst
import pytest

from rule_switcheroo.core.errors import SynthesisError, TemplateError
from rule_switcheroo.core.templates import (
  InsertionPoint,
  InsertionSlot,
  Placeholder,
  Template,
  TemplateKind,
  TypedFragment,
)

MWS = "okhttp3.mockwebserver.MockWebServer"

CLOSE = Template.build("{server:okhttp3.mockwebserver.MockWebServer}.close()", imports=(MWS,))

METHOD = Template.build(
  """
  @AfterEach
  def {method}(self):
      {server:okhttp3.mockwebserver.MockWebServer}.close()
  """,
  imports=("junit.jupiter.api.AfterEach", MWS),
)

IO_EXCEPTION = Template.build("IOException", imports=("okio.IOException",), kind=TemplateKind.EXPRESSION)


def _code(node):
  return cst.Module(body=[]).code_for_node(node)


def _server():
  return TypedFragment(cst.parse_expression("self.server"), MWS)


def test_placeholders_are_recorded_in_order():
  assert METHOD.placeholders == (
    Placeholder("method", None, True),
    Placeholder("server", MWS, False),
  )
  assert METHOD.slots == frozenset({InsertionSlot.LAST_STATEMENT})
  assert IO_EXCEPTION.slots == frozenset({InsertionSlot.THROWS_CLAUSE})


def test_attribute_name_placeholder_is_name_only():
  template = Template.build("self.{field} = None")
  assert template.placeholders == (Placeholder("field", None, True),)


@pytest.mark.parametrize(
  "text, imports, kind",
  [
    ("{a:x.Y}.f({a:x.Z})", ("x.Y", "x.Z"), TemplateKind.STATEMENTS),
    ("{a:x.Y}.close()", (), TemplateKind.STATEMENTS),
    ("def (:", (), TemplateKind.STATEMENTS),
    ("", (), TemplateKind.STATEMENTS),
    ("@Unknown\ndef {m}(self):\n    pass", (), TemplateKind.STATEMENTS),
    ("def {m}(self) -> Missing:\n    pass", (), TemplateKind.STATEMENTS),
    ("Foo", (), TemplateKind.EXPRESSION),
  ],
)
def test_invalid_templates(text, imports, kind):
  with pytest.raises(TemplateError):
    Template.build(text, imports=imports, kind=kind)


def test_template_error_is_value_error():
  assert issubclass(TemplateError, ValueError)


def test_replaces_pass_body():
  target = cst.parse_statement("def tear_down(self):\n    pass\n")
  result = CLOSE.apply(target, InsertionPoint.last_statement(), _server())

  assert _code(result) == "def tear_down(self):\n    self.server.close()\n"
  assert _code(target) == "def tear_down(self):\n    pass\n"


def test_appends_after_existing_statements():
  target = cst.parse_statement("def tear_down(self):\n    self.client.stop()\n")
  result = CLOSE.apply(target, InsertionPoint.last_statement(), _server())
  assert _code(result) == "def tear_down(self):\n    self.client.stop()\n    self.server.close()\n"


def test_expands_one_line_suite():
  target = cst.parse_statement("def tear_down(self): pass\n")
  result = CLOSE.apply(target, InsertionPoint.last_statement(), _server())
  assert _code(result) == "def tear_down(self):\n    self.server.close()\n"


def test_fragments_are_cloned_per_use():
  fragment = _server()
  target = cst.parse_statement("def tear_down(self):\n    pass\n")
  first = CLOSE.apply(target, InsertionPoint.last_statement(), fragment)
  second = CLOSE.apply(first, InsertionPoint.last_statement(), fragment)

  calls = [line.body[0].value for line in second.body.body]
  assert len(calls) == 2
  assert calls[0].func.value is not fragment.node
  assert calls[1].func.value is not fragment.node
  assert calls[0].func.value is not calls[1].func.value


def test_method_into_class_gets_blank_line():
  target = cst.parse_statement("class A:\n    x = 1\n")
  result = METHOD.apply(target, InsertionPoint.last_statement(), _server(), method=cst.Name("after_each_test"))
  assert _code(result) == (
    "class A:\n"
    "    x = 1\n"
    "\n"
    "    @AfterEach\n"
    "    def after_each_test(self):\n"
    "        self.server.close()\n"
  )


def test_method_copies_sibling_spacing():
  target = cst.parse_statement(
    "class A:\n    def setup(self):\n        pass\n\n\n    def test_x(self):\n        pass\n"
  )
  result = METHOD.apply(target, InsertionPoint.last_statement(), _server(), method=cst.Name("done"))
  assert _code(result).endswith("        pass\n\n\n    @AfterEach\n    def done(self):\n        self.server.close()\n")


def test_method_into_empty_class_hugs_header():
  target = cst.parse_statement("class A:\n    pass\n")
  result = METHOD.apply(target, InsertionPoint.last_statement(), method=cst.Name("done"), server=_server())
  assert _code(result) == "class A:\n    @AfterEach\n    def done(self):\n        self.server.close()\n"


def test_wrong_slot():
  target = cst.parse_statement("def f(self):\n    pass\n")
  with pytest.raises(SynthesisError):
    CLOSE.apply(target, InsertionPoint.throws_clause(), _server())
  with pytest.raises(SynthesisError):
    IO_EXCEPTION.apply(target, InsertionPoint.last_statement())


def test_type_mismatch():
  target = cst.parse_statement("def f(self):\n    pass\n")
  with pytest.raises(SynthesisError, match="expects okhttp3.mockwebserver.MockWebServer"):
    CLOSE.apply(target, InsertionPoint.last_statement(), TypedFragment(cst.Name("x"), "other.Server"))
  with pytest.raises(SynthesisError):
    CLOSE.apply(target, InsertionPoint.last_statement(), cst.Name("x"))


def test_binding_count_and_names():
  target = cst.parse_statement("class A:\n    pass\n")
  with pytest.raises(SynthesisError):
    METHOD.apply(target, InsertionPoint.last_statement(), _server())
  with pytest.raises(SynthesisError):
    METHOD.apply(target, InsertionPoint.last_statement(), _server(), method=cst.Name("m"), extra=cst.Name("e"))


def test_name_only_placeholder_rejects_expressions():
  target = cst.parse_statement("class A:\n    pass\n")
  with pytest.raises(SynthesisError, match="identifier"):
    METHOD.apply(target, InsertionPoint.last_statement(), _server(), method=cst.parse_expression("a.b"))


def test_statement_slot_needs_a_block():
  with pytest.raises(SynthesisError):
    CLOSE.apply(cst.Name("x"), InsertionPoint.last_statement(), _server())


@pytest.mark.parametrize(
  "before, after",
  [
    ("@AfterEach\ndef f(self):\n    pass\n", "@AfterEach\n@throws(IOException)\ndef f(self):\n    pass\n"),
    ("@throws(TimeoutError)\ndef f(self):\n    pass\n", "@throws(TimeoutError, IOException)\ndef f(self):\n    pass\n"),
    ("@throws(TimeoutError,)\ndef f(self):\n    pass\n", "@throws(TimeoutError, IOException)\ndef f(self):\n    pass\n"),
    ("@throws\ndef f(self):\n    pass\n", "@throws(IOException)\ndef f(self):\n    pass\n"),
  ],
)
def test_throws_clause(before, after):
  result = IO_EXCEPTION.apply(cst.parse_statement(before), InsertionPoint.throws_clause())
  assert _code(result) == after


def test_throws_clause_with_qualified_spelling():
  target = cst.parse_statement("@api.throws(TimeoutError)\ndef f(self):\n    pass\n")
  result = IO_EXCEPTION.apply(target, InsertionPoint.throws_clause("api.throws"))
  assert _code(result).startswith("@api.throws(TimeoutError, IOException)\n")


def test_throws_clause_needs_a_function():
  with pytest.raises(SynthesisError):
    IO_EXCEPTION.apply(cst.parse_statement("class A:\n    pass\n"), InsertionPoint.throws_clause())
