"""
Tests for spacing of synthesized block members.
"""

import libcst as cst

from rule_switcheroo.core.formatting import auto_format

NEW_DEF = "def g():\n    pass\n"


def _extend(code, *statements):
  module = cst.parse_module(code)
  updated = module.with_changes(body=[*module.body, *statements])
  return auto_format(module, updated).code


def test_new_def_copies_sibling_gap():
  code = "import a\n\n\ndef f():\n    pass\n"
  assert _extend(code, cst.parse_statement(NEW_DEF)) == code + "\n\n" + NEW_DEF


def test_new_def_default_gap_at_module_level():
  assert _extend("x = 1\n", cst.parse_statement(NEW_DEF)) == "x = 1\n\n\n" + NEW_DEF


def test_comments_are_not_copied():
  code = "x = 1\n\n# about f\ndef f():\n    pass\n"
  assert _extend(code, cst.parse_statement(NEW_DEF)) == code + "\n" + NEW_DEF


def test_new_simple_statement_has_no_leading_lines():
  stmt = cst.SimpleStatementLine(body=[cst.Expr(cst.Name("y"))], leading_lines=[cst.EmptyLine(indent=False)])
  assert _extend("x = 1\n", stmt) == "x = 1\ny\n"


def test_existing_statements_untouched():
  module = cst.parse_module("x = 1\n\n\n\ny = 2\n")
  assert auto_format(module, module).code == module.code
