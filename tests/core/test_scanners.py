"""
Tests for symbol usage scanning and import binding helpers.
"""

import libcst as cst

from rule_switcheroo.core.scanners import (
  SymbolUsageScanner,
  collect_used_names,
  get_full_name,
  import_bindings,
  module_bindings,
)


def _uses(code: str, fqn: str) -> bool:
  scanner = SymbolUsageScanner(fqn)
  cst.parse_module(code).visit(scanner)
  return scanner.found()


def test_get_full_name():
  assert get_full_name(cst.parse_expression("a.b.c")) == "a.b.c"
  assert get_full_name(cst.parse_expression("f().c")) == ""


def test_import_bindings():
  assert import_bindings(cst.parse_statement("import a.b").body[0]) == {"a": "a"}
  assert import_bindings(cst.parse_statement("import a.b as c").body[0]) == {"c": "a.b"}
  assert import_bindings(cst.parse_statement("from a.b import C as D, E").body[0]) == {"D": "a.b.C", "E": "a.b.E"}
  assert import_bindings(cst.parse_statement("from . import x").body[0]) == {}


def test_module_bindings():
  module = cst.parse_module(
    "from okio import IOException as IOE\nimport junit.jupiter.api\nclass Helper:\n    pass\nflag = True\nlimit: int = 3\n"
  )
  assert module_bindings(module.body) == {
    "IOE": "okio.IOException",
    "junit": "junit",
    "Helper": "",
    "flag": "",
    "limit": "",
  }


def test_uses_from_import():
  assert _uses("from junit import Rule\nx: Rule = 1\n", "junit.Rule")


def test_uses_aliased_import():
  assert _uses("from junit import Rule as R\n@R\ndef f(): pass\n", "junit.Rule")


def test_uses_module_attribute():
  assert _uses("import junit\nx: junit.Rule = 1\n", "junit.Rule")


def test_import_alone_is_not_a_use():
  assert not _uses("from junit import Rule\n", "junit.Rule")


def test_same_short_name_from_other_module():
  assert not _uses("from other import Rule\nx: Rule = 1\n", "junit.Rule")


def test_late_local_import_still_counts():
  code = "def f():\n    Rule()\n\nfrom junit import Rule\n"
  assert _uses(code, "junit.Rule")


def test_collect_used_names_skips_attributes_and_imports():
  code = "from junit import Rule\nself.Rule = server.close()\n"
  assert collect_used_names(cst.parse_module(code)) == {"self", "server"}
