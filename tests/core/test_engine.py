"""
Tests for the single-unit rewrite pipeline.
"""

import pytest

from rule_switcheroo.config import RuntimeConfig
from rule_switcheroo.core.context import ExecutionContext
from rule_switcheroo.core.engine import RewriteEngine
from rule_switcheroo.core.rewriter import BaseRewriter
from rule_switcheroo.core.tracer import TraceEventType
from rule_switcheroo.recipes import Recipe, register_recipe

UNRELATED = "import os\n\n\ndef f():\n    return os.getcwd()\n"

RULE_ONLY = "from junit import Rule\n\n\nclass A:\n    x: Rule = None\n"


def test_default_engine_uses_default_recipe():
  engine = RewriteEngine()
  assert engine.recipe.name == "update_mock_web_server"


def test_unrelated_unit_returns_same_tree():
  engine = RewriteEngine()
  tree = engine.parse(UNRELATED)
  assert engine.rewrite_tree(tree) is tree


def test_closed_gate_skips_visitor():
  engine = RewriteEngine()
  tree = engine.parse(RULE_ONLY)
  assert engine.rewrite_tree(tree) is tree


def test_run_unchanged():
  result = RewriteEngine().run(UNRELATED)
  assert result.success
  assert not result.changed
  assert result.code == UNRELATED
  assert result.errors == []


def test_run_parse_error():
  result = RewriteEngine().run("def broken(:\n", unit="bad.py")
  assert not result.success
  assert result.code == "def broken(:\n"
  assert result.errors[0].startswith("bad.py: Parse Error")


def test_trace_has_pipeline_phases():
  result = RewriteEngine().run(UNRELATED, unit="mod.py")
  phases = [e["description"] for e in result.trace_events if e["type"] == TraceEventType.PHASE_START]
  assert phases == ["Unit", "Preconditions"]


def test_recipe_without_gate_runs_visitor():
  visited = []

  class Visitor(BaseRewriter):
    def visit_Module(self, node):
      visited.append(node)

  @register_recipe("always")
  class Always(Recipe):
    display_name = "Always"

    def get_visitor(self, context, tracer=None, unit=None):
      return Visitor(context, tracer, unit)

  engine = RewriteEngine(config=RuntimeConfig(recipe="always"))
  tree = engine.parse(UNRELATED)
  assert engine.rewrite_tree(tree) is tree
  assert visited == [tree]


def test_unknown_recipe_rejected():
  with pytest.raises(ValueError):
    RewriteEngine(config=RuntimeConfig(recipe="nope"))


def test_diagnostics_are_scoped_to_the_unit():
  context = ExecutionContext()
  engine = RewriteEngine()
  engine.run(UNRELATED, context=context, unit="a.py")
  assert engine.run(UNRELATED, context=context, unit="b.py").errors == []
