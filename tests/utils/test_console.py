"""
Tests for console redirection and node rendering helpers.
"""

import io

import libcst as cst
from rich.console import Console

from rule_switcheroo.utils.console import get_console, log_success, log_warning, reset_console, set_console
from rule_switcheroo.utils.node_diff import capture_node_source, describe_node


def test_logging_follows_console():
  buffer = io.StringIO()
  set_console(Console(file=buffer, width=120))
  try:
    assert get_console().file is buffer
    log_success("Migrated [path]a.py[/path]")
    log_warning("careful")
  finally:
    reset_console()

  out = buffer.getvalue()
  assert "Migrated a.py" in out
  assert "careful" in out


def test_describe_node():
  assert describe_node(cst.parse_statement("class A:\n    pass\n")) == "ClassDef 'A'"
  assert describe_node(cst.parse_statement("x: int = 1\n").body[0]) == "AnnAssign 'x: int = 1'"
  assert describe_node(cst.parse_expression("a" * 100)).endswith("...'")


def test_capture_detached_node():
  node = cst.Call(func=cst.Name("close"))
  assert capture_node_source(node) == "close()"
