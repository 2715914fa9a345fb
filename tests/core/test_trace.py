"""
Tests for the per-unit trace logger.
"""

import json

from rule_switcheroo.core.tracer import TraceEventType, TraceLogger


def test_phase_nesting():
  tracer = TraceLogger()
  outer = tracer.start_phase("Unit", "a.py")
  inner = tracer.start_phase("Rewrite")
  tracer.log_match("@junit.Rule", "AnnAssign 'server'")
  tracer.end_phase()
  tracer.end_phase()
  tracer.end_phase()  # unbalanced ends are ignored

  events = tracer.export()
  assert [e["type"] for e in events] == [
    TraceEventType.PHASE_START,
    TraceEventType.PHASE_START,
    TraceEventType.PATTERN_MATCH,
    TraceEventType.PHASE_END,
    TraceEventType.PHASE_END,
  ]
  assert events[1]["parent_id"] == outer
  assert events[2]["parent_id"] == inner
  assert events[3]["parent_id"] == inner


def test_export_is_json_serializable():
  tracer = TraceLogger()
  tracer.log_mutation("ClassDef 'A'", "class A: pass", "class A: x = 1")
  tracer.log_import("add", "okio.IOException")
  tracer.log_diagnostic("synthesis_error", "boom")
  tracer.log_inspection("uses(junit.Rule)", "rejected")

  data = json.loads(json.dumps(tracer.export()))
  assert [e["type"] for e in data] == ["tree_mutation", "import_action", "diagnostic", "inspection"]
  assert data[0]["metadata"]["after"] == "class A: x = 1"
  assert data[3]["metadata"]["outcome"] == "rejected"
