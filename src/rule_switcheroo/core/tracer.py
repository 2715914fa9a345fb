"""
Rewrite Trace Logger.

Records what happened while one compilation unit was rewritten:

1. Lifecycle phases (gate, traversal, import fixing).
2. Pattern matches (a tracked field or lifecycle method was recognized).
3. Tree mutations (a class or method was rebuilt from a template).
4. Import actions and diagnostics.

A `TraceLogger` belongs to exactly one unit rewrite, so concurrent rewrites
never share one. The export is a list of plain dicts, ready for `json.dump`.
"""

import time
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TraceEventType(str, Enum):
  PHASE_START = "phase_start"
  PHASE_END = "phase_end"
  PATTERN_MATCH = "pattern_match"
  TREE_MUTATION = "tree_mutation"
  IMPORT_ACTION = "import_action"
  DIAGNOSTIC = "diagnostic"
  INSPECTION = "inspection"


@dataclass
class TraceEvent:
  id: str
  type: TraceEventType
  timestamp: float
  description: str
  parent_id: Optional[str] = None
  metadata: Dict[str, Any] = field(default_factory=dict)


class TraceLogger:
  """
  Collects trace events for a single rewrite.
  """

  def __init__(self) -> None:
    self._events: List[TraceEvent] = []
    self._active_phases: List[str] = []

  def start_phase(self, name: str, description: str = "") -> str:
    """Opens a (possibly nested) phase and returns its id."""
    phase_id = str(uuid.uuid4())
    parent = self._active_phases[-1] if self._active_phases else None
    self._events.append(
      TraceEvent(
        id=phase_id,
        type=TraceEventType.PHASE_START,
        timestamp=time.time(),
        description=name,
        parent_id=parent,
        metadata={"detail": description},
      )
    )
    self._active_phases.append(phase_id)
    return phase_id

  def end_phase(self) -> None:
    if not self._active_phases:
      return
    phase_id = self._active_phases.pop()
    self._events.append(
      TraceEvent(
        id=str(uuid.uuid4()),
        type=TraceEventType.PHASE_END,
        timestamp=time.time(),
        description="End Phase",
        parent_id=phase_id,
      )
    )

  def log_match(self, pattern: str, node_label: str) -> None:
    """Logs that `pattern` matched the node described by `node_label`."""
    self._log_simple(
      TraceEventType.PATTERN_MATCH,
      f"Matched {pattern}",
      {"pattern": pattern, "node": node_label},
    )

  def log_mutation(self, node_label: str, before: str, after: str) -> None:
    self._log_simple(TraceEventType.TREE_MUTATION, f"Rewrote {node_label}", {"before": before, "after": after})

  def log_import(self, action: str, fqn: str) -> None:
    self._log_simple(TraceEventType.IMPORT_ACTION, f"{action} {fqn}", {"action": action, "fqn": fqn})

  def log_diagnostic(self, kind: str, message: str) -> None:
    self._log_simple(TraceEventType.DIAGNOSTIC, message, {"kind": kind})

  def log_inspection(self, subject: str, outcome: str, detail: str = "") -> None:
    """Logs a decision point where nothing was changed."""
    self._log_simple(TraceEventType.INSPECTION, f"Inspecting {subject}", {"outcome": outcome, "detail": detail})

  def _log_simple(self, evt_type: TraceEventType, desc: str, meta: Dict[str, Any]) -> None:
    parent = self._active_phases[-1] if self._active_phases else None
    self._events.append(
      TraceEvent(
        id=str(uuid.uuid4()),
        type=evt_type,
        timestamp=time.time(),
        description=desc,
        parent_id=parent,
        metadata=meta,
      )
    )

  def export(self) -> List[Dict[str, Any]]:
    """Returns the events as JSON-serializable dicts."""
    return [asdict(e) for e in self._events]
