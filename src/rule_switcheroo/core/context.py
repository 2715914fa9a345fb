"""
Per-run Execution Context.

The context is threaded through precondition evaluation and traversal. It
carries the caller's configuration and a diagnostics sink; the core only ever
appends to the sink and never branches on its content.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
  from rule_switcheroo.config import RuntimeConfig


class DiagnosticKind(str, Enum):
  SYNTHESIS_ERROR = "synthesis_error"
  WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
  kind: DiagnosticKind
  message: str
  node: str = ""
  unit: Optional[str] = None

  def render(self) -> str:
    """One-line human readable form, used in `RewriteResult.errors`."""
    prefix = f"{self.unit}: " if self.unit else ""
    location = f" [{self.node}]" if self.node else ""
    return f"{prefix}{self.kind.value}: {self.message}{location}"


class ExecutionContext:
  """
  Shared state of one run (possibly spanning many units and worker threads).

  Attributes:
      config: The runtime configuration, or None for library use with defaults.
  """

  def __init__(self, config: Optional["RuntimeConfig"] = None) -> None:
    self.config = config
    self._diagnostics: List[Diagnostic] = []
    self._lock = threading.Lock()

  def add_diagnostic(self, diagnostic: Diagnostic) -> None:
    with self._lock:
      self._diagnostics.append(diagnostic)

  @property
  def diagnostics(self) -> List[Diagnostic]:
    with self._lock:
      return list(self._diagnostics)
