"""
Exceptions raised by the rewriting core.
"""


class SynthesisError(Exception):
  """
  A template could not be applied to its target.

  Raised when a placeholder is bound to a fragment of the wrong type, or when
  the requested insertion slot does not exist on the target node. The
  orchestrator confines the failure to the declaration being rewritten.
  """

  def __init__(self, reason: str) -> None:
    super().__init__(reason)
    self.reason = reason


class TemplateError(ValueError):
  """The template text itself is invalid (syntax, unknown symbols, bad placeholders)."""
