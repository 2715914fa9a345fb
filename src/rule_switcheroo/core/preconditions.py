"""
Precondition Gate.

Preconditions are cheap whole-unit predicates evaluated once before a recipe's
visitor runs. When the gate answers False the visitor is skipped and the unit
is returned untouched. A gate only saves work: running the visitor on a unit
the gate rejects must produce the same (unchanged) tree.

Composition::

    gate = and_(UsesType("junit.Rule"), UsesType("okhttp3.mockwebserver.MockWebServer"))
    if gate.evaluate(tree, context):
        ...
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

import libcst as cst

from rule_switcheroo.core.context import ExecutionContext
from rule_switcheroo.core.scanners import SymbolUsageScanner


class Precondition(ABC):
  """A pure predicate over a whole unit."""

  @abstractmethod
  def evaluate(self, tree: cst.Module, context: ExecutionContext) -> bool:
    """
    Args:
        tree: The unit to inspect. Must not be modified.
        context: The run context (opaque to preconditions).

    Returns:
        bool: True if the guarded visitor may have something to do.
    """


@dataclass(frozen=True)
class UsesType(Precondition):
  """
  True if the unit references the fully qualified symbol `fqn`.
  """

  fqn: str

  def evaluate(self, tree: cst.Module, context: ExecutionContext) -> bool:
    scanner = SymbolUsageScanner(self.fqn)
    tree.visit(scanner)
    return scanner.found()

  def __str__(self) -> str:
    return f"uses({self.fqn})"


@dataclass(frozen=True)
class AllOf(Precondition):
  """True iff every member is true. Evaluates in order, stops at the first False."""

  members: Tuple[Precondition, ...]

  def evaluate(self, tree: cst.Module, context: ExecutionContext) -> bool:
    return all(p.evaluate(tree, context) for p in self.members)

  def __str__(self) -> str:
    return " and ".join(str(p) for p in self.members)


@dataclass(frozen=True)
class AnyOf(Precondition):
  """True iff some member is true. Evaluates in order, stops at the first True."""

  members: Tuple[Precondition, ...]

  def evaluate(self, tree: cst.Module, context: ExecutionContext) -> bool:
    return any(p.evaluate(tree, context) for p in self.members)

  def __str__(self) -> str:
    return " or ".join(str(p) for p in self.members)


def and_(*preconditions: Precondition) -> AllOf:
  return AllOf(tuple(preconditions))


def or_(*preconditions: Precondition) -> AnyOf:
  return AnyOf(tuple(preconditions))


def check(precondition: Optional[Precondition], tree: cst.Module, context: ExecutionContext) -> bool:
  """
  Evaluates an optional gate. A missing gate is always open.

  Args:
      precondition: The gate, or None.
      tree: The unit.
      context: The run context.

  Returns:
      bool: Whether the guarded visitor should run.
  """
  if precondition is None:
    return True
  return precondition.evaluate(tree, context)
