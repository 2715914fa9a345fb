"""
Version arithmetic for requirement specifiers.

Only what dependency upgrades need: numeric release tuples, the interval a
PEP 440 specifier admits, and the interval of a target line such as ``4.X``.
Pre-release and local segments are ignored.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

Version = Tuple[int, ...]

_RELEASE_RE = re.compile(r"^\s*v?(\d+(?:\.\d+)*)")
_CLAUSE_RE = re.compile(r"^\s*(===|==|!=|~=|>=|<=|>|<)\s*(\S+)\s*$")
_WIDTH = 4


def parse_version(text: str) -> Optional[Version]:
  """
  ``"3.14.9rc1"`` -> ``(3, 14, 9)``. None when no release number leads the text.
  """
  match = _RELEASE_RE.match(text)
  if not match:
    return None
  return tuple(int(part) for part in match.group(1).split("."))


def _pad(version: Version) -> Version:
  return tuple(version[:_WIDTH]) + (0,) * (_WIDTH - len(version[:_WIDTH]))


def _bump(prefix: Version) -> Version:
  """Smallest version above every version starting with `prefix`."""
  return _pad(prefix[:-1] + (prefix[-1] + 1,))


def _render(version: Version) -> str:
  return ".".join(str(part) for part in version)


@dataclass(frozen=True)
class Interval:
  """Half-open ``[low, high)``; `high` None means unbounded."""

  low: Version = _pad((0,))
  high: Optional[Version] = None

  def intersect(self, low: Version, high: Optional[Version]) -> "Interval":
    new_low = max(self.low, _pad(low))
    new_high = self.high
    if high is not None:
      new_high = _pad(high) if new_high is None else min(new_high, _pad(high))
    return Interval(new_low, new_high)

  @property
  def empty(self) -> bool:
    return self.high is not None and self.low >= self.high


def admitted_interval(specifier: str) -> Optional[Interval]:
  """
  The versions a comma separated specifier admits, as one interval.

  ``!=`` clauses are ignored: they cannot exclude a whole release line.

  Args:
      specifier: e.g. ``">=3.8,<4"`` or ``"==3.14.*"``.

  Returns:
      Optional[Interval]: None when a clause cannot be understood.
  """
  interval = Interval()
  for clause in filter(None, (c.strip() for c in specifier.split(","))):
    match = _CLAUSE_RE.match(clause)
    if not match:
      return None
    op, raw = match.groups()
    wildcard = raw.endswith(".*")
    version = parse_version(raw[:-2] if wildcard else raw)
    if version is None:
      return None

    if op in ("==", "===") and wildcard:
      interval = interval.intersect(version, _bump(version))
    elif op in ("==", "==="):
      interval = interval.intersect(version, _bump(_pad(version)))
    elif op == "~=":
      interval = interval.intersect(version, _bump(version[:-1] or version))
    elif op == ">=":
      interval = interval.intersect(version, None)
    elif op == ">":
      interval = interval.intersect(_bump(_pad(version)), None)
    elif op == "<=":
      interval = interval.intersect(_pad((0,)), _bump(_pad(version)))
    elif op == "<":
      interval = interval.intersect(_pad((0,)), version)
  return interval


def is_pin(specifier: str) -> bool:
  """True for a single ``==`` / ``===`` clause."""
  clauses = [c for c in specifier.split(",") if c.strip()]
  return len(clauses) == 1 and clauses[0].strip().startswith("==")


@dataclass(frozen=True)
class TargetVersion:
  """
  A dependency upgrade target: ``4.X`` (any 4.x release), ``4.9.X`` or an
  exact ``4.9.3``.

  Attributes:
      release: The numeric part (``(4,)`` for ``4.X``).
      wildcard: Whether the last component was ``X``.
  """

  release: Version
  wildcard: bool

  @classmethod
  def parse(cls, text: str) -> "TargetVersion":
    """
    Raises:
        ValueError: On anything else than dotted numbers with an optional
            trailing ``X`` / ``x`` / ``*``.
    """
    parts = text.strip().split(".")
    wildcard = parts[-1] in ("X", "x", "*")
    numbers = parts[:-1] if wildcard else parts
    if not numbers or not all(p.isdigit() for p in numbers):
      raise ValueError(f"Invalid target version: '{text}'")
    return cls(tuple(int(p) for p in numbers), wildcard)

  @property
  def interval(self) -> Interval:
    if self.wildcard:
      return Interval(_pad(self.release), _bump(self.release))
    return Interval(_pad(self.release), _bump(_pad(self.release)))

  def pin(self) -> str:
    if self.wildcard:
      return f"=={_render(self.release)}.*"
    return f"=={_render(self.release)}"

  def range(self) -> str:
    if self.wildcard:
      upper = self.release[:-1] + (self.release[-1] + 1,)
      return f">={_render(self.release)},<{_render(upper)}"
    return f">={_render(self.release)}"

  def is_outdated(self, specifier: str) -> bool:
    """
    True when `specifier` only admits versions older than this target.

    Unpinned requirements, specifiers already admitting the target and
    specifiers requiring something newer are not outdated.
    """
    if not specifier.strip():
      return False
    admitted = admitted_interval(specifier)
    if admitted is None or admitted.empty:
      return False
    return admitted.high is not None and admitted.high <= self.interval.low

  def rewrite(self, specifier: str) -> str:
    """The replacement specifier, keeping the pin / range style."""
    return self.pin() if is_pin(specifier) else self.range()
