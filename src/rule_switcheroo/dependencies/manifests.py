"""
Dependency manifest discovery and text-preserving requirement edits.

Two manifest kinds are understood:

1.  ``requirements*.txt`` files, one requirement per line.
2.  ``pyproject.toml`` files: the ``[project]`` ``dependencies`` array and the
    arrays of ``[project.optional-dependencies]``.

Edits are textual so comments, ordering and formatting survive. TOML files
are read with `tomllib` first to find out whether the package is declared at
all, and re-read after editing to make sure the result is still valid.
"""

import re
import sys
from pathlib import Path
from typing import Callable, Iterator, List, Optional

if sys.version_info >= (3, 11):
  import tomllib
else:
  import tomli as tomllib

# Directories never searched for manifests.
SKIPPED_DIRS = {".git", ".hg", ".svn", ".tox", ".nox", ".venv", "venv", "env", "node_modules", "__pycache__", "build", "dist"}

REQUIREMENT_RE = re.compile(
  r"^(?P<name>[A-Za-z0-9][A-Za-z0-9._-]*)"
  r"(?P<extras>\s*\[[^\]]*\])?"
  r"(?P<spec>[^;#]*?)"
  r"(?P<trail>\s*)"
  r"(?P<rest>(?:;[^#]*)?(?:#.*)?)$"
)

_TABLE_RE = re.compile(r"^\s*\[\s*([^\]]+?)\s*\]\s*(?:#.*)?$")
_ARRAY_START_RE = re.compile(r"^\s*(?P<key>[A-Za-z0-9_.\"'-]+)\s*=\s*\[")
_STRING_RE = re.compile(r"(?P<quote>[\"'])(?P<body>(?:(?!(?P=quote)).)*)(?P=quote)")

Rewriter = Callable[[str], Optional[str]]


def normalize_name(name: str) -> str:
  """``Mock_Web.Server`` -> ``mock-web-server``."""
  return re.sub(r"[-_.]+", "-", name).lower()


def find_manifests(root: Path) -> Iterator[Path]:
  """
  Yields dependency manifests under `root`, in sorted order.

  Args:
      root: Project directory.
  """
  candidates = sorted(list(root.rglob("requirements*.txt")) + list(root.rglob("pyproject.toml")))
  for path in candidates:
    relative = path.relative_to(root)
    if any(part in SKIPPED_DIRS for part in relative.parts[:-1]):
      continue
    if path.is_file():
      yield path


def rewrite_requirement(requirement: str, package: str, new_spec: Callable[[str], Optional[str]]) -> Optional[str]:
  """
  Rewrites one PEP 508 requirement string if it names `package`.

  Args:
      requirement: e.g. ``mockwebserver[tls]==3.14.9 ; python_version>"3.8"``.
      package: Distribution name (any normalization).
      new_spec: Maps the current specifier to the new one, None to keep it.

  Returns:
      Optional[str]: The new requirement, or None when nothing changes.
  """
  leading = requirement[: len(requirement) - len(requirement.lstrip())]
  match = REQUIREMENT_RE.match(requirement.strip())
  if not match or normalize_name(match.group("name")) != normalize_name(package):
    return None

  spec = match.group("spec").strip()
  if spec.startswith("@") or spec.startswith("("):
    return None
  replacement = new_spec(spec)
  if replacement is None or replacement == spec:
    return None

  trail = match.group("trail")
  rest = match.group("rest")
  if rest and not trail:
    trail = " "
  trailing = requirement[len(requirement.rstrip()) :]
  return f"{leading}{match.group('name')}{match.group('extras') or ''}{replacement}{trail}{rest}{trailing}"


def edit_requirements_text(text: str, package: str, new_spec: Rewriter) -> str:
  """
  Applies `rewrite_requirement` to every requirement line of a
  ``requirements.txt`` body. Comments, options (``-r``, ``--index-url``) and
  URLs are left alone.
  """
  lines = text.splitlines(keepends=True)
  out: List[str] = []
  for line in lines:
    body = line.rstrip("\r\n")
    ending = line[len(body) :]
    stripped = body.strip()
    if not stripped or stripped.startswith(("#", "-")) or "://" in stripped:
      out.append(line)
      continue
    rewritten = rewrite_requirement(body, package, new_spec)
    out.append(line if rewritten is None else rewritten + ending)
  return "".join(out)


def pyproject_declares(text: str, package: str) -> bool:
  """
  Whether the ``[project]`` table of a pyproject body declares `package`.

  Raises:
      tomllib.TOMLDecodeError: On invalid TOML.
  """
  project = tomllib.loads(text).get("project", {})
  requirements = list(project.get("dependencies", []))
  for group in project.get("optional-dependencies", {}).values():
    requirements.extend(group)

  wanted = normalize_name(package)
  for requirement in requirements:
    match = REQUIREMENT_RE.match(str(requirement).strip())
    if match and normalize_name(match.group("name")) == wanted:
      return True
  return False


def edit_pyproject_text(text: str, package: str, new_spec: Rewriter) -> str:
  """
  Rewrites requirement strings inside the dependency arrays of
  ``[project]`` and ``[project.optional-dependencies]``.
  """
  out: List[str] = []
  table = ""
  in_array = False

  def _swap(match: "re.Match[str]") -> str:
    rewritten = rewrite_requirement(match.group("body"), package, new_spec)
    if rewritten is None:
      return match.group(0)
    return f"{match.group('quote')}{rewritten}{match.group('quote')}"

  for line in text.splitlines(keepends=True):
    if not in_array:
      header = _TABLE_RE.match(line)
      if header:
        table = header.group(1).replace('"', "").replace("'", "")
        out.append(line)
        continue

      start = _ARRAY_START_RE.match(line)
      is_dependency_array = False
      if start:
        key = start.group("key").strip("\"'")
        is_dependency_array = (table == "project" and key == "dependencies") or table == "project.optional-dependencies"
      if not is_dependency_array:
        out.append(line)
        continue
      in_array = True

    out.append(_STRING_RE.sub(_swap, line))
    # The array closes on the first bracket outside strings and comments.
    code = _STRING_RE.sub('""', line).split("#", 1)[0]
    if "]" in code:
      in_array = False

  return "".join(out)
