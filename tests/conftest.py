"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- Global recipe registry isolation, so tests registering throwaway recipes
  do not leak them into other tests.
- Small helpers to build resolved rewriters on source snippets.
"""

import sys
import textwrap
from pathlib import Path

import pytest

# Add src to path so we can import 'rule_switcheroo' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Force load of the bundled recipes so they are part of the baseline snapshot.
import rule_switcheroo.recipes  # noqa: E402
from rule_switcheroo.recipes.base import _RECIPE_REGISTRY  # noqa: E402


@pytest.fixture(autouse=True)
def isolate_recipe_registry():
  """
  Ensures that recipes registered by a test do not leak between tests.
  """
  original_registry = _RECIPE_REGISTRY.copy()
  yield
  _RECIPE_REGISTRY.clear()
  _RECIPE_REGISTRY.update(original_registry)


@pytest.fixture
def source():
  """Dedents a source snippet and strips the leading newline."""

  def _source(text: str) -> str:
    return textwrap.dedent(text).lstrip("\n")

  return _source
