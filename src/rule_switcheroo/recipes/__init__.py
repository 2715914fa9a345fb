"""
Recipes Package.

Automatically discovers and registers recipes by scanning this directory for
modules. Dropping a new recipe module into this folder is enough to make it
available to the engine and the CLI.

This module exposes the registry helpers (`get_recipe`, `available_recipes`)
but relies on the side-effects of importing submodules to populate the
internal `_RECIPE_REGISTRY`.
"""

import importlib
import logging
import pkgutil
from pathlib import Path
from typing import List

from rule_switcheroo.recipes.base import (
  _RECIPE_REGISTRY,
  Recipe,
  RecipeOptions,
  get_recipe,
  get_recipe_class,
  register_recipe,
)

# Infrastructure modules, not recipes.
_EXCLUDED_MODULES = {"base", "__init__"}


def _auto_register_recipes() -> None:
  """
  Scans the current directory for modules and imports them.

  Importing the module triggers the @register_recipe decorator defined within
  the recipe implementation, populating the global registry.
  """
  pkg_path = str(Path(__file__).parent)

  for _, module_name, _ in pkgutil.iter_modules([pkg_path]):
    if module_name in _EXCLUDED_MODULES:
      continue

    try:
      importlib.import_module(f".{module_name}", package=__name__)
    except ImportError as e:
      # One broken recipe must not take the others down with it.
      logging.warning(f"Failed to load recipe module '{module_name}': {e}. This recipe will not be available.")


_auto_register_recipes()


def available_recipes() -> List[str]:
  """
  Returns the keys of all registered recipes.

  Returns:
      List[str]: e.g. ['update_mock_web_server'].
  """
  return list(_RECIPE_REGISTRY.keys())


__all__ = [
  "Recipe",
  "RecipeOptions",
  "available_recipes",
  "get_recipe",
  "get_recipe_class",
  "register_recipe",
]
