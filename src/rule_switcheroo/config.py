"""
Runtime Configuration Store.

Settings come from the ``[tool.rule_switcheroo]`` table of the nearest
``pyproject.toml`` and are overridden by CLI arguments.
"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from rule_switcheroo.recipes import available_recipes
from rule_switcheroo.utils.console import log_warning

if sys.version_info >= (3, 11):
  import tomllib
else:
  import tomli as tomllib

T = TypeVar("T", bound=BaseModel)

DEFAULT_RECIPE = "update_mock_web_server"


class RuntimeConfig(BaseModel):
  """
  Global configuration container for the rewrite engine.
  """

  recipe: str = Field(DEFAULT_RECIPE, description="Key of the recipe to run.")
  workers: int = Field(1, ge=1, description="Number of units rewritten concurrently.")
  upgrade_dependencies: bool = Field(True, description="Run the recipe's secondary actions after rewriting.")
  exclude: List[str] = Field(default_factory=list, description="Glob patterns of files to leave alone.")
  recipe_options: Dict[str, Any] = Field(default_factory=dict, description="Options passed to the recipe.")

  @field_validator("recipe")
  @classmethod
  def validate_recipe(cls, v: str) -> str:
    """
    Ensures the recipe is registered.

    Args:
        v (str): The recipe key to validate.

    Returns:
        str: The normalized recipe key.

    Raises:
        ValueError: If the recipe is not found in the registry.
    """
    v_clean = v.lower().strip().replace("-", "_")
    known = available_recipes()
    if v_clean not in known:
      raise ValueError(f"Unknown recipe: '{v_clean}'. Available recipes: {known}")
    return v_clean

  def parse_recipe_options(self, schema: Type[T]) -> T:
    """
    Validates the raw recipe options against the recipe's Pydantic model.

    Args:
        schema (Type[T]): The model class defining expected options.

    Returns:
        T: An instance of the schema populated with runtime values.

    Raises:
        ValueError: If the options do not fit the schema.
    """
    try:
      return schema.model_validate(self.recipe_options)
    except ValidationError as e:
      raise ValueError(f"Recipe configuration validation failed: {e}") from e

  @classmethod
  def load(
    cls,
    recipe: Optional[str] = None,
    workers: Optional[int] = None,
    upgrade_dependencies: Optional[bool] = None,
    exclude: Optional[List[str]] = None,
    recipe_options: Optional[Dict[str, Any]] = None,
    search_path: Optional[Path] = None,
  ) -> "RuntimeConfig":
    """
    Loads configuration from pyproject.toml and overrides with CLI arguments.

    Args:
        recipe (Optional[str]): Override for the recipe key.
        workers (Optional[int]): Override for the worker count.
        upgrade_dependencies (Optional[bool]): Override for secondary actions.
        exclude (Optional[List[str]]): Extra exclusion patterns (added to TOML ones).
        recipe_options (Optional[Dict]): Recipe options merged over TOML ones.
        search_path (Optional[Path]): Directory to start searching for TOML config.

    Returns:
        RuntimeConfig: The fully resolved configuration object.
    """
    toml_config = _load_toml_settings(search_path or Path.cwd())

    final_upgrade = upgrade_dependencies
    if final_upgrade is None:
      final_upgrade = toml_config.get("upgrade_dependencies", True)

    return cls(
      recipe=recipe or toml_config.get("recipe", DEFAULT_RECIPE),
      workers=workers or toml_config.get("workers", 1),
      upgrade_dependencies=final_upgrade,
      exclude=[*toml_config.get("exclude", []), *(exclude or [])],
      recipe_options={**toml_config.get("recipe_options", {}), **(recipe_options or {})},
    )


def _load_toml_settings(start_path: Path) -> Dict[str, Any]:
  """
  Searches `start_path` and its parents for 'pyproject.toml' and extracts config.

  Args:
      start_path (Path): Directory (or file) to start the search from.

  Returns:
      Dict[str, Any]: The `[tool.rule_switcheroo]` table, or an empty dict.
  """
  current = start_path.resolve()
  if current.is_file():
    current = current.parent

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except (OSError, tomllib.TOMLDecodeError) as e:
        log_warning(f"Ignoring unreadable {toml_path}: {e}")
        return {}

      tool_section = data.get("tool", {})
      return tool_section.get("rule_switcheroo", {})

  return {}


def parse_cli_key_values(items: Optional[List[str]]) -> Dict[str, Any]:
  """
  Parses a list of 'key=value' strings into a dictionary.

  Types are inferred (int, float, bool, or string).

  Args:
      items (Optional[List[str]]): List of raw CLI strings directly from argparse.

  Returns:
      Dict[str, Any]: Parsed dictionary.
  """
  if not items:
    return {}

  config = {}
  for item in items:
    if "=" not in item:
      log_warning(f"Ignoring invalid config format: '{item}'. Expected 'key=value'.")
      continue

    key, val_str = item.split("=", 1)
    key = key.strip()
    val_str = val_str.strip()

    final_val: Any = val_str

    if val_str.lower() == "true":
      final_val = True
    elif val_str.lower() == "false":
      final_val = False
    else:
      try:
        if "." in val_str or "e" in val_str:
          final_val = float(val_str)
        else:
          final_val = int(val_str)
      except ValueError:
        pass

    config[key] = final_val

  return config
