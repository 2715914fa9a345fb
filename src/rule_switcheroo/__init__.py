"""
rule-switcheroo Package.

A targeted source-to-source rewriter for Python test code. Recipes locate a
structural pattern in a LibCST tree and rewrite the enclosing declaration,
fixing imports and declared dependencies along the way.

Usage
-----

Simple String Migration
^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    import rule_switcheroo as rs
    print(rs.migrate(open("test_server.py").read()))

Advanced Usage (Rewrite Engine)
^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from rule_switcheroo import RewriteEngine, RuntimeConfig

    config = RuntimeConfig(recipe_options={"lifecycle_method_name": "tear_down"})
    engine = RewriteEngine(config=config)
    res = engine.run(code)

    if res.success:
        print(res.code)
    else:
        print(f"Errors: {res.errors}")
"""

from typing import Any, Dict, Optional

from rule_switcheroo.config import DEFAULT_RECIPE, RuntimeConfig
from rule_switcheroo.core.engine import RewriteEngine, RewriteResult

__version__ = "0.1.0"


def migrate(code: str, recipe: str = DEFAULT_RECIPE, recipe_options: Optional[Dict[str, Any]] = None) -> str:
  """
  Applies a recipe to a string of Python code.

  This is a high-level convenience wrapper around the `RewriteEngine`. For
  projects, use the CLI or `rule_switcheroo.core.runner.ProjectRunner`.

  Args:
      code (str): The source code to migrate.
      recipe (str): Registered recipe key.
      recipe_options (dict, optional): Options validated by the recipe's schema.

  Returns:
      str: The migrated source code (identical when nothing matched).

  Raises:
      ValueError: If the code does not parse, or the configuration is invalid.
  """
  config = RuntimeConfig(recipe=recipe, recipe_options=recipe_options or {})
  result = RewriteEngine(config=config).run(code)

  if not result.success:
    error_msg = "\n".join(result.errors)
    raise ValueError(f"Migration failed:\n{error_msg}")

  return result.code


__all__ = [
  "RewriteEngine",
  "RewriteResult",
  "RuntimeConfig",
  "migrate",
  "__version__",
]
