"""
Recipes Command Handler.

Lists the registered recipes with their secondary actions.
"""

from rich.table import Table

from rule_switcheroo.recipes import available_recipes, get_recipe
from rule_switcheroo.utils.console import console, log_warning


def handle_recipes() -> int:
  """
  Renders the recipe registry as a table.

  Returns:
      int: Exit code (always 0).
  """
  names = sorted(available_recipes())
  if not names:
    log_warning("No recipes registered.")
    return 0

  table = Table(title="Available Recipes")
  table.add_column("Key", style="magenta")
  table.add_column("Title", style="bold")
  table.add_column("Description")
  table.add_column("Secondary Actions", style="dim")

  for name in names:
    recipe = get_recipe(name)
    actions = ", ".join(action.label for action in recipe.recipe_list()) or "-"
    table.add_row(name, recipe.display_name, recipe.description, actions)

  console.print(table)
  return 0
