from .migrate import handle_migrate
from .recipes import handle_recipes

__all__ = [
  "handle_migrate",
  "handle_recipes",
]
