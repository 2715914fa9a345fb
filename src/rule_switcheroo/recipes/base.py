"""
Recipe Protocol and Registry.

A recipe bundles everything one migration needs:

- a precondition gate deciding cheaply whether a unit can be relevant,
- a visitor (a `BaseRewriter`) performing the tree rewrite,
- an ordered list of project-scoped secondary actions, run once after all
  units were rewritten.

Recipes register themselves under a short key with `@register_recipe`.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Type

from pydantic import BaseModel

from rule_switcheroo.core.context import ExecutionContext
from rule_switcheroo.core.preconditions import Precondition
from rule_switcheroo.core.rewriter import BaseRewriter
from rule_switcheroo.core.tracer import TraceLogger
from rule_switcheroo.dependencies.actions import SecondaryAction


class RecipeOptions(BaseModel):
  """Options schema for recipes that take none."""


class Recipe(ABC):
  """
  Base class for migrations.

  Attributes:
      name: Registry key (set by `register_recipe`).
      display_name: Short human readable title.
      description: One sentence on what the recipe does.
      options_model: Pydantic schema of ``recipe_options``.
  """

  name: str = ""
  display_name: str = ""
  description: str = ""
  options_model: Type[BaseModel] = RecipeOptions

  def __init__(self, options: Optional[BaseModel] = None) -> None:
    self.options = options if options is not None else self.options_model()

  def preconditions(self) -> Optional[Precondition]:
    """The gate guarding the visitor. None means "always run"."""
    return None

  @abstractmethod
  def get_visitor(
    self,
    context: ExecutionContext,
    tracer: Optional[TraceLogger] = None,
    unit: Optional[str] = None,
  ) -> BaseRewriter:
    """
    Creates a fresh visitor for one unit.

    Args:
        context: The run's execution context.
        tracer: The unit's trace sink.
        unit: Label of the unit (usually its path).

    Returns:
        BaseRewriter: A visitor that serves exactly one traversal.
    """

  def recipe_list(self) -> List[SecondaryAction]:
    """Project-scoped actions run after all units, in order."""
    return []


_RECIPE_REGISTRY: Dict[str, Type[Recipe]] = {}


def register_recipe(name: str):
  def wrapper(cls):
    cls.name = name
    _RECIPE_REGISTRY[name] = cls
    return cls

  return wrapper


def get_recipe_class(name: str) -> Optional[Type[Recipe]]:
  return _RECIPE_REGISTRY.get(name)


def get_recipe(name: str, options: Optional[BaseModel] = None) -> Optional[Recipe]:
  cls = _RECIPE_REGISTRY.get(name)
  if cls:
    return cls(options)
  return None
