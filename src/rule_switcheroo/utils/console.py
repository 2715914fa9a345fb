"""
Console and Logging Utilities.

All user-facing output goes through the standard `logging` module, rendered by
`rich`. The active Rich console sits behind a proxy so that tests (or embedding
hosts) can redirect output into a buffer with `set_console` without touching
the modules that imported `console`.

Attributes:
    console (_ConsoleProxy): Stable, module-level handle to the active console.
"""

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

# Between INFO (20) and WARNING (30).
SUCCESS_LEVEL_NUM = 25
logging.addLevelName(SUCCESS_LEVEL_NUM, "SUCCESS")

_THEME = Theme(
  {
    "logging.level.success": "green",
    "info": "dim cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "green",
    "path": "bold blue",
    "recipe": "bold magenta",
  }
)


class _ConsoleProxy:
  """
  Forwards printing to a swappable `rich.console.Console` backend.

  Swapping the backend also re-targets the root logger's `RichHandler`, so
  `logging.info(...)` and `console.print(...)` always end up in the same place.
  """

  def __init__(self) -> None:
    self._backend: Console = Console(theme=_THEME)
    self._configure_logging()

  def set_backend(self, new_console: Console) -> None:
    """
    Installs a new backend console and re-wires logging to it.

    Args:
        new_console: The Rich console that should receive all output.
    """
    self._backend = new_console
    self._configure_logging()

  def reset(self) -> None:
    """Returns to a fresh stdout console."""
    self.set_backend(Console(theme=_THEME))

  @property
  def backend(self) -> Console:
    return self._backend

  def _configure_logging(self) -> None:
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
      if isinstance(handler, RichHandler):
        root_logger.removeHandler(handler)

    rich_handler = RichHandler(
      console=self._backend,
      show_time=False,
      show_path=False,
      markup=True,
      rich_tracebacks=True,
    )
    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(rich_handler)

  def print(self, *args: Any, **kwargs: Any) -> None:
    self._backend.print(*args, **kwargs)

  def __getattr__(self, name: str) -> Any:
    return getattr(self._backend, name)


console = _ConsoleProxy()


def set_console(new_console: Console) -> None:
  """
  Redirects console output and logging to `new_console`.

  Args:
      new_console: e.g. ``Console(file=io.StringIO())`` to capture output.
  """
  console.set_backend(new_console)


def reset_console() -> None:
  """Restores output to standard out."""
  console.reset()


def get_console() -> Console:
  return console.backend


def log_info(msg: str) -> None:
  logging.info(f"ℹ️  {msg}", extra={"markup": True})


def log_success(msg: str) -> None:
  logging.log(SUCCESS_LEVEL_NUM, f"✅ {msg}", extra={"markup": True})


def log_warning(msg: str) -> None:
  logging.warning(f"⚠️  {msg}", extra={"markup": True})


def log_error(msg: str) -> None:
  logging.error(f"❌ {msg}", extra={"markup": True})
