"""
Import Fixer Package.

This package provides the ``ImportFixer`` class, a LibCST transformer that
applies the import requests a rewrite queued:
1.  **Pruning**: Removing imports whose names are no longer used.
2.  **Injection**: Adding imports for names the synthesized code uses.

It is composed of several mixins handling specific node types.
"""

from rule_switcheroo.core.import_fixer.base import BaseImportFixer
from rule_switcheroo.core.import_fixer.imports_mixin import ImportMixin
from rule_switcheroo.core.import_fixer.injection_mixin import InjectionMixin


class ImportFixer(ImportMixin, InjectionMixin, BaseImportFixer):
  """
  Composite Transformer for managing imports.

  Inherits functionality from:
  - :class:`ImportMixin`: pruning unused import aliases.
  - :class:`InjectionMixin`: injecting missing top-level imports.
  - :class:`BaseImportFixer`: State management and configuration.
  """


__all__ = ["ImportFixer"]
