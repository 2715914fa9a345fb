"""
Entry point for module execution (``python -m rule_switcheroo``).

This module delegates execution to the CLI handler in ``rule_switcheroo.cli.__main__``.
"""

import sys

from rule_switcheroo.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())
