"""
Rewriter Package.

Exposes the base class recipe visitors derive from.
"""

from rule_switcheroo.core.rewriter.base import BaseRewriter

__all__ = ["BaseRewriter"]
