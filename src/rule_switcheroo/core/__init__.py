"""
Core Package.

Contains the rewriting machinery:
- Tree provider and symbol resolution
- Pattern matchers and precondition gates
- Traversal cursor with scoped messages
- Template synthesis and auto-formatting
- Import fixing
- Engine and project runner
"""
