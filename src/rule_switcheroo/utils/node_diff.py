"""
Rendering of detached LibCST nodes.

Synthesized fragments are not attached to any module, so they are rendered
against an empty module context. Used for trace events and import
deduplication signatures.
"""

import libcst as cst

_RENDER_CTX = cst.parse_module("")


def capture_node_source(node: cst.CSTNode) -> str:
  """
  Renders a node to Python source.

  Args:
      node: Any CST node, attached or freshly built.

  Returns:
      str: The generated code.
  """
  return _RENDER_CTX.code_for_node(node)


def describe_node(node: cst.CSTNode, limit: int = 60) -> str:
  """
  Short single-line label for a node (e.g. ``ClassDef 'ServerTest'``).

  Args:
      node: The node to label.
      limit: Maximum length of the source excerpt used for unnamed nodes.

  Returns:
      str: The label.
  """
  kind = type(node).__name__
  name = getattr(node, "name", None)
  if isinstance(name, cst.Name):
    return f"{kind} '{name.value}'"

  excerpt = " ".join(capture_node_source(node).split())
  if len(excerpt) > limit:
    excerpt = excerpt[: limit - 3] + "..."
  return f"{kind} '{excerpt}'"
