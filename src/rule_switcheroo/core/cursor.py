"""
Traversal Cursor and Scoped Message Bus.

A `Cursor` mirrors the traversal position of one rewrite as an explicit stack
of `Frame` objects, one per node between the module and the node currently
being visited. Every frame owns a small mailbox. A node deep in a subtree can
leave a message on an enclosing frame with `post`; the enclosing node reads it
with `take` in its own post-order hook, which always runs after all of its
children have been left.

Example:
    A field inside a class body posts ``("tracked-variable", fragment)`` to the
    nearest ``ClassDef`` frame. When ``leave_ClassDef`` runs, it takes the key
    and reacts to it.

Mailboxes hold at most one value per key. Posting the same key twice before a
`take` keeps only the last value.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Type, Union

import libcst as cst

NodeKind = Union[Type[cst.CSTNode], Tuple[Type[cst.CSTNode], ...]]

_ABSENT = object()


@dataclass(eq=False)
class Frame:
  """
  One level of the traversal stack.

  Attributes:
      node: The original node this frame was opened for.
      parent: The enclosing frame (None for the root).
      messages: The frame's mailbox.
      dirty: Set once a rewrite happened somewhere in this subtree.
  """

  node: cst.CSTNode
  parent: Optional["Frame"] = None
  messages: Dict[str, Any] = field(default_factory=dict)
  dirty: bool = False

  def ancestors(self) -> Iterator["Frame"]:
    frame = self.parent
    while frame is not None:
      yield frame
      frame = frame.parent


class Cursor:
  """
  Frame stack of a single traversal. Not shared between traversals.
  """

  def __init__(self) -> None:
    self._frames: List[Frame] = []

  @property
  def depth(self) -> int:
    return len(self._frames)

  @property
  def current(self) -> Frame:
    """
    The innermost frame.

    Raises:
        LookupError: If the traversal has not entered any node.
    """
    if not self._frames:
      raise LookupError("Cursor is not positioned on any node")
    return self._frames[-1]

  def push(self, node: cst.CSTNode) -> Frame:
    parent = self._frames[-1] if self._frames else None
    frame = Frame(node=node, parent=parent)
    self._frames.append(frame)
    return frame

  def pop(self) -> Frame:
    return self._frames.pop()

  def path(self) -> List[cst.CSTNode]:
    """Nodes of the enclosing frames, innermost first (current node excluded)."""
    if not self._frames:
      return []
    return [frame.node for frame in self.current.ancestors()]

  def first_enclosing(self, kind: NodeKind) -> Optional[Frame]:
    """
    Finds the nearest ancestor frame whose node is an instance of `kind`.

    Args:
        kind: A node class or a tuple of node classes.

    Returns:
        Optional[Frame]: The frame, or None if no ancestor qualifies.
    """
    if not self._frames:
      return None
    for frame in self.current.ancestors():
      if isinstance(frame.node, kind):
        return frame
    return None

  def post(self, ancestor_kind: NodeKind, key: str, payload: Any) -> bool:
    """
    Leaves `payload` under `key` on the nearest enclosing `ancestor_kind` frame.

    An existing value for the same key is replaced.

    Args:
        ancestor_kind: Node class (or tuple) of the receiving frame.
        key: Message key.
        payload: Arbitrary value.

    Returns:
        bool: False if there is no enclosing frame of that kind.
    """
    target = self.first_enclosing(ancestor_kind)
    if target is None:
      return False
    target.messages[key] = payload
    return True

  def put(self, key: str, payload: Any) -> None:
    self.current.messages[key] = payload

  def peek(self, key: str, default: Any = None) -> Any:
    return self.current.messages.get(key, default)

  def take(self, key: str, default: Any = None) -> Any:
    """
    Reads and clears `key` on the current frame.

    Args:
        key: Message key.
        default: Returned when nothing was posted.

    Returns:
        Any: The posted payload or `default`.
    """
    value = self.current.messages.pop(key, _ABSENT)
    if value is _ABSENT:
      return default
    return value
