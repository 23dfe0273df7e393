"""
Comment threads for a poll.

``build_comment_tree`` is a pure function over a flat list of comment
rows; ``CommentFeed`` keeps that flat list current from a snapshot plus
change events.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from naijapulse.core.utils import parse_timestamp


def _sort_key(row: Mapping):
    return (parse_timestamp(row.get("created_at")), row.get("id"))


@dataclass
class CommentNode:
    id: Any
    poll_id: str
    content: str
    creator_name: Optional[str] = None
    parent_id: Any = None
    user_id: Optional[str] = None
    guest_id: Optional[str] = None
    created_at: Any = None
    replies: List["CommentNode"] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Mapping) -> "CommentNode":
        return cls(
            id=row["id"],
            poll_id=row.get("poll_id"),
            content=row.get("content", ""),
            creator_name=row.get("creator_name"),
            parent_id=row.get("parent_id"),
            user_id=row.get("user_id"),
            guest_id=row.get("guest_id"),
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "poll_id": self.poll_id,
            "parent_id": self.parent_id,
            "content": self.content,
            "creator_name": self.creator_name,
            "user_id": self.user_id,
            "guest_id": self.guest_id,
            "created_at": self.created_at,
            "replies": [reply.to_dict() for reply in self.replies],
        }


def _mark_reached(node: "CommentNode", reached: set) -> None:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.id in reached:
            continue
        reached.add(current.id)
        stack.extend(current.replies)


def build_comment_tree(comments: Iterable[Mapping]) -> List[CommentNode]:
    """
    Arrange flat comment rows into threads.

    A comment whose parent is missing from the input (or is itself, or
    loops back to it) is shown at the top level. Top-level comments are
    ordered oldest first; replies keep the order they had in the input.
    """
    nodes: Dict[Any, CommentNode] = {}
    order: List[CommentNode] = []
    for row in comments:
        node = CommentNode.from_row(row)
        if node.id in nodes:
            continue
        nodes[node.id] = node
        order.append(node)

    roots = []
    for node in order:
        parent = nodes.get(node.parent_id) if node.parent_id is not None else None
        if parent is None or parent is node:
            roots.append(node)
        else:
            parent.replies.append(node)

    # Parent chains that loop back on themselves never reach a root
    reached = set()
    for root in roots:
        _mark_reached(root, reached)
    for node in order:
        if node.id not in reached:
            parent = nodes[node.parent_id]
            parent.replies = [reply for reply in parent.replies if reply is not node]
            roots.append(node)
            _mark_reached(node, reached)

    roots.sort(key=lambda node: (parse_timestamp(node.created_at), node.id))
    return roots


def count_comments(tree: Iterable[CommentNode]) -> int:
    return sum(1 + count_comments(node.replies) for node in tree)


class CommentFeed:
    """Deduplicated, oldest-first comment list for one poll."""

    def __init__(self, on_change: Optional[Callable[[], None]] = None):
        self._comments: Dict[Any, dict] = {}
        self._on_change = on_change

    @property
    def comments(self) -> List[dict]:
        return sorted(self._comments.values(), key=_sort_key)

    def __len__(self) -> int:
        return len(self._comments)

    def __contains__(self, comment_id) -> bool:
        return comment_id in self._comments

    def merge(self, rows: Iterable[Mapping]) -> int:
        added = 0
        for row in rows:
            comment_id = row.get("id")
            if comment_id is not None and comment_id not in self._comments:
                self._comments[comment_id] = dict(row)
                added += 1
        if added:
            self._changed()
        return added

    def apply_insert(self, row: Mapping) -> bool:
        return self.merge([row]) == 1

    def apply_update(self, row: Mapping) -> bool:
        comment_id = row.get("id")
        if comment_id not in self._comments:
            return False
        self._comments[comment_id] = dict(row)
        self._changed()
        return True

    def apply_delete(self, row: Mapping) -> bool:
        if self._comments.pop(row.get("id"), None) is None:
            return False
        self._changed()
        return True

    def reset(self) -> None:
        self._comments.clear()

    def tree(self) -> List[CommentNode]:
        return build_comment_tree(self.comments)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
