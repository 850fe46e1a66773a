"""Traversal path, visited set and node models."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Optional

from ..links.filters import canonical_url


@dataclass(frozen=True)
class Node:
    """
    One visited document.

    Attributes:
        url: Canonical resource locator of the document
        title: Best-effort human-readable label (anchor title attribute)
    """

    url: str
    title: Optional[str] = None


class TraversalPath:
    """
    Ordered sequence of visited nodes, start first.

    Doubles as the backtracking stack: it only grows at the tail and only
    ever discards its tail. The start node is never removed.

    Example:
        path = TraversalPath(Node("https://en.wikipedia.org/wiki/Vehicle"))
        path.append(Node("https://en.wikipedia.org/wiki/Transport"))
        path.pop()
        assert path.tail is path.start
    """

    def __init__(self, start: Node):
        self._nodes: list[Node] = [start]

    @property
    def start(self) -> Node:
        return self._nodes[0]

    @property
    def tail(self) -> Node:
        return self._nodes[-1]

    @property
    def at_start(self) -> bool:
        """True when the tail is the start node."""
        return len(self._nodes) == 1

    @property
    def follow_count(self) -> int:
        """Number of links followed to reach the tail."""
        return len(self._nodes) - 1

    def append(self, node: Node) -> None:
        self._nodes.append(node)

    def pop(self) -> Node:
        """
        Remove and return the tail.

        Raises:
            IndexError: If the tail is the start node
        """
        if self.at_start:
            raise IndexError("Cannot remove the start node from a traversal path")
        return self._nodes.pop()

    def snapshot(self) -> list[Node]:
        """Copy of the nodes in start-to-tail order."""
        return list(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self._nodes))

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"TraversalPath({[node.url for node in self._nodes]!r})"


class VisitedSet:
    """
    Every identifier that has ever been the tail of the path.

    Membership is keyed by canonical URL and never shrinks, so an article
    abandoned by backtracking is never proposed again.
    """

    def __init__(self) -> None:
        self._visited: dict[str, Node] = {}

    def add(self, node: Node) -> bool:
        """
        Record a node as visited.

        Returns:
            True if the node was new, False if already visited
        """
        key = canonical_url(node.url)
        if key in self._visited:
            return False
        self._visited[key] = node
        return True

    def get(self, url: str) -> Optional[Node]:
        return self._visited.get(canonical_url(url))

    def __contains__(self, url: object) -> bool:
        if not isinstance(url, str):
            return False
        return canonical_url(url) in self._visited

    def __len__(self) -> int:
        return len(self._visited)
