"""Event and result types for the streaming traversal API."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from .path import Node


class EventType(str, Enum):
    """Types of events emitted during a traversal."""

    # Lifecycle events
    STARTED = "started"
    MATCHED = "matched"
    CANCELLED = "cancelled"
    FAILED = "failed"

    # Traversal steps
    PAGE_VISITED = "page_visited"
    LINK_FOLLOWED = "link_followed"
    DEAD_END = "dead_end"
    BACKTRACKED = "backtracked"


class Outcome(str, Enum):
    """How a traversal ended."""

    MATCHED = "matched"
    CANCELLED = "cancelled"
    DEAD_END = "dead_end"
    FAILED = "failed"


@dataclass
class TraversalEvent:
    """
    Event emitted during a traversal.

    Example:
        async for event in traverser.run():
            if event.type == EventType.LINK_FOLLOWED:
                print(f"{event.follow_count}: {event.url}")
            elif event.type == EventType.BACKTRACKED:
                print(f"Back to {event.url}")
    """

    type: EventType

    # Timestamp (always UTC)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # Common fields
    url: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None

    # Path length minus one at the time of the event
    follow_count: Optional[int] = None

    @property
    def is_error(self) -> bool:
        """Check if this is an error event."""
        return self.type == EventType.FAILED

    @property
    def is_terminal(self) -> bool:
        """Check if this event ends the traversal."""
        return self.type in (EventType.MATCHED, EventType.CANCELLED, EventType.FAILED)


@dataclass
class TraversalResult:
    """
    Terminal report of a traversal.

    Attributes:
        outcome: How the traversal ended
        path: Visited nodes from the start article to the tail
        error: Error message for DEAD_END and FAILED outcomes
    """

    outcome: Outcome
    path: list[Node]
    error: Optional[str] = None

    @property
    def follow_count(self) -> int:
        """Number of links followed from the start article to the tail."""
        return max(len(self.path) - 1, 0)

    @property
    def succeeded(self) -> bool:
        return self.outcome == Outcome.MATCHED

    @property
    def urls(self) -> list[str]:
        return [node.url for node in self.path]


@dataclass
class TraversalStats:
    """
    Cumulative statistics for a traversal.

    Collected during the run and available on completion.
    """

    pages_fetched: int = 0  # attempted fetches, failed ones included
    links_followed: int = 0
    dead_ends: int = 0
    backtracks: int = 0
    duration_seconds: float = 0.0

    def to_dict(self) -> dict:
        """Convert stats to dictionary for serialization."""
        return {
            "pages_fetched": self.pages_fetched,
            "links_followed": self.links_followed,
            "dead_ends": self.dead_ends,
            "backtracks": self.backtracks,
            "duration_seconds": round(self.duration_seconds, 2),
        }
