"""
firstlink - Follow the first link of an article until you reach a target.

Usage:
    from firstlink import FirstLinkConfig, Traverser

    config = FirstLinkConfig(target="Philosophy", start="Vehicle")

    async with Traverser(config) as traverser:
        async for event in traverser.run():
            print(event)

    for offset, node in enumerate(traverser.result.path):
        print(offset, node.url)
"""

__version__ = "1.0.0"

from .core.interrupts import cancel_on_interrupt
from .core.traverser import Traverser, traverse_blocking
from .exceptions import (
    ConfigurationError,
    DeadEndError,
    ExtractionError,
    FirstLinkError,
    TransportError,
)
from .models.config import (
    CorpusConfig,
    FirstLinkConfig,
    NetworkConfig,
    ProfileName,
    TraversalConfig,
)
from .models.events import EventType, Outcome, TraversalEvent, TraversalResult, TraversalStats
from .models.path import Node, TraversalPath, VisitedSet

__all__ = [
    "__version__",
    # Core
    "Traverser",
    "traverse_blocking",
    "cancel_on_interrupt",
    # Config
    "FirstLinkConfig",
    "ProfileName",
    "CorpusConfig",
    "TraversalConfig",
    "NetworkConfig",
    # Path
    "Node",
    "TraversalPath",
    "VisitedSet",
    # Events
    "EventType",
    "Outcome",
    "TraversalEvent",
    "TraversalResult",
    "TraversalStats",
    # Errors
    "FirstLinkError",
    "ConfigurationError",
    "TransportError",
    "ExtractionError",
    "DeadEndError",
]
