"""Firstlink configuration, path and event models."""

from .config import (
    CorpusConfig,
    FirstLinkConfig,
    NetworkConfig,
    ProfileName,
    TraversalConfig,
)
from .events import EventType, Outcome, TraversalEvent, TraversalResult, TraversalStats
from .path import Node, TraversalPath, VisitedSet
from .profiles import PROFILES, apply_profile

__all__ = [
    # Config
    "CorpusConfig",
    "FirstLinkConfig",
    "NetworkConfig",
    "ProfileName",
    "TraversalConfig",
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
    # Profiles
    "PROFILES",
    "apply_profile",
]
