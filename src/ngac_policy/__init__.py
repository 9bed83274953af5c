"""
NGAC Policy Engine

Attribute-based access control following the Next-Generation Access
Control model: a policy graph of users, objects, their attributes and
policy classes, and a decider computing effective permissions.
"""

from .core import (
    Decider,
    NodeType,
    PolicyDecision,
    PolicyGraph,
    PolicyGraphError,
    InvalidReference,
    CycleDetected,
    EmptyOperationSet,
    InvalidTypePair,
)
from .config import EngineConfig, load_config

__version__ = "0.1.0"

__all__ = [
    "Decider",
    "NodeType",
    "PolicyDecision",
    "PolicyGraph",
    "PolicyGraphError",
    "InvalidReference",
    "CycleDetected",
    "EmptyOperationSet",
    "InvalidTypePair",
    "EngineConfig",
    "load_config",
]
