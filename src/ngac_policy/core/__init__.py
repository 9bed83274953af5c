"""
NGAC Policy Engine Core

Core components for the policy graph and decision engine.
"""

from .nodes import (
    Association,
    Node,
    NodeId,
    NodeType,
    READ,
    WRITE,
    is_valid_assignment,
    is_valid_association,
)
from .errors import (
    PolicyGraphError,
    InvalidReference,
    CycleDetected,
    EmptyOperationSet,
    InvalidTypePair,
)
from .locking import ReadWriteLock
from .graph import GraphView, PolicyGraph
from .decider import Decider, PolicyDecision

__all__ = [
    # Model
    "Association",
    "Node",
    "NodeId",
    "NodeType",
    "READ",
    "WRITE",
    "is_valid_assignment",
    "is_valid_association",
    # Errors
    "PolicyGraphError",
    "InvalidReference",
    "CycleDetected",
    "EmptyOperationSet",
    "InvalidTypePair",
    # Graph
    "ReadWriteLock",
    "GraphView",
    "PolicyGraph",
    # Decider
    "Decider",
    "PolicyDecision",
]
