"""
Policy Graph Errors

All mutation and query failures raised by the engine derive from
PolicyGraphError. None of them are transient; they signal caller bugs.
"""

from .nodes import NodeId, NodeType


class PolicyGraphError(Exception):
    """Base exception for policy graph operations."""
    pass


class InvalidReference(PolicyGraphError):
    """Raised when an operation names a node id absent from the graph."""
    def __init__(self, node_id: NodeId):
        self.node_id = node_id
        super().__init__(f"Node not found: {node_id}")


class CycleDetected(PolicyGraphError):
    """Raised when an assignment would make the assignment relation cyclic."""
    def __init__(self, child_id: NodeId, parent_id: NodeId):
        self.child_id = child_id
        self.parent_id = parent_id
        super().__init__(f"Assignment {child_id} -> {parent_id} would create a cycle")


class EmptyOperationSet(PolicyGraphError):
    """Raised when an association is requested with no operations."""
    def __init__(self, source_id: NodeId, target_id: NodeId):
        self.source_id = source_id
        self.target_id = target_id
        super().__init__(f"Association {source_id} -> {target_id} has no operations")


class InvalidTypePair(PolicyGraphError):
    """Raised in strict mode when an edge violates the type-pair whitelist."""
    def __init__(self, source_type: NodeType, target_type: NodeType, relation: str):
        self.source_type = source_type
        self.target_type = target_type
        self.relation = relation
        super().__init__(
            f"Invalid {relation}: {source_type.value} -> {target_type.value}"
        )
