"""
Policy Graph Node Model

Implements the NGAC graph primitives:
- NodeType: U, UA, O, OA, PC
- Node: identity-based graph vertex with an opaque property bag
- Association: permission grant from a user attribute to a target node
- Assignment/association type-pair rules
"""

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Set

NodeId = int

# Reference operation tokens. Operations are an open set of caller-defined strings.
READ = "read"
WRITE = "write"

_node_ids = itertools.count(1)


def new_node_id() -> NodeId:
    """Allocate a process-unique node identity"""
    return next(_node_ids)


class NodeType(str, Enum):
    """Type of policy graph node"""
    U = "U"      # User
    UA = "UA"    # User attribute
    O = "O"      # Object
    OA = "OA"    # Object attribute
    PC = "PC"    # Policy class

    @property
    def is_object_side(self) -> bool:
        return self in (NodeType.O, NodeType.OA)


# Allowed parent types for each child type in an assignment edge
ASSIGNMENT_RULES: Dict[NodeType, Set[NodeType]] = {
    NodeType.U: {NodeType.UA},
    NodeType.UA: {NodeType.UA, NodeType.PC},
    NodeType.O: {NodeType.OA, NodeType.PC},
    NodeType.OA: {NodeType.OA, NodeType.PC},
    NodeType.PC: set(),
}

# Allowed source types for an association edge (target may be any type)
ASSOCIATION_SOURCES: Set[NodeType] = {NodeType.UA, NodeType.U}


def is_valid_assignment(child_type: NodeType, parent_type: NodeType) -> bool:
    """Check an assignment edge against the type-pair whitelist"""
    return parent_type in ASSIGNMENT_RULES.get(child_type, set())


def is_valid_association(source_type: NodeType, target_type: NodeType) -> bool:
    """Check an association edge against the type-pair whitelist"""
    return source_type in ASSOCIATION_SOURCES


@dataclass(frozen=True, eq=False)
class Node:
    """
    A vertex in the policy graph.

    Identity is the only thing that matters for equality and hashing:
    two nodes may share a name and still be distinct. Nodes are frozen;
    the graph swaps in a new instance when properties change. The property
    bag is carried for callers and never read by the decision algorithm.
    """
    id: NodeId
    name: str
    node_type: NodeType
    properties: Dict[str, Any] = field(default_factory=dict)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(frozen=True)
class Association:
    """Grant of a set of operations from a user attribute to a target node"""
    source: NodeId
    target: NodeId
    operations: FrozenSet[str]
