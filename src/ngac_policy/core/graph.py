"""
Policy Graph

In-memory NGAC policy graph:
- Nodes (users, objects, their attributes, policy classes)
- Assignment edges (child -> parent hierarchy, kept acyclic)
- Association edges (user attribute -> target, carrying operations)

Every mutation validates and commits under a single write-lock
acquisition, so readers never observe a half-inserted edge. Multi-step
readers (the decider) take a GraphView through view() to see one
consistent state for the whole computation.
"""

import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple

from ..config.schema import EngineConfig
from .errors import CycleDetected, EmptyOperationSet, InvalidReference, InvalidTypePair
from .locking import ReadWriteLock
from .nodes import (
    Association,
    Node,
    NodeId,
    NodeType,
    is_valid_assignment,
    is_valid_association,
    new_node_id,
)

logger = logging.getLogger(__name__)


def _closure(start: NodeId, edges: Dict[NodeId, Set[NodeId]]) -> Set[NodeId]:
    """Reflexive transitive closure of start over an adjacency map"""
    visited = {start}
    stack = [start]
    while stack:
        current = stack.pop()
        for neighbour in edges.get(current, ()):
            if neighbour not in visited:
                visited.add(neighbour)
                stack.append(neighbour)
    return visited


def _detached(node: Node) -> Node:
    """Copy of a stored node whose property bag callers may freely mutate"""
    return replace(node, properties=dict(node.properties))


class GraphView:
    """
    Read-only access to a policy graph without locking.

    Only valid inside PolicyGraph.view(), which holds the read lock.
    """

    def __init__(self, graph: "PolicyGraph"):
        self._graph = graph

    def _require(self, node_id: NodeId) -> Node:
        node = self._graph._nodes.get(node_id)
        if node is None:
            raise InvalidReference(node_id)
        return node

    def exists(self, node_id: NodeId) -> bool:
        return node_id in self._graph._nodes

    def get_node(self, node_id: NodeId) -> Node:
        return _detached(self._require(node_id))

    def node_type(self, node_id: NodeId) -> NodeType:
        return self._require(node_id).node_type

    def nodes(self) -> List[Node]:
        return [_detached(n) for n in self._graph._nodes.values()]

    def parents(self, node_id: NodeId) -> Set[NodeId]:
        self._require(node_id)
        return set(self._graph._parents[node_id])

    def children(self, node_id: NodeId) -> Set[NodeId]:
        self._require(node_id)
        return set(self._graph._children[node_id])

    def ascendants(self, node_id: NodeId) -> Set[NodeId]:
        self._require(node_id)
        return _closure(node_id, self._graph._parents)

    def descendants(self, node_id: NodeId) -> Set[NodeId]:
        self._require(node_id)
        return _closure(node_id, self._graph._children)

    def associations_from(self, node_id: NodeId) -> List[Tuple[NodeId, FrozenSet[str]]]:
        self._require(node_id)
        return list(self._graph._assoc_out[node_id].items())

    def associations_to(self, node_id: NodeId) -> List[Tuple[NodeId, FrozenSet[str]]]:
        self._require(node_id)
        return list(self._graph._assoc_in[node_id].items())

    def associations(self) -> List[Association]:
        """Every association edge in the graph"""
        return [
            Association(source=source, target=target, operations=ops)
            for source, targets in self._graph._assoc_out.items()
            for target, ops in targets.items()
        ]

    def policy_classes(self) -> Set[NodeId]:
        return {n.id for n in self._graph._nodes.values() if n.node_type == NodeType.PC}

    def search(
        self,
        name: Optional[str] = None,
        node_type: Optional[NodeType] = None,
        properties: Optional[Dict[str, Any]] = None,
    ) -> List[Node]:
        """Find nodes matching every given criterion"""
        results = []
        for node in self._graph._nodes.values():
            if name is not None and node.name != name:
                continue
            if node_type is not None and node.node_type != node_type:
                continue
            if properties and any(
                node.properties.get(key) != value for key, value in properties.items()
            ):
                continue
            results.append(_detached(node))
        return results

    def find_unanchored(self) -> List[NodeId]:
        """Object-side nodes that reach no policy class through assignments"""
        unanchored = []
        for node in self._graph._nodes.values():
            if not node.node_type.is_object_side:
                continue
            reached = _closure(node.id, self._graph._parents)
            if not any(self._graph._nodes[n].node_type == NodeType.PC for n in reached):
                unanchored.append(node.id)
        return unanchored


class PolicyGraph:
    """
    NGAC policy graph.

    Usage:
        graph = PolicyGraph()
        pc = graph.create_node("Policy", NodeType.PC)
        oa = graph.create_node("Records", NodeType.OA)
        graph.assign(oa, pc)
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize an empty graph.

        Args:
            config: Engine configuration (default: strict type checking)
        """
        self.config = config or EngineConfig()
        self._lock = ReadWriteLock()

        self._nodes: Dict[NodeId, Node] = {}
        # Assignment adjacency in both directions
        self._parents: Dict[NodeId, Set[NodeId]] = {}
        self._children: Dict[NodeId, Set[NodeId]] = {}
        # Associations indexed by source and by target
        self._assoc_out: Dict[NodeId, Dict[NodeId, FrozenSet[str]]] = {}
        self._assoc_in: Dict[NodeId, Dict[NodeId, FrozenSet[str]]] = {}

        self._view = GraphView(self)

    @contextmanager
    def view(self) -> Iterator[GraphView]:
        """Hold the read lock and yield a consistent read-only view"""
        with self._lock.read_locked():
            yield self._view

    # =========================================================================
    # MUTATION
    # =========================================================================

    def create_node(
        self,
        name: str,
        node_type: NodeType,
        properties: Optional[Dict[str, Any]] = None
    ) -> NodeId:
        """Create a node and return its id"""
        node_type = NodeType(node_type)
        node = Node(
            id=new_node_id(),
            name=name,
            node_type=node_type,
            properties=dict(properties or {}),
        )
        with self._lock.write_locked():
            self._nodes[node.id] = node
            self._parents[node.id] = set()
            self._children[node.id] = set()
            self._assoc_out[node.id] = {}
            self._assoc_in[node.id] = {}
        logger.debug(f"Created node {node.id} ({node_type.value} '{name}')")
        return node.id

    def update_properties(self, node_id: NodeId, properties: Dict[str, Any]) -> None:
        """Merge properties into a node's property bag"""
        with self._lock.write_locked():
            node = self._view._require(node_id)
            self._nodes[node_id] = replace(node, properties={**node.properties, **properties})
        logger.debug(f"Updated properties of node {node_id}: {sorted(properties)}")

    def assign(self, child_id: NodeId, parent_id: NodeId) -> None:
        """
        Assign child to parent.

        Raises:
            InvalidReference: If either node doesn't exist
            InvalidTypePair: If the pair is not allowed (strict mode only)
            CycleDetected: If the assignment would create a cycle
        """
        with self._lock.write_locked():
            child = self._view.get_node(child_id)
            parent = self._view.get_node(parent_id)

            if not is_valid_assignment(child.node_type, parent.node_type):
                self._reject_type_pair(child.node_type, parent.node_type, "assignment")

            if parent_id in self._parents[child_id]:
                logger.debug(f"Assignment {child_id} -> {parent_id} already exists")
                return

            # parent already reaching child upward means the new edge closes a loop
            if child_id in _closure(parent_id, self._parents):
                raise CycleDetected(child_id, parent_id)

            self._parents[child_id].add(parent_id)
            self._children[parent_id].add(child_id)

        logger.debug(f"Assigned {child.name} ({child_id}) -> {parent.name} ({parent_id})")

    def associate(
        self,
        source_id: NodeId,
        target_id: NodeId,
        operations: Iterable[str]
    ) -> None:
        """
        Grant operations from source to target, replacing any previous grant.

        Raises:
            InvalidReference: If either node doesn't exist
            EmptyOperationSet: If no operations are given
            InvalidTypePair: If the source is not a user attribute (strict mode only)
        """
        ops = frozenset(operations)
        with self._lock.write_locked():
            source = self._view.get_node(source_id)
            target = self._view.get_node(target_id)

            if not ops:
                raise EmptyOperationSet(source_id, target_id)

            if not is_valid_association(source.node_type, target.node_type):
                self._reject_type_pair(source.node_type, target.node_type, "association")

            replaced = self._assoc_out[source_id].get(target_id)
            self._assoc_out[source_id][target_id] = ops
            self._assoc_in[target_id][source_id] = ops

        if replaced is not None:
            logger.info(
                f"Replaced association {source.name} -> {target.name}: "
                f"{sorted(replaced)} -> {sorted(ops)}"
            )
        else:
            logger.debug(f"Associated {source.name} -> {target.name} with {sorted(ops)}")

    def _reject_type_pair(self, source_type: NodeType, target_type: NodeType, relation: str) -> None:
        if self.config.is_strict:
            raise InvalidTypePair(source_type, target_type, relation)
        logger.warning(
            f"Permissive mode: allowing invalid {relation} "
            f"{source_type.value} -> {target_type.value}"
        )

    # =========================================================================
    # READ
    # =========================================================================

    def exists(self, node_id: NodeId) -> bool:
        with self.view() as v:
            return v.exists(node_id)

    def get_node(self, node_id: NodeId) -> Node:
        with self.view() as v:
            return v.get_node(node_id)

    def nodes(self) -> List[Node]:
        with self.view() as v:
            return v.nodes()

    def parents(self, node_id: NodeId) -> Set[NodeId]:
        with self.view() as v:
            return v.parents(node_id)

    def children(self, node_id: NodeId) -> Set[NodeId]:
        with self.view() as v:
            return v.children(node_id)

    def ascendants(self, node_id: NodeId) -> Set[NodeId]:
        """All nodes reachable upward from node_id, including itself"""
        with self.view() as v:
            return v.ascendants(node_id)

    def descendants(self, node_id: NodeId) -> Set[NodeId]:
        """All nodes reachable downward from node_id, including itself"""
        with self.view() as v:
            return v.descendants(node_id)

    def associations_from(self, node_id: NodeId) -> List[Tuple[NodeId, FrozenSet[str]]]:
        """Associations whose source is exactly node_id"""
        with self.view() as v:
            return v.associations_from(node_id)

    def associations_to(self, node_id: NodeId) -> List[Tuple[NodeId, FrozenSet[str]]]:
        """Associations whose target is exactly node_id, as (source, operations)"""
        with self.view() as v:
            return v.associations_to(node_id)

    def associations(self) -> List[Association]:
        """Every association edge in the graph"""
        with self.view() as v:
            return v.associations()

    def policy_classes(self) -> Set[NodeId]:
        with self.view() as v:
            return v.policy_classes()

    def search(
        self,
        name: Optional[str] = None,
        node_type: Optional[NodeType] = None,
        properties: Optional[Dict[str, Any]] = None,
    ) -> List[Node]:
        with self.view() as v:
            return v.search(name=name, node_type=node_type, properties=properties)

    def find_unanchored(self) -> List[NodeId]:
        with self.view() as v:
            return v.find_unanchored()

    def validate(self) -> List[str]:
        """
        Check the soft invariants of the graph.

        Returns:
            List of warnings (empty when every object is governed by a policy class)
        """
        with self.view() as v:
            warnings = [
                f"{v.get_node(n).node_type.value} '{v.get_node(n).name}' ({n}) "
                f"is not assigned to any policy class"
                for n in v.find_unanchored()
            ]
        if self.config.warn_on_unanchored:
            for warning in warnings:
                logger.warning(warning)
        return warnings

    def get_stats(self) -> Dict[str, Any]:
        """Get graph statistics"""
        with self.view():
            return {
                "total_nodes": len(self._nodes),
                "nodes_by_type": {
                    ntype.value: len([n for n in self._nodes.values() if n.node_type == ntype])
                    for ntype in NodeType
                },
                "assignments": sum(len(p) for p in self._parents.values()),
                "associations": sum(len(a) for a in self._assoc_out.values()),
                "type_checking": self.config.type_checking,
            }
