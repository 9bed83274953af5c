"""
Policy Decider

Computes the operations a user may perform on a target:

    for each policy class p governing the target:
        grants(p) = union of association operations whose source is an
                    ascendant of the user and whose target is an ascendant
                    of the target contained in p
    permissions = intersection of grants(p) over all governing p

A target governed by no policy class grants nothing. Every query runs
against the graph state at call time; nothing is cached between calls.
"""

import logging
from enum import Enum
from typing import Dict, Iterable, List, Set, Tuple

from .graph import GraphView, PolicyGraph
from .nodes import NodeId, NodeType

logger = logging.getLogger(__name__)


class PolicyDecision(str, Enum):
    """Authorization decision"""
    ALLOW = "allow"
    DENY = "deny"


def _list_permissions(view: GraphView, user_id: NodeId, target_id: NodeId) -> Set[str]:
    user_ascendants = view.ascendants(user_id)
    target_ascendants = view.ascendants(target_id)

    policy_classes = [n for n in target_ascendants if view.node_type(n) == NodeType.PC]
    if not policy_classes:
        return set()

    # Operations granted to the user on each of the target's ascendants
    granted: Dict[NodeId, Set[str]] = {}
    for ua in user_ascendants:
        for assoc_target, ops in view.associations_from(ua):
            if assoc_target in target_ascendants:
                granted.setdefault(assoc_target, set()).update(ops)

    result = None
    for pc in policy_classes:
        scope = view.descendants(pc) & target_ascendants
        pc_grants: Set[str] = set()
        for node_id in scope:
            pc_grants |= granted.get(node_id, set())
        result = pc_grants if result is None else result & pc_grants
        if not result:
            break

    return result or set()


class Decider:
    """
    Decision point over a policy graph.

    Holds no state across calls; each query takes the graph's read lock
    for its whole duration.
    """

    def __init__(self, graph: PolicyGraph):
        self.graph = graph

    def list_permissions(self, user_id: NodeId, target_id: NodeId) -> Set[str]:
        """
        Compute the operations user_id may perform on target_id.

        Raises:
            InvalidReference: If either node doesn't exist
        """
        with self.graph.view() as view:
            permissions = _list_permissions(view, user_id, target_id)
        logger.debug(f"Permissions for {user_id} on {target_id}: {sorted(permissions)}")
        return permissions

    def check(self, user_id: NodeId, target_id: NodeId, *operations: str) -> bool:
        """
        Check that every requested operation is permitted.

        With no operations, checks that the user holds any permission at all.
        """
        permissions = self.list_permissions(user_id, target_id)
        if not operations:
            return bool(permissions)
        return all(op in permissions for op in operations)

    def authorize(
        self,
        user_id: NodeId,
        target_id: NodeId,
        operations: Iterable[str]
    ) -> Tuple[PolicyDecision, str]:
        """
        Make an authorization decision.

        Returns:
            (decision, reason) tuple
        """
        requested = set(operations)
        with self.graph.view() as view:
            permissions = _list_permissions(view, user_id, target_id)
            user = view.get_node(user_id)
            target = view.get_node(target_id)

        missing = requested - permissions
        if requested and not missing:
            reason = f"Granted {sorted(requested)}"
            logger.info(f"Authorization ALLOW: {target.name} for {user.name} - {reason}")
            return (PolicyDecision.ALLOW, reason)

        if not requested:
            reason = "No operations requested"
        elif not permissions:
            reason = "No permissions granted"
        else:
            reason = f"Missing {sorted(missing)}"
        logger.warning(f"Authorization DENY: {target.name} for {user.name} - {reason}")
        return (PolicyDecision.DENY, reason)

    def filter(self, user_id: NodeId, node_ids: Iterable[NodeId], *operations: str) -> List[NodeId]:
        """Keep the nodes on which the user holds every given operation"""
        required = set(operations)
        allowed = []
        with self.graph.view() as view:
            for node_id in node_ids:
                permissions = _list_permissions(view, user_id, node_id)
                if permissions and required <= permissions:
                    allowed.append(node_id)
        return allowed

    def get_children(self, user_id: NodeId, target_id: NodeId, *operations: str) -> List[NodeId]:
        """Direct children of target_id on which the user holds every given operation"""
        required = set(operations)
        allowed = []
        with self.graph.view() as view:
            for child in sorted(view.children(target_id)):
                permissions = _list_permissions(view, user_id, child)
                if permissions and required <= permissions:
                    allowed.append(child)
        return allowed

    def get_accessible_nodes(self, user_id: NodeId) -> Dict[NodeId, Set[str]]:
        """
        Every node the user holds at least one operation on.

        Candidates are the nodes contained in some association target
        reachable from the user's attributes.
        """
        accessible: Dict[NodeId, Set[str]] = {}
        with self.graph.view() as view:
            candidates: Set[NodeId] = set()
            for ua in view.ascendants(user_id):
                for assoc_target, _ in view.associations_from(ua):
                    candidates |= view.descendants(assoc_target)

            for node_id in candidates:
                permissions = _list_permissions(view, user_id, node_id)
                if permissions:
                    accessible[node_id] = permissions

        logger.debug(f"User {user_id} can access {len(accessible)} nodes")
        return accessible
