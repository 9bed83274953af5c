"""
Example: Decisions under two policy classes

This script demonstrates how to:
1. Build a graph where a document is governed by two policy classes
2. Query the effective permissions of a user
3. Watch a decision change as a grant is narrowed
"""

import logging

from ngac_policy import Decider, NodeType, PolicyGraph
from ngac_policy.core import READ, WRITE


def main():
    logging.basicConfig(level=logging.INFO, format='%(name)s - %(levelname)s - %(message)s')

    graph = PolicyGraph()
    decider = Decider(graph)

    projects = graph.create_node("Projects", NodeType.PC)
    clearance = graph.create_node("Clearance", NodeType.PC)

    engineers = graph.create_node("Engineers", NodeType.UA)
    alice = graph.create_node("alice", NodeType.U)
    graph.assign(alice, engineers)

    apollo = graph.create_node("Apollo", NodeType.OA)
    secret = graph.create_node("Secret", NodeType.OA)
    graph.assign(apollo, projects)
    graph.assign(secret, clearance)

    design = graph.create_node("design.md", NodeType.O, {"format": "markdown"})
    graph.assign(design, apollo)
    graph.assign(design, secret)

    graph.associate(engineers, apollo, {READ, WRITE})
    graph.associate(engineers, secret, {READ, WRITE})
    print(f"alice on design.md: {sorted(decider.list_permissions(alice, design))}")

    # Clearance now only allows reading; both policy classes must agree
    graph.associate(engineers, secret, {READ})
    print(f"alice on design.md: {sorted(decider.list_permissions(alice, design))}")

    decision, reason = decider.authorize(alice, design, [WRITE])
    print(f"write: {decision.value} ({reason})")


if __name__ == "__main__":
    main()
