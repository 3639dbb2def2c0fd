"""Live instance of a rule chain: initialised nodes and their connections."""

from __future__ import annotations

from typing import Any

from rulematrix.model import Connection, NodeDef, RuleChainDef


class ChainInstance:
    """Holds the node instances, their definitions and the outgoing edges of a chain."""

    def __init__(self, definition: RuleChainDef) -> None:
        self.definition = definition
        self._nodes: dict[str, Any] = {}
        self._node_defs: dict[str, NodeDef] = {}
        self._connections: dict[str, list[Connection]] = {}

    def get_node(self, node_id: str) -> Any | None:
        return self._nodes.get(node_id)

    def get_node_def(self, node_id: str) -> NodeDef | None:
        return self._node_defs.get(node_id)

    def get_connections(self, from_node_id: str) -> list[Connection]:
        return list(self._connections.get(from_node_id, ()))

    def get_root_node_ids(self) -> list[str]:
        """Return the ids of nodes that no connection leads into."""
        targets = {conn.to_id for conns in self._connections.values() for conn in conns}
        return [node_id for node_id in self._nodes if node_id not in targets]

    def get_all_nodes(self) -> dict[str, Any]:
        return dict(self._nodes)

    def destroy(self) -> None:
        """Release the resources of every node in the chain."""
        for node in self._nodes.values():
            node.destroy()

    def add_node(self, node: Any, definition: NodeDef) -> None:
        self._nodes[definition.id] = node
        self._node_defs[definition.id] = definition

    def add_connection(self, connection: Connection) -> None:
        self._connections.setdefault(connection.from_id, []).append(connection)