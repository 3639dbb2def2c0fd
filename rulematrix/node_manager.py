"""Registry of node component prototypes, keyed by node type."""

from __future__ import annotations

import threading
from typing import Any


class ComponentError(LookupError):
    """Raised for duplicate or unknown component types."""


class NodeManager:
    """Thread-safe store of node prototypes used to create node instances."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._components: dict[str, Any] = {}

    def register(self, node: Any) -> None:
        """Add a prototype under its node type; raises ComponentError if taken."""
        node_type = node.node_type
        with self._lock:
            if node_type in self._components:
                raise ComponentError(f"component with type '{node_type}' already registered")
            self._components[node_type] = node

    def get(self, node_type: str) -> Any | None:
        with self._lock:
            return self._components.get(node_type)

    def unregister(self, node_type: str) -> None:
        with self._lock:
            if self._components.pop(node_type, None) is None:
                raise ComponentError(f"component with type '{node_type}' not found")

    def new_node(self, node_type: str) -> Any:
        """Create a fresh node of the given type; raises ComponentError if unknown."""
        prototype = self.get(node_type)
        if prototype is None:
            raise ComponentError(f"component with type '{node_type}' not found")
        new = getattr(prototype, "new", None)
        if not callable(new):
            raise ComponentError(f"registered value for type '{node_type}' is not a valid node")
        return new()

    def get_components(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._components)