"""Pool of rule chain runtimes and the triggers that lead into each chain."""

from __future__ import annotations

import threading
from typing import Any, Iterator, Mapping, Protocol, runtime_checkable

from rulematrix.model import TriggerSource


@runtime_checkable
class SubChainTrigger(Protocol):
    """A node that invokes one other rule chain."""

    def get_target_chain_id(self) -> str: ...


@runtime_checkable
class MultiChainTrigger(Protocol):
    """A node that invokes several other rule chains."""

    def get_target_chain_ids(self) -> list[str]: ...


class Endpoint:
    """Marker for nodes that start their own rule chain from outside."""


def _trigger_sources(runtime_id: str, runtime: Any) -> Iterator[tuple[str, TriggerSource]]:
    instance = runtime.get_chain_instance()
    if instance is None:
        return
    nodes = instance.get_all_nodes()
    if isinstance(nodes, Mapping):
        nodes = nodes.values()
    for node in nodes:
        def source(is_endpoint: bool = False, node: Any = node) -> TriggerSource:
            return TriggerSource(
                source_chain_id=runtime_id,
                node_id=node.id,
                node_type=node.node_type,
                is_endpoint=is_endpoint,
            )

        if isinstance(node, SubChainTrigger):
            target = node.get_target_chain_id()
            if target:
                yield target, source()
        if isinstance(node, MultiChainTrigger):
            for target in node.get_target_chain_ids():
                if target:
                    yield target, source()
        if isinstance(node, Endpoint):
            yield runtime_id, source(is_endpoint=True)


class RuntimePool:
    """Thread-safe registry of runtimes keyed by rule chain id."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._runtimes: dict[str, Any] = {}
        self._triggers: dict[str, list[TriggerSource]] = {}

    def get(self, runtime_id: str) -> Any | None:
        with self._lock:
            return self._runtimes.get(runtime_id)

    def register(self, runtime_id: str, runtime: Any) -> None:
        """Add a runtime and index its triggers; raises ValueError if the id is taken."""
        with self._lock:
            if runtime_id in self._runtimes:
                raise ValueError(f"runtime with id '{runtime_id}' already registered")
            self._runtimes[runtime_id] = runtime
            for target, source in _trigger_sources(runtime_id, runtime):
                self._triggers.setdefault(target, []).append(source)

    def unregister(self, runtime_id: str) -> None:
        with self._lock:
            runtime = self._runtimes.get(runtime_id)
            if runtime is None:
                return
            for target, source in _trigger_sources(runtime_id, runtime):
                self._remove_trigger(target, source)
            del self._runtimes[runtime_id]

    def list_ids(self) -> list[str]:
        with self._lock:
            return list(self._runtimes)

    def list_by_view_type(self, view_type: str) -> list[Any]:
        with self._lock:
            return [
                runtime
                for runtime in self._runtimes.values()
                if runtime.definition.rule_chain.view_type == view_type
            ]

    def get_triggers(self, chain_id: str) -> list[TriggerSource]:
        """Return a copy of the triggers that lead into chain_id."""
        with self._lock:
            return list(self._triggers.get(chain_id, ()))

    def register_trigger(self, target_chain_id: str, source: TriggerSource) -> None:
        with self._lock:
            self._triggers.setdefault(target_chain_id, []).append(source)

    def unregister_trigger(self, target_chain_id: str, source: TriggerSource) -> None:
        with self._lock:
            self._remove_trigger(target_chain_id, source)

    def _remove_trigger(self, target_chain_id: str, to_remove: TriggerSource) -> None:
        sources = self._triggers.get(target_chain_id, [])
        for position, existing in enumerate(sources):
            if (existing.source_chain_id == to_remove.source_chain_id
                    and existing.node_id == to_remove.node_id):
                del sources[position]
                return