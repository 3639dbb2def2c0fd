"""Rule chain definitions, messages, faults and the node base class."""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Mapping

TEXT = "TEXT"
JSON = "JSON"

MSG_TYPE_STOP_PROPAGATION = "STOP_PROPAGATION"

META_ERROR = "error"
META_ERROR_TIMESTAMP = "errorTimestamp"
META_ERROR_CODE = "errorCode"
META_ERROR_NODE_ID = "errorNodeId"
META_ERROR_NODE_NAME = "errorNodeName"


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"{what}: expected an object, got {type(data).__name__}")
    return data


def _string(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r}: expected a string, got {type(value).__name__}")
    return value


def _object(data: Mapping[str, Any], key: str) -> dict[str, Any]:
    return dict(_mapping(data.get(key), f"field {key!r}"))


def _array(data: Mapping[str, Any], key: str) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"field {key!r}: expected an array, got {type(value).__name__}")
    return value


@dataclass
class NodeDef:
    """Definition of one node inside a rule chain."""

    id: str = ""
    type: str = ""
    name: str = ""
    configuration: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> NodeDef:
        data = _mapping(data, "node")
        return cls(
            id=_string(data, "id"),
            type=_string(data, "type"),
            name=_string(data, "name"),
            configuration=_object(data, "configuration"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "configuration": dict(self.configuration),
        }


@dataclass(frozen=True)
class Connection:
    """A directed, typed edge between two nodes."""

    from_id: str = ""
    to_id: str = ""
    type: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> Connection:
        data = _mapping(data, "connection")
        return cls(
            from_id=_string(data, "fromId"),
            to_id=_string(data, "toId"),
            type=_string(data, "type"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"fromId": self.from_id, "toId": self.to_id, "type": self.type}


class OnErrorStrategy(str, enum.Enum):
    """What a chain does with an error that reached its end."""

    HALT = "halt"
    CONTINUE = "continue"
    REDIRECT = "redirect"

    @classmethod
    def _missing_(cls, value: object) -> OnErrorStrategy:
        # Empty or unknown strategies fall back to halting.
        return cls.HALT


@dataclass
class RuleChainOnError:
    """Chain-level error handling configuration."""

    strategy: OnErrorStrategy = OnErrorStrategy.HALT
    handler: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> RuleChainOnError:
        data = _mapping(data, "onError")
        return cls(
            strategy=OnErrorStrategy(_string(data, "strategy")),
            handler=_string(data, "handler"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"strategy": self.strategy.value, "handler": self.handler}


@dataclass
class RuleChainData:
    """Identity and configuration of a rule chain."""

    id: str = ""
    name: str = ""
    configuration: dict[str, Any] = field(default_factory=dict)
    attrs: dict[str, Any] = field(default_factory=dict)
    on_error: RuleChainOnError | None = None

    @property
    def view_type(self) -> str:
        value = self.attrs.get("viewType", "")
        return value if isinstance(value, str) else ""


@dataclass
class RuleChainDef:
    """A complete rule chain: its header, nodes and connections."""

    rule_chain: RuleChainData = field(default_factory=RuleChainData)
    nodes: list[NodeDef] = field(default_factory=list)
    connections: list[Connection] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> RuleChainDef:
        data = _mapping(data, "rule chain")
        header = _object(data, "ruleChain")
        metadata = _object(data, "metadata")
        on_error = header.get("onError")
        return cls(
            rule_chain=RuleChainData(
                id=_string(header, "id"),
                name=_string(header, "name"),
                configuration=_object(header, "configuration"),
                attrs=_object(header, "attrs"),
                on_error=None if on_error is None else RuleChainOnError.from_dict(on_error),
            ),
            nodes=[NodeDef.from_dict(item) for item in _array(metadata, "nodes")],
            connections=[Connection.from_dict(item) for item in _array(metadata, "connections")],
        )

    def to_dict(self) -> dict[str, Any]:
        header: dict[str, Any] = {
            "id": self.rule_chain.id,
            "name": self.rule_chain.name,
            "configuration": dict(self.rule_chain.configuration),
            "attrs": dict(self.rule_chain.attrs),
        }
        if self.rule_chain.on_error is not None:
            header["onError"] = self.rule_chain.on_error.to_dict()
        return {
            "ruleChain": header,
            "metadata": {
                "nodes": [node.to_dict() for node in self.nodes],
                "connections": [conn.to_dict() for conn in self.connections],
            },
        }


class Fault(Exception):
    """An error with a registered numeric code."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"Fault(code={self.code!r}, message={self.message!r})"


@dataclass
class RuleMsg:
    """A message flowing through a rule chain."""

    type: str = ""
    data: str = ""
    metadata: dict[str, str] = field(default_factory=dict)
    data_t: dict[str, Any] = field(default_factory=dict)
    data_format: str = TEXT
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def copy(self) -> RuleMsg:
        """Return a copy whose metadata and object map are independent."""
        return replace(self, metadata=dict(self.metadata), data_t=dict(self.data_t))


@dataclass(frozen=True)
class DataContract:
    """The message URIs a node reads and writes."""

    reads: tuple[str, ...] = ()
    writes: tuple[str, ...] = ()


class Node:
    """Base class for rule chain components.

    Subclasses set ``node_type`` and override ``on_msg``; they must be
    constructible without arguments so that ``new`` can create instances.
    """

    node_type: str = ""

    def __init__(self) -> None:
        self.id = ""
        self.name = ""
        self.configuration: dict[str, Any] = {}
        self.destroyed = False

    def new(self) -> Node:
        """Create a fresh, uninitialised instance of the same component."""
        return type(self)()

    def init(self, configuration: Mapping[str, Any] | None) -> None:
        """Initialise the node from its business configuration."""
        self.configuration = dict(configuration or {})
        self.destroyed = False

    def on_msg(self, ctx: Any, msg: RuleMsg) -> None:
        """Handle a message; the default passes it on along 'Success'."""
        ctx.tell_success(msg)

    def destroy(self) -> None:
        """Release the node's configuration and mark it destroyed."""
        self.configuration = {}
        self.destroyed = True

    @property
    def data_contract(self) -> DataContract:
        return DataContract()


@dataclass(frozen=True)
class TriggerSource:
    """A node that triggers a rule chain."""

    source_chain_id: str = ""
    node_id: str = ""
    node_type: str = ""
    is_endpoint: bool = False