"""Registry of function node definitions with validation of their configuration."""

from __future__ import annotations

import enum
import threading
from dataclasses import dataclass, field
from typing import Any, Callable


class ConfigFieldType(str, enum.Enum):
    """Types allowed for business configuration fields."""

    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    MAP = "map"
    ARRAY = "array"

    @classmethod
    def is_supported(cls, value: Any) -> bool:
        if isinstance(value, cls):
            return True
        return any(member.value == value for member in cls)


@dataclass
class DynamicConfigField:
    """One business configuration field of a function."""

    id: str = ""
    name: str = ""
    type: ConfigFieldType | str = ConfigFieldType.STRING
    default: Any = None
    not_editable: bool = False
    description: str = ""


@dataclass
class NodeFuncObject:
    """A function that a function node can run, with its configuration schema."""

    id: str
    name: str = ""
    description: str = ""
    business: list[DynamicConfigField] = field(default_factory=list)
    func: Callable[..., Any] | None = None


class FuncRegistrationError(ValueError):
    """Raised when a function's configuration schema is invalid."""


class NodeFuncManager:
    """Thread-safe store of function node definitions."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._functions: dict[str, NodeFuncObject] = {}

    def register(self, *funcs: NodeFuncObject | None) -> None:
        """Validate and add functions; raises FuncRegistrationError on a bad schema."""
        for func in funcs:
            if func is None:
                continue
            for config_field in func.business:
                if not ConfigFieldType.is_supported(config_field.type):
                    kind = getattr(config_field.type, "value", config_field.type)
                    raise FuncRegistrationError(
                        f"Function {func.id} registration failed: invalid business config "
                        f"type '{kind}' for field '{config_field.name}'"
                    )
                if config_field.not_editable and config_field.default is None:
                    raise FuncRegistrationError(
                        f"Function {func.id} registration failed: field '{config_field.id}' "
                        f"is notEditable but missing defaultValue"
                    )
            with self._lock:
                self._functions[func.id] = func

    def get(self, func_id: str) -> NodeFuncObject | None:
        with self._lock:
            return self._functions.get(func_id)

    def list(self) -> list[NodeFuncObject]:
        with self._lock:
            return [*self._functions.values()]