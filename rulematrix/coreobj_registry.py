"""Registry of core object definitions, keyed by their schema id (SID)."""

from __future__ import annotations

import copy
import re
import threading
from dataclasses import dataclass
from typing import Any

from rulematrix import logs

LIST_PREFIX = "[]"

# Recommended SID convention: TypeName_Vmajor or TypeName_Vmajor_minor.
_SID_FORMAT = re.compile(r"^[A-Z][a-zA-Z0-9]+_V\d+(_\d+)?$")


@dataclass(frozen=True, eq=False)
class CoreObjDef:
    """Definition of a core object type: its SID and a prototype value."""

    default: Any
    sid: str
    description: str = ""

    def new(self) -> Any:
        """Return a fresh, independent copy of the prototype value."""
        return copy.deepcopy(self.default)


class CoreObjRegistry:
    """Thread-safe store of core object definitions."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._definitions: dict[str, Any] = {}

    def register(self, *definitions: Any) -> None:
        """Add definitions, warning about SIDs that break the naming convention."""
        logger = logs.get_logger()
        for definition in definitions:
            if definition is None:
                continue
            sid = definition.sid
            if not _SID_FORMAT.match(sid) and not sid.startswith(LIST_PREFIX):
                logger.warnf(
                    None,
                    "CoreObj SID '%s' does not conform to the recommended format "
                    "'TypeName_Vmajor_minor'.",
                    sid,
                )
            if isinstance(definition.new(), (list, tuple)) and not sid.startswith(LIST_PREFIX):
                logger.warnf(
                    None,
                    "CoreObj SID '%s' is a list type but does not start with '%s'. "
                    "Recommended format: '[]%s'",
                    sid,
                    LIST_PREFIX,
                    sid,
                )
            with self._lock:
                self._definitions[sid] = definition

    def get(self, sid: str) -> Any | None:
        """Return the definition registered under sid, or None."""
        with self._lock:
            return self._definitions.get(sid)

    def unregister(self, *sids: str) -> None:
        with self._lock:
            for sid in sids:
                self._definitions.pop(sid, None)

    def get_all(self) -> list[Any]:
        with self._lock:
            return list(self._definitions.values())