"""Registry of fault definitions, keyed by their code."""

from __future__ import annotations

import threading

from rulematrix.model import Fault


class DuplicateFaultError(ValueError):
    """Raised when a fault code is registered twice."""


class FaultRegistry:
    """Thread-safe store of faults; each code may be registered once."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._faults: dict[int, Fault] = {}

    def register(self, *faults: Fault | None) -> None:
        """Add faults in order; raises DuplicateFaultError on a repeated code."""
        with self._lock:
            for fault in faults:
                if fault is None:
                    continue
                if fault.code in self._faults:
                    raise DuplicateFaultError(f"error code {fault.code} is already registered")
                self._faults[fault.code] = fault

    def get(self, code: int) -> Fault | None:
        with self._lock:
            return self._faults.get(code)