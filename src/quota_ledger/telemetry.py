"""
Low-overhead counters for ledger operations.
"""

from __future__ import annotations

import threading


class Counter:
    """Thread-safe counter metric."""

    __slots__ = ("_value", "_lock")

    def __init__(self, initial: int = 0) -> None:
        self._value = initial
        self._lock = threading.Lock()

    def inc(self, amount: int = 1) -> None:
        """Increment the counter."""
        with self._lock:
            self._value += amount

    @property
    def value(self) -> int:
        return self._value

    def reset(self) -> int:
        """Reset and return the previous value."""
        with self._lock:
            prev = self._value
            self._value = 0
            return prev


class LedgerMetrics:
    """Per-store operation counters.

    A disabled instance accepts increments and records nothing.
    """

    NAMES = (
        "puts_accepted",
        "puts_rejected",
        "accounts_created",
        "admissions_refused",
        "deletes",
        "losses",
        "capacity_updates",
        "drains",
        "drained_entries",
        "discarded_entries",
        "serialization_failures",
    )

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._counters = {name: Counter() for name in self.NAMES}

    def inc(self, name: str, amount: int = 1) -> None:
        if not self.enabled:
            return
        self._counters[name].inc(amount)

    def get(self, name: str) -> int:
        return self._counters[name].value

    def snapshot(self) -> dict[str, int]:
        return {name: counter.value for name, counter in self._counters.items()}

    def reset(self) -> dict[str, int]:
        """Reset all counters and return their previous values."""
        return {name: counter.reset() for name, counter in self._counters.items()}


__all__ = ["Counter", "LedgerMetrics"]
