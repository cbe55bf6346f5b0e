"""
Admission policies decide whether an untracked identity may open an account
and how much capacity it is granted.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .accounts import DEFAULT_QUOTA, check_size
from .identity import Identity


class AdmissionPolicy(ABC):
    """Source of grants for new accounts."""

    @abstractmethod
    def grant(self, identity: Identity) -> int | None:
        """Return the capacity to grant, or None to refuse the identity."""
        ...


class AutoGrant(AdmissionPolicy):
    """Grants every identity the same fixed capacity.

    Stands in for an account-creation handshake: any write to an unknown
    identity opens an account for it.
    """

    def __init__(self, capacity: int = DEFAULT_QUOTA):
        self.capacity = check_size(capacity, "grant")

    def grant(self, identity: Identity) -> int | None:
        return self.capacity


class AllowList(AdmissionPolicy):
    """Grants only identities that were explicitly allowed."""

    def __init__(
        self,
        grants: dict[Identity, int] | None = None,
        default_capacity: int = DEFAULT_QUOTA,
    ):
        self.default_capacity = check_size(default_capacity, "grant")
        self._grants: dict[Identity, int] = {}
        for identity, capacity in (grants or {}).items():
            self.allow(identity, capacity)

    def allow(self, identity: Identity, capacity: int | None = None) -> None:
        if capacity is None:
            capacity = self.default_capacity
        self._grants[identity] = check_size(capacity, "grant")

    def revoke(self, identity: Identity) -> bool:
        return self._grants.pop(identity, None) is not None

    def grant(self, identity: Identity) -> int | None:
        return self._grants.get(identity)

    def __contains__(self, identity: object) -> bool:
        return identity in self._grants

    def __len__(self) -> int:
        return len(self._grants)


__all__ = [
    "AdmissionPolicy",
    "AutoGrant",
    "AllowList",
]
