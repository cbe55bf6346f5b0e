"""
Per-identity accounting records.

Two account kinds share one shape and differ only in their write/delete
policy:

- ClientAccount consumes a shared balance: every stored byte moves from
  ``space_available`` to ``data_stored``.
- NodeAccount caps against a ceiling: ``offered_space`` is a limit that is
  never debited, and bytes lost from the node are tallied separately.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Any, Protocol, runtime_checkable

from .errors import ErrorContext, InvalidSizeError

# 1 GiB, granted to every account until an account-creation handshake exists.
DEFAULT_QUOTA = 1073741824
U64_MAX = 2**64 - 1


class AccountKind(IntEnum):
    """Type discriminator carried with every serialized account."""
    CLIENT = 1
    NODE = 2


def check_size(size: Any, operation: str | None = None) -> int:
    """Validate a byte count as an unsigned 64-bit integer."""
    if isinstance(size, bool) or not isinstance(size, int):
        raise InvalidSizeError(
            f"Size must be an integer, got {type(size).__name__}",
            size=size,
            context=ErrorContext(operation=operation),
        )
    if size < 0 or size > U64_MAX:
        raise InvalidSizeError(
            f"Size out of range: {size}",
            size=size,
            context=ErrorContext(operation=operation),
        )
    return size


@runtime_checkable
class Account(Protocol):
    """What the ledger store needs from an account."""

    kind: AccountKind

    def put(self, size: int) -> bool: ...

    def delete(self, size: int) -> None: ...

    def to_dict(self) -> dict[str, int]: ...

    def copy(self) -> Account: ...


@dataclass
class ClientAccount:
    """A client's stored bytes against its granted quota.

    ``data_stored + space_available`` always equals the quota granted at
    creation.
    """
    data_stored: int = 0
    space_available: int = DEFAULT_QUOTA

    kind = AccountKind.CLIENT

    @classmethod
    def with_quota(cls, quota: int) -> ClientAccount:
        return cls(data_stored=0, space_available=check_size(quota, "create"))

    @property
    def quota(self) -> int:
        return self.data_stored + self.space_available

    def put(self, size: int) -> bool:
        check_size(size, "put")
        if size > self.space_available:
            return False
        self.data_stored += size
        self.space_available -= size
        return True

    def delete(self, size: int) -> None:
        """Release ``size`` bytes.

        Deleting more than is stored releases only what was recorded: the
        account ends with nothing stored and its full quota available.
        """
        check_size(size, "delete")
        if size > self.data_stored:
            self.space_available += self.data_stored
            self.data_stored = 0
        else:
            self.data_stored -= size
            self.space_available += size

    def to_dict(self) -> dict[str, int]:
        return {
            "data_stored": self.data_stored,
            "space_available": self.space_available,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClientAccount:
        return cls(
            data_stored=check_size(data["data_stored"], "decode"),
            space_available=check_size(data["space_available"], "decode"),
        )

    def copy(self) -> ClientAccount:
        return replace(self)


@dataclass
class NodeAccount:
    """A storage node's stored and lost bytes against its offered capacity.

    ``stored_total_size <= offered_space`` is checked on ``put`` only.
    ``set_available_space`` may lower the ceiling below what is already
    stored; that state is left as is.
    """
    stored_total_size: int = 0
    lost_total_size: int = 0
    offered_space: int = DEFAULT_QUOTA

    kind = AccountKind.NODE

    @classmethod
    def with_quota(cls, capacity: int) -> NodeAccount:
        return cls(offered_space=check_size(capacity, "create"))

    def put(self, size: int) -> bool:
        check_size(size, "put")
        if self.stored_total_size + size > self.offered_space:
            return False
        self.stored_total_size += size
        return True

    def delete(self, size: int) -> None:
        check_size(size, "delete")
        if size > self.stored_total_size:
            self.stored_total_size = 0
        else:
            self.stored_total_size -= size

    def handle_lost_data(self, size: int) -> None:
        """Drop ``size`` bytes from the stored tally and record them as lost.

        A loss that would carry ``lost_total_size`` past 64 bits raises
        ``InvalidSizeError`` and leaves the account unchanged.
        """
        check_size(size, "handle_lost_data")
        if self.lost_total_size + size > U64_MAX:
            raise InvalidSizeError(
                f"Lost total would overflow: {self.lost_total_size} + {size}",
                size=size,
                context=ErrorContext(operation="handle_lost_data"),
            )
        self.delete(size)
        self.lost_total_size += size

    def handle_failure(self, size: int) -> None:
        self.handle_lost_data(size)

    def update_account(self, diff: int) -> None:
        self.handle_lost_data(diff)

    def set_available_space(self, value: int) -> None:
        self.offered_space = check_size(value, "set_available_space")

    def to_dict(self) -> dict[str, int]:
        return {
            "stored_total_size": self.stored_total_size,
            "lost_total_size": self.lost_total_size,
            "offered_space": self.offered_space,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NodeAccount:
        return cls(
            stored_total_size=check_size(data["stored_total_size"], "decode"),
            lost_total_size=check_size(data["lost_total_size"], "decode"),
            offered_space=check_size(data["offered_space"], "decode"),
        )

    def copy(self) -> NodeAccount:
        return replace(self)


ACCOUNT_TYPES: dict[AccountKind, type[ClientAccount] | type[NodeAccount]] = {
    AccountKind.CLIENT: ClientAccount,
    AccountKind.NODE: NodeAccount,
}


__all__ = [
    "DEFAULT_QUOTA",
    "U64_MAX",
    "AccountKind",
    "Account",
    "ClientAccount",
    "NodeAccount",
    "ACCOUNT_TYPES",
    "check_size",
]
