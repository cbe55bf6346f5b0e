"""
Peer identities used as ledger keys.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass

from blake3 import blake3

from .errors import InvalidIdentityError

IDENTITY_SIZE = 64


@dataclass(frozen=True, order=True)
class Identity:
    """Opaque 64-byte network address.

    Only equality, ordering and hashing matter to the ledger; the bytes
    carry no structure it looks at.
    """

    value: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.value, (bytes, bytearray)):
            raise InvalidIdentityError(
                f"Identity must be bytes, got {type(self.value).__name__}"
            )
        if len(self.value) != IDENTITY_SIZE:
            raise InvalidIdentityError(
                f"Identity must be {IDENTITY_SIZE} bytes, got {len(self.value)}"
            )
        if isinstance(self.value, bytearray):
            object.__setattr__(self, "value", bytes(self.value))

    @classmethod
    def from_hex(cls, text: str) -> Identity:
        try:
            raw = bytes.fromhex(text)
        except ValueError as exc:
            raise InvalidIdentityError(f"Invalid identity hex: {text!r}", cause=exc) from exc
        return cls(raw)

    @classmethod
    def derive(cls, data: str | bytes) -> Identity:
        """Derive a stable identity from arbitrary data (blake3, 64-byte output)."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        return cls(blake3(data).digest(length=IDENTITY_SIZE))

    @classmethod
    def random(cls) -> Identity:
        return cls(secrets.token_bytes(IDENTITY_SIZE))

    def hex(self) -> str:
        return self.value.hex()

    def short(self) -> str:
        h = self.hex()
        return f"{h[:6]}..{h[-6:]}"

    def __str__(self) -> str:
        return self.short()

    def __repr__(self) -> str:
        return f"Identity({self.short()})"


__all__ = ["IDENTITY_SIZE", "Identity"]
