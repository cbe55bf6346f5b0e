"""
Account codec and transmission envelope.

Payloads are deterministic JSON objects:

    {"kind": 1, "schema_version": 1, "data_stored": 0, "space_available": 1073741824}

The ``kind`` field repeats the envelope discriminator so a payload can be
checked on its own when it is restored.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import orjson

from .accounts import ACCOUNT_TYPES, Account, AccountKind
from .errors import DecodeError, EncodeError, ErrorContext, PayloadKindMismatchError
from .identity import Identity
from .serialization import fast_json_loads, stable_json_dumps

SCHEMA_VERSION = 1


@dataclass(frozen=True)
class Envelope:
    """A drained payload tagged with its owner and account kind."""

    identity: Identity
    kind: AccountKind
    payload: bytes

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity.hex(),
            "kind": int(self.kind),
            "payload": self.payload.decode("utf-8"),
        }


class AccountCodec:
    """Turns accounts into bytes and back."""

    def __init__(self, schema_version: int = SCHEMA_VERSION):
        self.schema_version = schema_version

    def encode(self, account: Account) -> bytes:
        try:
            body = {
                "kind": int(account.kind),
                "schema_version": self.schema_version,
                **account.to_dict(),
            }
            return stable_json_dumps(body)
        except (TypeError, ValueError, AttributeError, orjson.JSONEncodeError) as exc:
            raise EncodeError(
                f"Failed to encode {type(account).__name__}: {exc}",
                context=ErrorContext(operation="encode"),
                cause=exc,
            ) from exc

    def decode(
        self,
        payload: bytes,
        expected_kind: AccountKind | None = None,
    ) -> Account:
        try:
            data = fast_json_loads(payload)
        except orjson.JSONDecodeError as exc:
            raise DecodeError(
                f"Payload is not valid JSON: {exc}",
                context=ErrorContext(operation="decode"),
                cause=exc,
            ) from exc

        if not isinstance(data, dict):
            raise DecodeError(
                f"Payload must be an object, got {type(data).__name__}",
                context=ErrorContext(operation="decode"),
            )

        try:
            kind = AccountKind(data.get("kind"))
        except ValueError as exc:
            raise DecodeError(
                f"Unknown account kind: {data.get('kind')!r}",
                context=ErrorContext(operation="decode"),
                cause=exc,
            ) from exc

        if expected_kind is not None and kind != expected_kind:
            raise PayloadKindMismatchError(
                expected=expected_kind.name,
                actual=kind.name,
                context=ErrorContext(operation="decode"),
            )

        version = data.get("schema_version")
        if version != self.schema_version:
            raise DecodeError(
                f"Unsupported schema version: {version!r}",
                context=ErrorContext(operation="decode"),
            )

        try:
            return ACCOUNT_TYPES[kind].from_dict(data)
        except (KeyError, ValueError) as exc:
            raise DecodeError(
                f"Malformed {kind.name.lower()} account payload: {exc}",
                context=ErrorContext(operation="decode"),
                cause=exc,
            ) from exc

    def wrap(self, identity: Identity, account: Account) -> Envelope:
        return Envelope(identity=identity, kind=account.kind, payload=self.encode(account))


__all__ = [
    "SCHEMA_VERSION",
    "Envelope",
    "AccountCodec",
]
