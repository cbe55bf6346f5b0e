"""
Ledger stores: keyed collections of accounts with guarded writes and an
atomic drain-and-reset.

This module provides:
- LedgerStore: shared store logic, generic over the account kind
- ClientLedger: client accounts; drains every entry
- NodeLedger: node accounts; drains every entry but emits only members
- DrainResult: the serialized output of a drain
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from .accounts import AccountKind, ClientAccount, NodeAccount, check_size
from .admission import AdmissionPolicy, AllowList, AutoGrant
from .codec import AccountCodec, Envelope
from .config import LedgerConfig, get_settings
from .errors import ErrorContext, SerializationError
from .identity import Identity
from .logging import DrainLog, StructuredLogger, get_logger
from .telemetry import LedgerMetrics

A = TypeVar("A", ClientAccount, NodeAccount)


@dataclass
class DrainFailure:
    """An account that could not be serialized during a drain."""
    identity: Identity
    error: SerializationError


@dataclass
class DrainResult:
    """Output of a drain-and-reset.

    ``entries`` holds ``(identity, payload)`` pairs sorted by identity.
    ``discarded`` lists identities that were removed but deliberately not
    emitted; ``failures`` lists identities whose account failed to encode.
    Every identity that was in the store appears in exactly one of the three.
    """
    kind: AccountKind
    entries: list[tuple[Identity, bytes]] = field(default_factory=list)
    failures: list[DrainFailure] = field(default_factory=list)
    discarded: list[Identity] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def identities(self) -> list[Identity]:
        return [identity for identity, _ in self.entries]

    def envelopes(self) -> list[Envelope]:
        return [
            Envelope(identity=identity, kind=self.kind, payload=payload)
            for identity, payload in self.entries
        ]

    def __iter__(self) -> Iterator[tuple[Identity, bytes]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


class LedgerStore(Generic[A]):
    """Identity -> account map shared by both ledger kinds.

    Every operation runs under one lock and none of them blocks while
    holding it. Accounts never leave the store; ``snapshot`` hands out
    copies.
    """

    kind: AccountKind
    account_type: type[A]

    def __init__(
        self,
        *,
        config: LedgerConfig | None = None,
        admission: AdmissionPolicy | None = None,
        codec: AccountCodec | None = None,
        logger: StructuredLogger | None = None,
        metrics: LedgerMetrics | None = None,
    ):
        settings = get_settings()
        self.config = config or settings.ledger
        if admission is None:
            if self.config.auto_grant:
                admission = AutoGrant(self.config.default_quota)
            else:
                admission = AllowList(default_capacity=self.config.default_quota)
        self.admission = admission
        self.codec = codec or AccountCodec()
        self.logger = logger or get_logger(
            settings.logging.name,
            level=settings.logging.level,
            json_output=settings.logging.format == "json",
        )
        self.metrics = metrics or LedgerMetrics(enabled=settings.telemetry.enabled)

        self._accounts: dict[Identity, A] = {}
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self.kind.name.lower()

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def exists(self, identity: Identity) -> bool:
        with self._lock:
            return identity in self._accounts

    def snapshot(self, identity: Identity) -> A | None:
        """Return a copy of the identity's account, if it has one."""
        with self._lock:
            account = self._accounts.get(identity)
            return account.copy() if account is not None else None

    def identities(self) -> list[Identity]:
        with self._lock:
            return sorted(self._accounts)

    def __contains__(self, identity: object) -> bool:
        with self._lock:
            return identity in self._accounts

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def open_account(self, identity: Identity, capacity: int | None = None) -> bool:
        """Open an account explicitly.

        ``capacity`` overrides the admission grant. Returns False if the
        identity already has an account or admission refuses it.
        """
        if capacity is not None:
            check_size(capacity, "open_account")
        with self._lock:
            if identity in self._accounts:
                return False
            account = self._create(identity, capacity)
        if account is None:
            self._refused(identity, "open_account")
            return False
        self._created(identity, account, "open_account")
        return True

    def put(self, identity: Identity, size: int) -> bool:
        """Record ``size`` bytes against the identity's account.

        An untracked identity gets an account first, so the account exists
        afterward even when the put itself is rejected.
        """
        check_size(size, "put")
        created = None
        with self._lock:
            account = self._accounts.get(identity)
            if account is None:
                account = created = self._create(identity, None)
            accepted = account.put(size) if account is not None else False

        if account is None:
            self._refused(identity, "put")
            return False
        if created is not None:
            self._created(identity, created, "put")
        self.metrics.inc("puts_accepted" if accepted else "puts_rejected")
        return accepted

    def delete(self, identity: Identity, size: int) -> None:
        """Release ``size`` bytes; untracked identities are ignored."""
        check_size(size, "delete")
        with self._lock:
            account = self._accounts.get(identity)
            if account is None:
                return
            account.delete(size)
        self.metrics.inc("deletes")

    def restore(self, identity: Identity, payload: bytes) -> A:
        """Install an account from a drained payload, replacing any current one."""
        account = self.codec.decode(payload, expected_kind=self.kind)
        with self._lock:
            self._accounts[identity] = account
            restored = account.copy()
        self.logger.debug(
            f"Restored {self.name} account",
            ledger=self.name,
            identity=str(identity),
        )
        return restored

    # -------------------------------------------------------------------------
    # Drain
    # -------------------------------------------------------------------------

    def _drain(self, emit: Callable[[Identity], bool] | None = None) -> DrainResult:
        # Swap under the lock; encode outside it.
        with self._lock:
            drained, self._accounts = self._accounts, {}

        with self.logger.trace_context(ledger=self.name, operation="drain_and_reset"):
            result = self._encode_all(drained, emit)
            if result.discarded:
                self.logger.warning(
                    f"Discarded {self.name} accounts outside membership",
                    discarded=len(result.discarded),
                    identities=[str(identity) for identity in result.discarded],
                )
            self.logger.log_drain(DrainLog(
                ledger=self.name,
                removed=len(drained),
                emitted=len(result.entries),
                discarded=len(result.discarded),
                failed=len(result.failures),
            ))

        self.metrics.inc("drains")
        self.metrics.inc("drained_entries", len(result.entries))
        self.metrics.inc("discarded_entries", len(result.discarded))
        self.metrics.inc("serialization_failures", len(result.failures))
        return result

    def _encode_all(
        self,
        drained: dict[Identity, A],
        emit: Callable[[Identity], bool] | None,
    ) -> DrainResult:
        result = DrainResult(kind=self.kind)
        for identity in sorted(drained):
            if emit is not None and not emit(identity):
                result.discarded.append(identity)
                continue
            try:
                payload = self.codec.encode(drained[identity])
            except SerializationError as exc:
                exc.context = ErrorContext(
                    identity=str(identity),
                    ledger=self.name,
                    operation="drain_and_reset",
                )
                result.failures.append(DrainFailure(identity=identity, error=exc))
                self.logger.log_error(exc, f"Failed to serialize {self.name} account")
                continue
            result.entries.append((identity, payload))
        return result

    # -------------------------------------------------------------------------
    # Internals (caller holds the lock)
    # -------------------------------------------------------------------------

    def _create(self, identity: Identity, capacity: int | None) -> A | None:
        if capacity is None:
            capacity = self.admission.grant(identity)
            if capacity is None:
                return None
        account = self.account_type.with_quota(capacity)
        self._accounts[identity] = account
        return account

    def _created(self, identity: Identity, account: A, operation: str) -> None:
        self.metrics.inc("accounts_created")
        self.logger.debug(
            f"Opened {self.name} account",
            ledger=self.name,
            identity=str(identity),
            operation=operation,
            **account.to_dict(),
        )

    def _refused(self, identity: Identity, operation: str) -> None:
        self.metrics.inc("admissions_refused")
        self.logger.debug(
            f"Admission refused for {self.name} account",
            ledger=self.name,
            identity=str(identity),
            operation=operation,
        )


class ClientLedger(LedgerStore[ClientAccount]):
    """Client identities' stored bytes against their granted quotas."""

    kind = AccountKind.CLIENT
    account_type = ClientAccount

    def drain_and_reset(self) -> DrainResult:
        """Empty the ledger and return one payload per removed account."""
        return self._drain()


class NodeLedger(LedgerStore[NodeAccount]):
    """Storage nodes' stored and lost bytes against their offered capacity."""

    kind = AccountKind.NODE
    account_type = NodeAccount

    def handle_lost_data(self, identity: Identity, size: int) -> None:
        self._update(identity, "losses", lambda account: account.handle_lost_data(size))

    def handle_failure(self, identity: Identity, size: int) -> None:
        self._update(identity, "losses", lambda account: account.handle_failure(size))

    def update_account(self, identity: Identity, diff: int) -> None:
        self._update(identity, "losses", lambda account: account.update_account(diff))

    def set_available_space(self, identity: Identity, value: int) -> None:
        self._update(
            identity, "capacity_updates", lambda account: account.set_available_space(value)
        )

    def _update(
        self, identity: Identity, counter: str, apply: Callable[[NodeAccount], None]
    ) -> None:
        with self._lock:
            account = self._accounts.get(identity)
            if account is None:
                return
            apply(account)
        self.metrics.inc(counter)

    def drain_and_reset(self, membership: Iterable[Identity]) -> DrainResult:
        """Empty the ledger, emitting only accounts whose identity is a member.

        Every account is removed. Accounts outside ``membership`` are not
        emitted and their state is lost; they are listed in
        ``DrainResult.discarded``.
        """
        return self._drain(emit=frozenset(membership).__contains__)


__all__ = [
    "DrainFailure",
    "DrainResult",
    "LedgerStore",
    "ClientLedger",
    "NodeLedger",
]
