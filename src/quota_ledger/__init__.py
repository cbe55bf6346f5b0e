"""
Per-identity quota ledgers for a storage network's accounting layer.

Client ledgers track a client's stored bytes against its granted quota;
node ledgers track a storage node's stored and lost bytes against the
capacity it offers. Both support an atomic drain-and-reset used to hand
off state during membership churn.
"""

from .accounts import (
    DEFAULT_QUOTA,
    AccountKind,
    ClientAccount,
    NodeAccount,
)
from .admission import AdmissionPolicy, AllowList, AutoGrant
from .codec import AccountCodec, Envelope
from .config import LedgerConfig, Settings, configure, get_settings, load_env
from .errors import (
    DecodeError,
    EncodeError,
    InvalidSizeError,
    LedgerError,
    PayloadKindMismatchError,
    SerializationError,
)
from .identity import Identity
from .store import ClientLedger, DrainFailure, DrainResult, LedgerStore, NodeLedger

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_QUOTA",
    "AccountKind",
    "ClientAccount",
    "NodeAccount",
    "AdmissionPolicy",
    "AllowList",
    "AutoGrant",
    "AccountCodec",
    "Envelope",
    "LedgerConfig",
    "Settings",
    "configure",
    "get_settings",
    "load_env",
    "LedgerError",
    "InvalidSizeError",
    "SerializationError",
    "EncodeError",
    "DecodeError",
    "PayloadKindMismatchError",
    "Identity",
    "ClientLedger",
    "NodeLedger",
    "LedgerStore",
    "DrainResult",
    "DrainFailure",
]
