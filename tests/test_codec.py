"""
Tests for the account codec and envelope.
"""
import orjson
import pytest

from quota_ledger.accounts import AccountKind, ClientAccount, NodeAccount
from quota_ledger.codec import SCHEMA_VERSION, AccountCodec, Envelope
from quota_ledger.errors import (
    DecodeError,
    EncodeError,
    PayloadKindMismatchError,
    SerializationError,
)

from tests._ledger_testkit import make_identity


@pytest.fixture
def codec() -> AccountCodec:
    return AccountCodec()


class TestEncode:
    """Encoding accounts to payload bytes."""

    def test_client_payload_layout(self, codec):
        payload = codec.encode(ClientAccount(data_stored=3, space_available=7))

        assert payload == (
            b'{"data_stored":3,"kind":1,"schema_version":1,"space_available":7}'
        )

    def test_node_payload_fields(self, codec):
        payload = codec.encode(NodeAccount(stored_total_size=1, lost_total_size=2, offered_space=3))

        assert orjson.loads(payload) == {
            "kind": 2,
            "schema_version": SCHEMA_VERSION,
            "stored_total_size": 1,
            "lost_total_size": 2,
            "offered_space": 3,
        }

    def test_encoding_is_deterministic(self, codec):
        a = codec.encode(NodeAccount(stored_total_size=10))
        b = codec.encode(NodeAccount(stored_total_size=10))

        assert a == b

    def test_unencodable_account_raises_encode_error(self, codec):
        class Broken:
            kind = AccountKind.CLIENT

            def to_dict(self):
                return {"data_stored": object()}

        with pytest.raises(EncodeError) as exc_info:
            codec.encode(Broken())

        assert isinstance(exc_info.value, SerializationError)
        assert exc_info.value.cause is not None


class TestDecode:
    """Decoding payload bytes back to accounts."""

    def test_round_trip_both_kinds(self, codec):
        client = ClientAccount(data_stored=100, space_available=924)
        node = NodeAccount(stored_total_size=5, lost_total_size=6, offered_space=7)

        assert codec.decode(codec.encode(client)) == client
        assert codec.decode(codec.encode(node)) == node

    def test_default_accounts_round_trip(self, codec):
        assert codec.decode(codec.encode(ClientAccount())) == ClientAccount()
        assert codec.decode(codec.encode(NodeAccount())) == NodeAccount()

    def test_expected_kind_mismatch(self, codec):
        payload = codec.encode(ClientAccount())

        with pytest.raises(PayloadKindMismatchError) as exc_info:
            codec.decode(payload, expected_kind=AccountKind.NODE)

        assert exc_info.value.expected == "NODE"
        assert exc_info.value.actual == "CLIENT"
        assert isinstance(exc_info.value, DecodeError)

    @pytest.mark.parametrize(
        "payload",
        [
            b"not json",
            b"[1, 2, 3]",
            b'{"kind": 0, "schema_version": 1}',
            b'{"kind": 9, "schema_version": 1}',
            b'{"kind": 1, "schema_version": 2, "data_stored": 0, "space_available": 0}',
            b'{"kind": 1, "schema_version": 1, "data_stored": 0}',
            b'{"kind": 2, "schema_version": 1, "stored_total_size": -1, '
            b'"lost_total_size": 0, "offered_space": 0}',
        ],
    )
    def test_malformed_payloads(self, codec, payload):
        with pytest.raises(DecodeError):
            codec.decode(payload)


class TestEnvelope:
    """Tagging payloads for transmission."""

    def test_wrap_tags_with_account_kind(self, codec):
        identity = make_identity(1)
        envelope = codec.wrap(identity, NodeAccount())

        assert envelope.identity == identity
        assert envelope.kind is AccountKind.NODE
        assert codec.decode(envelope.payload) == NodeAccount()

    def test_to_dict(self, codec):
        identity = make_identity(2)
        envelope = Envelope(identity=identity, kind=AccountKind.CLIENT, payload=b"{}")

        assert envelope.to_dict() == {
            "identity": identity.hex(),
            "kind": 1,
            "payload": "{}",
        }
