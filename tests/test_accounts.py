"""
Tests for client and node account arithmetic.
"""
import pytest

from quota_ledger.accounts import (
    DEFAULT_QUOTA,
    U64_MAX,
    AccountKind,
    ClientAccount,
    NodeAccount,
    check_size,
)
from quota_ledger.errors import InvalidSizeError


class TestCheckSize:
    """Test byte-count validation."""

    def test_accepts_u64_range(self):
        assert check_size(0) == 0
        assert check_size(U64_MAX) == U64_MAX

    @pytest.mark.parametrize("size", [-1, U64_MAX + 1, 1.5, "10", None, True])
    def test_rejects_out_of_range_and_non_integers(self, size):
        with pytest.raises(InvalidSizeError):
            check_size(size, "put")

    def test_invalid_size_is_value_error(self):
        with pytest.raises(ValueError):
            check_size(-5)


class TestClientAccount:
    """Test client account put/delete policy."""

    def test_default_grant(self):
        account = ClientAccount()

        assert account.data_stored == 0
        assert account.space_available == DEFAULT_QUOTA == 1073741824
        assert account.kind == AccountKind.CLIENT

    def test_with_quota(self):
        account = ClientAccount.with_quota(100)

        assert account.data_stored == 0
        assert account.space_available == 100
        assert account.quota == 100

    def test_put_moves_bytes_from_available_to_stored(self):
        account = ClientAccount.with_quota(100)

        assert account.put(30) is True
        assert account.data_stored == 30
        assert account.space_available == 70

    def test_put_conserves_quota(self):
        account = ClientAccount.with_quota(100)
        for size in (1, 10, 40, 49):
            before = account.quota
            stored = account.data_stored
            assert account.put(size)
            assert account.quota == before
            assert account.data_stored == stored + size

    def test_put_zero_is_noop(self):
        account = ClientAccount.with_quota(0)

        assert account.put(0) is True
        assert account.to_dict() == {"data_stored": 0, "space_available": 0}

    def test_put_exceeding_available_fails_without_change(self):
        account = ClientAccount.with_quota(100)
        account.put(60)

        assert account.put(41) is False
        assert account.data_stored == 60
        assert account.space_available == 40

    def test_put_exactly_available_succeeds(self):
        account = ClientAccount.with_quota(100)
        account.put(60)

        assert account.put(40) is True
        assert account.space_available == 0

    def test_delete_within_stored(self):
        account = ClientAccount.with_quota(100)
        account.put(60)
        account.delete(25)

        assert account.data_stored == 35
        assert account.space_available == 65

    def test_delete_exceeding_stored_reclaims_only_recorded_amount(self):
        account = ClientAccount.with_quota(100)
        account.put(60)
        account.delete(1000)

        assert account.data_stored == 0
        assert account.space_available == 100

    def test_delete_exactly_stored(self):
        account = ClientAccount.with_quota(100)
        account.put(60)
        account.delete(60)

        assert account.data_stored == 0
        assert account.space_available == 100

    def test_delete_on_empty_account(self):
        account = ClientAccount.with_quota(100)
        account.delete(1)

        assert account.data_stored == 0
        assert account.space_available == 100

    def test_invalid_size_leaves_account_untouched(self):
        account = ClientAccount.with_quota(100)

        with pytest.raises(InvalidSizeError):
            account.put(-1)
        with pytest.raises(InvalidSizeError):
            account.delete(-1)
        assert account.to_dict() == {"data_stored": 0, "space_available": 100}

    def test_dict_round_trip_and_copy(self):
        account = ClientAccount(data_stored=5, space_available=7)

        assert ClientAccount.from_dict(account.to_dict()) == account

        clone = account.copy()
        clone.put(1)
        assert account.data_stored == 5


class TestNodeAccount:
    """Test node account policy."""

    def test_default_grant(self):
        account = NodeAccount()

        assert account.stored_total_size == 0
        assert account.lost_total_size == 0
        assert account.offered_space == DEFAULT_QUOTA
        assert account.kind == AccountKind.NODE

    def test_put_caps_against_offered_space(self):
        account = NodeAccount.with_quota(100)

        assert account.put(60) is True
        assert account.put(40) is True
        assert account.put(1) is False
        assert account.stored_total_size == 100
        assert account.offered_space == 100

    def test_put_never_debits_offered_space(self):
        account = NodeAccount.with_quota(100)
        account.put(70)

        assert account.offered_space == 100

    def test_delete_floors_at_zero(self):
        account = NodeAccount.with_quota(100)
        account.put(10)
        account.delete(50)

        assert account.stored_total_size == 0
        assert account.offered_space == 100

    def test_delete_within_stored(self):
        account = NodeAccount.with_quota(100)
        account.put(10)
        account.delete(4)

        assert account.stored_total_size == 6

    def test_handle_lost_data(self):
        account = NodeAccount.with_quota(100)
        account.put(30)
        account.handle_lost_data(10)

        assert account.stored_total_size == 20
        assert account.lost_total_size == 10

    def test_handle_lost_data_beyond_stored_records_full_loss(self):
        account = NodeAccount.with_quota(100)
        account.put(5)
        account.handle_lost_data(12)

        assert account.stored_total_size == 0
        assert account.lost_total_size == 12

    @pytest.mark.parametrize("method", ["handle_lost_data", "handle_failure", "update_account"])
    def test_lost_total_cannot_pass_64_bits(self, method):
        account = NodeAccount.with_quota(100)
        account.put(10)
        account.handle_lost_data(U64_MAX - 5)

        with pytest.raises(InvalidSizeError, match="overflow"):
            getattr(account, method)(6)

        assert account.stored_total_size == 0
        assert account.lost_total_size == U64_MAX - 5
        account.handle_lost_data(5)
        assert account.lost_total_size == U64_MAX

    @pytest.mark.parametrize("method", ["handle_lost_data", "handle_failure", "update_account"])
    def test_loss_operations_agree(self, method):
        account = NodeAccount.with_quota(100)
        account.put(30)
        getattr(account, method)(40)

        assert account.to_dict() == {
            "stored_total_size": 0,
            "lost_total_size": 40,
            "offered_space": 100,
        }

    def test_set_available_space_does_not_validate_against_stored(self):
        account = NodeAccount.with_quota(100)
        account.put(80)
        account.set_available_space(50)

        assert account.offered_space == 50
        assert account.stored_total_size == 80
        assert account.put(0) is False
        account.delete(40)
        assert account.put(10) is True

    def test_dict_round_trip(self):
        account = NodeAccount(stored_total_size=1, lost_total_size=2, offered_space=3)

        assert NodeAccount.from_dict(account.to_dict()) == account
