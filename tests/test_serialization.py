import unittest

from quota_ledger.accounts import AccountKind, NodeAccount
from quota_ledger.serialization import canonicalize, fast_json_loads, stable_json_dumps


class SerializationTests(unittest.TestCase):
    def test_stable_json_dumps_is_deterministic(self) -> None:
        a = {"b": 1, "a": {"z": 3, "y": 2}}
        b = {"a": {"y": 2, "z": 3}, "b": 1}
        self.assertEqual(stable_json_dumps(a), stable_json_dumps(b))

    def test_canonicalize_ledger_values(self) -> None:
        self.assertEqual(canonicalize(AccountKind.NODE), 2)
        self.assertEqual(canonicalize(b"\x01\xff"), "01ff")
        self.assertEqual(canonicalize({3, 1, 2}), [1, 2, 3])
        self.assertEqual(
            canonicalize(NodeAccount(stored_total_size=1)),
            {"lost_total_size": 0, "offered_space": 1073741824, "stored_total_size": 1},
        )

    def test_u64_values_survive(self) -> None:
        data = {"size": 2**64 - 1}
        self.assertEqual(fast_json_loads(stable_json_dumps(data)), data)


if __name__ == "__main__":
    unittest.main()
