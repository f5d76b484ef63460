"""
Canonical Pair Tests
====================
"""

import pytest

from decision_intel.pairs import canonical_pair


class TestCanonicalPair:
    """Tests for the two-user ordering helper."""

    def test_already_ordered(self):
        assert canonical_pair("alice", "bob") == ("alice", "bob", False)

    def test_swapped(self):
        assert canonical_pair("bob", "alice") == ("alice", "bob", True)

    def test_both_orders_resolve_to_same_pair(self):
        lo1, hi1, _ = canonical_pair("user-9", "user-10")
        lo2, hi2, _ = canonical_pair("user-10", "user-9")
        assert (lo1, hi1) == (lo2, hi2)

    def test_same_user_rejected(self):
        with pytest.raises(ValueError):
            canonical_pair("alice", "alice")
