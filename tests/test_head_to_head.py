"""
Head-to-Head Tests
==================

The record for (A, B) must always be the flip of the record for (B, A).
"""

import pytest

from decision_intel.detectors import detect_head_to_head
from decision_intel.graph import GraphAssembler

from factories import make_matchup


@pytest.fixture
def rivalry(store):
    store.add_matchups([
        make_matchup("alice", "bob", 120.5, 100.0, week=1),
        make_matchup("bob", "alice", 110.0, 90.25, week=2),
        make_matchup("alice", "bob", 95.0, 95.0, week=3),
        make_matchup("bob", "alice", None, None, week=4),
        make_matchup("alice", "carol", 150.0, 10.0, week=5),
    ])
    return store


class TestHeadToHead:

    @pytest.mark.asyncio
    async def test_record_from_lower_user_side(self, rivalry):
        graph = await GraphAssembler(rivalry).pair_graph("alice", "bob")
        record = detect_head_to_head(graph)

        assert record.user_id == "alice"
        assert record.opponent_id == "bob"
        assert record.matchups_played == 4
        assert (record.wins, record.losses, record.ties) == (1, 1, 1)
        assert record.points_for == 305.75
        assert record.points_against == 305.0
        assert record.avg_margin == 0.2
        assert record.has_matchup_data is True

    @pytest.mark.asyncio
    async def test_record_from_higher_user_side(self, rivalry):
        graph = await GraphAssembler(rivalry).pair_graph("bob", "alice")
        record = detect_head_to_head(graph)

        assert record.user_id == "bob"
        assert record.opponent_id == "alice"
        assert record.points_for == 305.0
        assert record.avg_margin == -0.2

    @pytest.mark.asyncio
    async def test_pair_symmetry(self, rivalry):
        assembler = GraphAssembler(rivalry)
        ab = detect_head_to_head(await assembler.pair_graph("alice", "bob"))
        ba = detect_head_to_head(await assembler.pair_graph("bob", "alice"))

        assert ab == ba.flip()
        assert ba == ab.flip()

    @pytest.mark.asyncio
    async def test_never_played(self, store):
        record = detect_head_to_head(await GraphAssembler(store).pair_graph("dave", "erin"))

        assert record.has_matchup_data is False
        assert record.matchups_played == 0
        assert record.avg_margin is None
        assert record.last_matchup_at is None
