"""
Draft Pattern Detector Tests
============================
"""

import pytest

from decision_intel.detectors import detect_draft_patterns
from decision_intel.graph.types import ProfileGraph

from factories import USER, make_board_entry, make_comparison, make_pick


def graph_with(picks=(), entries=(), comparisons=(), expected=("QB", "RB", "WR", "TE")) -> ProfileGraph:
    return ProfileGraph(
        user_id=USER,
        sport="nfl",
        season=2025,
        draft_picks=list(picks),
        board_entries=list(entries),
        board_comparisons=list(comparisons),
        expected_positions=list(expected),
    )


class TestNoDraftData:

    def test_empty_graph(self):
        result = detect_draft_patterns(graph_with())
        assert result.has_draft_data is False
        assert result.draft_count == 0
        assert result.reach_frequency is None
        assert result.board_adherence is None
        assert result.has_board_data is False


class TestReachAndAdherence:
    """Reach and adherence need 3 picks with a recorded board rank."""

    def test_null_below_threshold(self):
        picks = [make_pick(1, board_rank=5), make_pick(2, board_rank=2), make_pick(3)]
        result = detect_draft_patterns(graph_with(picks))

        assert result.has_draft_data is True
        assert result.reach_frequency is None
        assert result.board_adherence is None

    def test_numeric_at_threshold(self):
        picks = [
            make_pick(1, board_rank=5),    # reach by 4, outside the window
            make_pick(12, board_rank=10),  # not a reach, within window
            make_pick(20, board_rank=21),  # reach by 1, within window
        ]
        result = detect_draft_patterns(graph_with(picks))

        reach = result.reach_frequency
        assert reach.total_with_board_data == 3
        assert reach.reach_count == 2
        assert reach.reach_rate == 0.67
        assert reach.avg_reach_amount == 2.5

        adherence = result.board_adherence
        assert adherence.picks_analyzed == 3
        assert adherence.follow_rate == 0.67
        assert adherence.deviation_avg == 2.3
        assert result.has_board_data is True

    def test_no_reaches_leaves_average_empty(self):
        picks = [make_pick(n, board_rank=n) for n in range(1, 5)]
        result = detect_draft_patterns(graph_with(picks))

        assert result.reach_frequency.reach_rate == 0.0
        assert result.reach_frequency.avg_reach_amount is None
        assert result.board_adherence.follow_rate == 1.0

    def test_later_pick_than_rank_is_not_a_reach(self):
        picks = [make_pick(8, board_rank=2), make_pick(9, board_rank=3), make_pick(10, board_rank=4)]
        result = detect_draft_patterns(graph_with(picks))
        assert result.reach_frequency.reach_count == 0


class TestPositionAllocation:

    def test_breakdown_and_heavy_flag(self):
        picks = [
            make_pick(1, round=1, position="RB"),
            make_pick(2, round=2, position="RB"),
            make_pick(3, round=3, position="WR"),
            make_pick(4, round=4, position="QB"),
            make_pick(5, round=5, position="TE"),
        ]
        result = detect_draft_patterns(graph_with(picks))
        allocation = result.position_allocation

        assert allocation.breakdown["RB"].count == 2
        assert allocation.breakdown["RB"].pct == 0.4
        assert allocation.flags == ["RB_HEAVY"]

    def test_missing_class_flagged_in_multi_round_draft(self):
        picks = [
            make_pick(1, round=1, position="RB"),
            make_pick(2, round=2, position="WR"),
            make_pick(3, round=3, position="QB"),
        ]
        result = detect_draft_patterns(graph_with(picks))
        assert "NO_TE" in result.position_allocation.flags

    def test_missing_class_not_flagged_for_single_round(self):
        picks = [make_pick(1, round=1, position="RB"), make_pick(2, round=1, position="WR")]
        result = detect_draft_patterns(graph_with(picks))
        assert not any(f.startswith("NO_") for f in result.position_allocation.flags)

    def test_share_of_exactly_35_percent_is_not_heavy(self):
        positions = ["WR"] * 7 + ["RB"] * 6 + ["QB"] * 4 + ["TE"] * 3
        picks = [make_pick(n, round=n, position=pos) for n, pos in enumerate(positions, 1)]
        result = detect_draft_patterns(graph_with(picks))

        assert result.position_allocation.breakdown["WR"].pct == 0.35
        assert "WR_HEAVY" not in result.position_allocation.flags


class TestDraftExtras:

    def test_counts_distinct_drafts_and_comparisons(self):
        picks = [make_pick(1, draft_id="d1"), make_pick(2, draft_id="d2"), make_pick(3, draft_id="d2")]
        result = detect_draft_patterns(graph_with(picks, comparisons=[make_comparison("d1")]))

        assert result.draft_count == 2
        assert result.total_picks == 3
        assert result.comparisons_analyzed == 1
        assert result.has_board_data is True

    def test_tag_accuracy_threshold(self):
        two = [make_pick(1, tag="TARGET"), make_pick(2, tag="SLEEPER"), make_pick(3)]
        three = two + [make_pick(4, tag="TARGET")]

        assert detect_draft_patterns(graph_with(two)).tag_accuracy is None
        tags = detect_draft_patterns(graph_with(three)).tag_accuracy
        assert tags.tag_counts == {"TARGET": 2, "SLEEPER": 1}
        assert tags.total_tagged == 3
        assert tags.total_picks == 4

    def test_board_tag_threshold(self):
        entries = [make_board_entry(f"p{i}", i, tags=[tag])
                   for i, tag in enumerate(["TARGET", "TARGET", "SLEEPER", "AVOID"], 1)]
        picks = [make_pick(1)]

        assert detect_draft_patterns(graph_with(picks, entries)).board_tag_accuracy is None

        entries.append(make_board_entry("p5", 5, tags=["AVOID", "TARGET"]))
        board_tags = detect_draft_patterns(graph_with(picks, entries)).board_tag_accuracy
        assert (board_tags.target_count, board_tags.sleeper_count, board_tags.avoid_count) == (3, 1, 2)
        assert board_tags.total == 5

    def test_round_buckets(self):
        picks = [make_pick(n, round=r) for n, r in enumerate([1, 3, 4, 6, 7, 12], 1)]
        result = detect_draft_patterns(graph_with(picks))
        assert result.round_by_round_tendency == {"early": 2, "mid": 2, "late": 2}

    def test_auction_patterns(self):
        amounts = [40, 30, 10, 10, 5, 5]
        picks = [make_pick(n, amount=a) for n, a in enumerate(amounts, 1)]
        auction = detect_draft_patterns(graph_with(picks)).auction_patterns

        assert auction.total_spend == 100
        assert auction.avg_per_pick == 16.7
        assert auction.early_spend_rate == 0.8
        assert auction.max_single_pick == 40
        assert auction.auction_pick_count == 6

    def test_auction_needs_five_paid_picks(self):
        picks = [make_pick(n, amount=10) for n in range(1, 5)] + [make_pick(5, amount=0)]
        assert detect_draft_patterns(graph_with(picks)).auction_patterns is None


@pytest.mark.parametrize("count,expected_none", [(2, True), (3, False)])
def test_board_rank_threshold_boundary(count, expected_none):
    picks = [make_pick(n, board_rank=n + 1) for n in range(1, count + 1)]
    result = detect_draft_patterns(graph_with(picks))
    assert (result.reach_frequency is None) is expected_none
    assert (result.board_adherence is None) is expected_none
