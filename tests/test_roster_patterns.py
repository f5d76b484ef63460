"""
Roster Pattern Detector Tests
=============================
"""

from decision_intel.detectors import detect_roster_patterns
from decision_intel.graph.types import ProfileGraph
from decision_intel.models import TradeStatus, WaiverStatus
from decision_intel.schemas import RosterEvents

from factories import USER, make_lineup, make_trade, make_waiver


def graph_with(claims=(), trades=(), lineups=()) -> ProfileGraph:
    return ProfileGraph(
        user_id=USER,
        sport="nfl",
        season=2025,
        roster=RosterEvents(
            waiver_claims=list(claims),
            trades=list(trades),
            lineup_snapshots=list(lineups),
        ),
    )


class TestNoRosterData:

    def test_empty(self):
        result = detect_roster_patterns(graph_with())
        assert result.has_roster_data is False
        assert result.season == 2025
        assert result.waiver_tendencies.avg_bid is None
        assert result.trading_style.accept_rate is None
        assert result.lineup_optimality.avg_points_left_on_bench is None


class TestWaiverTendencies:

    def test_won_claims_drive_breakdown_and_spend(self):
        claims = [
            make_waiver(WaiverStatus.WON, position="WR", bid=12, reasoning="target share"),
            make_waiver(WaiverStatus.WON, position="WR", bid=3),
            make_waiver(WaiverStatus.WON, position="RB"),
            make_waiver(WaiverStatus.LOST, position="QB", bid=40),
        ]
        waivers = detect_roster_patterns(graph_with(claims)).waiver_tendencies

        assert waivers.total_claims == 4
        assert waivers.won_claims == 3
        assert waivers.position_breakdown["WR"].claims == 2
        assert waivers.position_breakdown["WR"].total_faab == 15
        assert "QB" not in waivers.position_breakdown
        assert waivers.total_faab_spent == 15
        assert waivers.avg_bid == 5.0
        assert waivers.with_reasoning == 1

    def test_no_wins_means_no_average_bid(self):
        waivers = detect_roster_patterns(graph_with([make_waiver(WaiverStatus.LOST, bid=20)])).waiver_tendencies
        assert waivers.won_claims == 0
        assert waivers.avg_bid is None


class TestTradingStyle:

    def test_proposed_received_accepted(self):
        trades = [
            make_trade(USER, "user-2", TradeStatus.ACCEPTED, reasoning="consolidate"),
            make_trade(USER, "user-3", TradeStatus.REJECTED),
            make_trade("user-4", USER, TradeStatus.ACCEPTED),
            make_trade("user-5", USER, TradeStatus.PENDING),
        ]
        style = detect_roster_patterns(graph_with(trades=trades)).trading_style

        assert style.total_proposed == 2
        assert style.total_received == 2
        assert style.total_accepted == 2
        assert style.accept_rate == 0.5
        assert style.with_reasoning == 1


class TestLineupOptimality:

    def test_points_left_on_bench(self):
        lineups = [
            make_lineup(1, active=100.0, optimal=110.0),
            make_lineup(2, active=95.0, optimal=95.0),
            make_lineup(3, active=80.0, optimal=85.5),
        ]
        lineup = detect_roster_patterns(graph_with(lineups=lineups)).lineup_optimality

        assert lineup.weeks_tracked == 3
        assert lineup.weeks_with_scoring == 3
        assert lineup.suboptimal_weeks == 2
        assert lineup.avg_points_left_on_bench == 5.2
        assert lineup.total_points_left_on_bench == 15.5

    def test_incomplete_weeks_are_skipped(self):
        lineups = [
            make_lineup(1, active=100.0, optimal=None),
            make_lineup(2, active=90.0, optimal=120.0, bench=None),
        ]
        lineup = detect_roster_patterns(graph_with(lineups=lineups)).lineup_optimality

        assert lineup.weeks_tracked == 2
        assert lineup.weeks_with_scoring == 0
        assert lineup.avg_points_left_on_bench is None

    def test_active_above_optimal_counts_as_zero(self):
        lineup = detect_roster_patterns(
            graph_with(lineups=[make_lineup(1, active=120.0, optimal=110.0)])
        ).lineup_optimality
        assert lineup.avg_points_left_on_bench == 0.0
        assert lineup.suboptimal_weeks == 0
