"""
Roster Pattern Detector
=======================

Waiver tendencies, trading style and lineup optimality for one calendar
year of roster activity.
"""

from collections import defaultdict

from decision_intel.detectors.base import mean, rate
from decision_intel.graph.types import ProfileGraph
from decision_intel.models import TradeStatus, WaiverStatus
from decision_intel.schemas import (
    LineupOptimality,
    RosterEvents,
    RosterPatterns,
    TradingStyle,
    WaiverPositionBreakdown,
    WaiverTendencies,
)


def _waiver_tendencies(roster: RosterEvents) -> WaiverTendencies:
    won = [c for c in roster.waiver_claims if c.status == WaiverStatus.WON]

    positions = defaultdict(lambda: {"claims": 0, "total_faab": 0})
    for claim in won:
        bucket = positions[claim.position or "UNKNOWN"]
        bucket["claims"] += 1
        bucket["total_faab"] += claim.bid_amount or 0

    total_faab = sum(c.bid_amount or 0 for c in won)
    return WaiverTendencies(
        total_claims=len(roster.waiver_claims),
        won_claims=len(won),
        position_breakdown={
            pos: WaiverPositionBreakdown(**b) for pos, b in sorted(positions.items())
        },
        total_faab_spent=total_faab,
        avg_bid=round(total_faab / len(won), 1) if won else None,
        with_reasoning=sum(1 for c in won if c.reasoning),
    )


def _trading_style(roster: RosterEvents, user_id: str) -> TradingStyle:
    trades = roster.trades
    proposed = [t for t in trades if t.initiator_id == user_id]
    accepted = [t for t in trades if t.status == TradeStatus.ACCEPTED]
    return TradingStyle(
        total_proposed=len(proposed),
        total_received=len(trades) - len(proposed),
        total_accepted=len(accepted),
        accept_rate=rate(len(accepted), len(trades)),
        with_reasoning=sum(1 for t in proposed if t.proposer_reasoning),
    )


def _lineup_optimality(roster: RosterEvents) -> LineupOptimality:
    snapshots = roster.lineup_snapshots
    scored = [s for s in snapshots if s.has_complete_scoring]
    left_on_bench = [max(0.0, s.optimal_points - s.active_points) for s in scored]
    return LineupOptimality(
        weeks_tracked=len(snapshots),
        weeks_with_scoring=len(scored),
        suboptimal_weeks=sum(1 for points in left_on_bench if points > 0),
        avg_points_left_on_bench=mean(left_on_bench),
        total_points_left_on_bench=round(sum(left_on_bench), 1),
    )


def detect_roster_patterns(graph: ProfileGraph) -> RosterPatterns:
    roster = graph.roster
    has_data = bool(roster.waiver_claims or roster.trades or roster.lineup_snapshots)
    if not has_data:
        return RosterPatterns(season=graph.season)

    return RosterPatterns(
        has_roster_data=True,
        season=graph.season,
        waiver_tendencies=_waiver_tendencies(roster),
        trading_style=_trading_style(roster, graph.user_id),
        lineup_optimality=_lineup_optimality(roster),
    )
