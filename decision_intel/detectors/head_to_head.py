"""
Head-to-Head Detector
=====================

Record between two users. The record is always computed from the lower
identifier's side of the canonical pair and flipped when the caller asked
from the other side, so (A, B) and (B, A) can never disagree.
"""

from decision_intel.detectors.base import mean
from decision_intel.graph.types import PairGraph
from decision_intel.schemas import HeadToHeadRecord


def detect_head_to_head(graph: PairGraph) -> HeadToHeadRecord:
    lo = graph.user_lo
    wins = losses = ties = 0
    points_for = points_against = 0.0
    margins = []

    for matchup in graph.matchups:
        if matchup.home_points is None or matchup.away_points is None:
            continue
        if matchup.home_user_id == lo:
            mine, theirs = matchup.home_points, matchup.away_points
        else:
            mine, theirs = matchup.away_points, matchup.home_points

        points_for += mine
        points_against += theirs
        margins.append(mine - theirs)
        if mine > theirs:
            wins += 1
        elif mine < theirs:
            losses += 1
        else:
            ties += 1

    record = HeadToHeadRecord(
        user_id=lo,
        opponent_id=graph.user_hi,
        sport=graph.sport,
        has_matchup_data=bool(graph.matchups),
        matchups_played=len(graph.matchups),
        wins=wins,
        losses=losses,
        ties=ties,
        points_for=round(points_for, 2),
        points_against=round(points_against, 2),
        avg_margin=mean(margins),
        last_matchup_at=max((m.played_at for m in graph.matchups), default=None),
    )
    return record.flip() if graph.is_swapped else record
