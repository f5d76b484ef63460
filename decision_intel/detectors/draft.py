"""
Draft Pattern Detector
======================

Position allocation, reach frequency, board adherence, pick tags, round
tendency and auction spend over every draft the user made in one sport.
"""

import math
from collections import Counter
from typing import Dict, List

from decision_intel.detectors.base import is_reach, mean, rate
from decision_intel.graph.types import ProfileGraph
from decision_intel.schemas import (
    AuctionPatterns,
    BoardAdherence,
    BoardTagAccuracy,
    DraftPatterns,
    DraftPick,
    PositionAllocation,
    PositionShare,
    ReachFrequency,
    TagAccuracy,
)

# =============================================================================
# THRESHOLDS
# =============================================================================

MIN_BOARD_RANKED_PICKS = 3
MIN_TAGGED_PICKS = 3
MIN_TAGGED_BOARD_ENTRIES = 5
MIN_AUCTION_PICKS = 5

HEAVY_POSITION_SHARE = 0.35
FOLLOW_WINDOW = 3
MULTI_ROUND = 2

EARLY_ROUND_MAX = 3
MID_ROUND_MAX = 6

UNKNOWN_POSITION = "UNKNOWN"


def _position_allocation(picks: List[DraftPick], expected: List[str]) -> PositionAllocation:
    counts = Counter((p.position or UNKNOWN_POSITION).upper() for p in picks)
    total = len(picks)

    breakdown = {
        pos: PositionShare(count=count, pct=round(count / total, 2))
        for pos, count in sorted(counts.items())
    }

    flags = [
        f"{pos}_HEAVY"
        for pos, count in sorted(counts.items())
        if pos != UNKNOWN_POSITION and count / total > HEAVY_POSITION_SHARE
    ]

    rounds_by_draft: Dict[str, int] = {}
    for pick in picks:
        rounds_by_draft[pick.draft_id] = max(rounds_by_draft.get(pick.draft_id, 0), pick.round)
    if any(r >= MULTI_ROUND for r in rounds_by_draft.values()):
        flags.extend(f"NO_{pos}" for pos in expected if pos.upper() not in counts)

    return PositionAllocation(breakdown=breakdown, flags=flags)


def _round_bucket(round_number: int) -> str:
    if round_number <= EARLY_ROUND_MAX:
        return "early"
    if round_number <= MID_ROUND_MAX:
        return "mid"
    return "late"


def detect_draft_patterns(graph: ProfileGraph) -> DraftPatterns:
    picks = graph.draft_picks
    if not picks:
        return DraftPatterns()

    # Reach and adherence only consider picks with a recorded board rank
    ranked = [p for p in picks if p.board_rank_at_pick is not None]
    reach_frequency = None
    board_adherence = None
    if len(ranked) >= MIN_BOARD_RANKED_PICKS:
        reaches = [p for p in ranked if is_reach(p.pick_number, p.board_rank_at_pick)]
        reach_frequency = ReachFrequency(
            reach_rate=rate(len(reaches), len(ranked)),
            avg_reach_amount=mean(p.board_rank_at_pick - p.pick_number for p in reaches),
            reach_count=len(reaches),
            total_with_board_data=len(ranked),
        )

        deviations = [abs(p.pick_number - p.board_rank_at_pick) for p in ranked]
        followed = sum(1 for d in deviations if d <= FOLLOW_WINDOW)
        board_adherence = BoardAdherence(
            follow_rate=rate(followed, len(ranked)),
            deviation_avg=mean(deviations),
            picks_analyzed=len(ranked),
        )

    tagged = [p for p in picks if p.pick_tag]
    tag_accuracy = None
    if len(tagged) >= MIN_TAGGED_PICKS:
        tag_accuracy = TagAccuracy(
            tag_counts=dict(Counter(p.pick_tag for p in tagged)),
            total_tagged=len(tagged),
            total_picks=len(picks),
        )

    tagged_entries = [e for e in graph.board_entries if e.tags]
    board_tag_accuracy = None
    if len(tagged_entries) >= MIN_TAGGED_BOARD_ENTRIES:
        board_tag_accuracy = BoardTagAccuracy(
            target_count=sum(1 for e in tagged_entries if "TARGET" in e.tags),
            sleeper_count=sum(1 for e in tagged_entries if "SLEEPER" in e.tags),
            avoid_count=sum(1 for e in tagged_entries if "AVOID" in e.tags),
            total=len(tagged_entries),
        )

    paid = [p for p in picks if p.amount is not None and p.amount > 0]
    auction_patterns = None
    if len(paid) >= MIN_AUCTION_PICKS:
        total_spend = sum(p.amount for p in paid)
        first_half = paid[:math.ceil(len(paid) / 2)]
        auction_patterns = AuctionPatterns(
            total_spend=total_spend,
            avg_per_pick=round(total_spend / len(paid), 1),
            early_spend_rate=rate(sum(p.amount for p in first_half), total_spend),
            max_single_pick=max(p.amount for p in paid),
            auction_pick_count=len(paid),
        )

    return DraftPatterns(
        has_draft_data=True,
        draft_count=len({p.draft_id for p in picks}),
        total_picks=len(picks),
        position_allocation=_position_allocation(picks, graph.expected_positions),
        reach_frequency=reach_frequency,
        board_adherence=board_adherence,
        comparisons_analyzed=len(graph.board_comparisons),
        tag_accuracy=tag_accuracy,
        board_tag_accuracy=board_tag_accuracy,
        round_by_round_tendency=dict(Counter(_round_bucket(p.round) for p in picks)),
        auction_patterns=auction_patterns,
    )
