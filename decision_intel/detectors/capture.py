"""
Capture Pattern Detector
========================

Research capture volume, sentiment mix, how often outcome-linked captures
were right, and how often a captured player later turned into an action
(board entry, draft pick or prediction).
"""

from collections import Counter
from datetime import datetime
from typing import Dict, Optional

from decision_intel.clock import month_key
from decision_intel.detectors.base import rate
from decision_intel.graph.types import ProfileGraph
from decision_intel.schemas import (
    CapturePatterns,
    CaptureToAction,
    CaptureVolume,
    SentimentAccuracy,
)

MIN_LINKED_CAPTURES = 3
MIN_CAPTURED_PLAYERS = 3

CORRECT_VERDICTS = {"CORRECT", "TRENDING_CORRECT"}
INCORRECT_VERDICTS = {"INCORRECT", "TRENDING_INCORRECT"}


def _acted_after(moment: Optional[datetime], first_mention: datetime) -> bool:
    # Undated actions count
    return moment is None or moment >= first_mention


def _sentiment_accuracy(graph: ProfileGraph) -> Optional[SentimentAccuracy]:
    linked = [c for c in graph.captures if c.outcome_linked and c.outcome_data is not None]
    if len(linked) < MIN_LINKED_CAPTURES:
        return None

    correct = incorrect = 0
    for capture in linked:
        for verdict in capture.outcome_data.players:
            if verdict.verdict in CORRECT_VERDICTS:
                correct += 1
            elif verdict.verdict in INCORRECT_VERDICTS:
                incorrect += 1

    total = correct + incorrect
    return SentimentAccuracy(
        correct=correct,
        incorrect=incorrect,
        total=total,
        rate=rate(correct, total),
        linked_captures=len(linked),
    )


def _capture_to_action(graph: ProfileGraph) -> Optional[CaptureToAction]:
    first_mention: Dict[str, datetime] = {}
    for capture in graph.captures:
        for player_id in capture.players:
            seen = first_mention.get(player_id)
            if seen is None or capture.created_at < seen:
                first_mention[player_id] = capture.created_at

    if len(first_mention) < MIN_CAPTURED_PLAYERS:
        return None

    board_adds = [
        e for e in graph.board_entries
        if e.player_id in first_mention and _acted_after(e.created_at, first_mention[e.player_id])
    ]
    draft_picks = [
        p for p in graph.draft_picks
        if p.player_id in first_mention and _acted_after(p.picked_at, first_mention[p.player_id])
    ]
    predictions = [
        p for p in graph.predictions
        if p.subject_player_id in first_mention
        and _acted_after(p.created_at, first_mention[p.subject_player_id])
    ]

    acted = (
        {e.player_id for e in board_adds}
        | {p.player_id for p in draft_picks}
        | {p.subject_player_id for p in predictions}
    )
    return CaptureToAction(
        captured_players=len(first_mention),
        players_acted_on=len(acted),
        rate=rate(len(acted), len(first_mention)),
        board_adds=len(board_adds),
        draft_picks=len(draft_picks),
        predictions=len(predictions),
    )


def detect_capture_patterns(graph: ProfileGraph) -> CapturePatterns:
    captures = graph.captures
    if not captures:
        return CapturePatterns()

    monthly = Counter(month_key(c.created_at) for c in captures)
    volume = CaptureVolume(
        total=len(captures),
        monthly=dict(sorted(monthly.items())),
        with_players=sum(1 for c in captures if c.players),
    )

    return CapturePatterns(
        has_capture_data=True,
        total_captures=len(captures),
        capture_volume=volume,
        sentiment_breakdown=dict(Counter(c.sentiment.value for c in captures)),
        sentiment_accuracy=_sentiment_accuracy(graph),
        capture_to_action=_capture_to_action(graph),
    )
