"""
Profile Synthesizer
===================

Folds the four detector outputs into one UserIntelligenceProfile:
strengths, weaknesses, biases, tendencies, a data-confidence tier and the
single weakness to fix first.

Pure: identical pattern results and generated_at give an identical profile.
"""

from datetime import datetime
from typing import List, Optional

from decision_intel.detectors.base import pct_label
from decision_intel.schemas import (
    Bias,
    CapturePatterns,
    DataConfidence,
    DraftPatterns,
    Insight,
    PredictionPatterns,
    RosterPatterns,
    Severity,
    Tendency,
    UserIntelligenceProfile,
)

# =============================================================================
# THRESHOLDS
# =============================================================================

STRONG_ACCURACY = 0.60
WEAK_ACCURACY = 0.45
DISCIPLINED_FOLLOW_RATE = 0.65
FREQUENT_REACH_RATE = 0.40
EFFICIENT_BENCH_POINTS = 5
WASTEFUL_BENCH_POINTS = 15
ACTIVE_RESEARCH_RATE = 0.50
IDLE_RESEARCH_RATE = 0.20
ACCURATE_CAPTURE_RATE = 0.60

FRONT_LOADED_SPEND = 0.65
PATIENT_SPEND = 0.35
ACTIVE_TRADER_PROPOSALS = 5
WAIVER_WARRIOR_CLAIMS = 3
PROLIFIC_CAPTURES = 20
BOARD_DISCIPLINED = 0.70
BOARD_REACTIVE = 0.40

HIGH_CONFIDENCE_POINTS = 7
MEDIUM_CONFIDENCE_POINTS = 3


# =============================================================================
# STRENGTHS / WEAKNESSES
# =============================================================================

def identify_strengths(
    draft: DraftPatterns,
    prediction: PredictionPatterns,
    roster: RosterPatterns,
    capture: CapturePatterns,
) -> List[Insight]:
    strengths = []

    if prediction.overall_accuracy is not None and prediction.overall_accuracy >= STRONG_ACCURACY:
        strengths.append(Insight(
            area="predictions",
            label="Strong prediction accuracy",
            value=pct_label(prediction.overall_accuracy),
        ))

    for bias in prediction.biases:
        if bias.type == "strong_factor":
            strengths.append(Insight(
                area="predictions",
                label=f"Strong {bias.factor} reads",
                value=pct_label(bias.accuracy),
            ))
        elif bias.type == "well_calibrated":
            strengths.append(Insight(area="predictions", label="Well-calibrated confidence"))

    adherence = draft.board_adherence
    if adherence is not None and adherence.follow_rate >= DISCIPLINED_FOLLOW_RATE:
        strengths.append(Insight(
            area="drafts",
            label="Disciplined drafter, follows the board",
            value=f"{pct_label(adherence.follow_rate)} follow rate",
        ))

    bench = roster.lineup_optimality.avg_points_left_on_bench
    if bench is not None and bench < EFFICIENT_BENCH_POINTS:
        strengths.append(Insight(
            area="lineups",
            label="Efficient lineup setter",
            value=f"Only {bench} pts/week left on bench",
        ))

    action = capture.capture_to_action
    if action is not None and action.rate >= ACTIVE_RESEARCH_RATE:
        strengths.append(Insight(
            area="research",
            label="Research translates to action",
            value=f"{pct_label(action.rate)} action rate",
        ))

    accuracy = capture.sentiment_accuracy
    if accuracy is not None and accuracy.rate is not None and accuracy.rate >= ACCURATE_CAPTURE_RATE:
        strengths.append(Insight(
            area="research",
            label="Accurate player reads",
            value=f"{pct_label(accuracy.rate)} capture accuracy",
        ))

    return strengths


def identify_weaknesses(
    draft: DraftPatterns,
    prediction: PredictionPatterns,
    roster: RosterPatterns,
    capture: CapturePatterns,
) -> List[Insight]:
    """Weaknesses in detection order; every one carries a severity."""
    weaknesses = []

    if prediction.overall_accuracy is not None and prediction.overall_accuracy < WEAK_ACCURACY:
        weaknesses.append(Insight(
            area="predictions",
            label="Prediction accuracy needs work",
            value=pct_label(prediction.overall_accuracy),
            severity=Severity.HIGH,
        ))

    for bias in prediction.biases:
        if bias.type == "weak_factor":
            weaknesses.append(Insight(
                area="predictions",
                label=f"Weak {bias.factor} reads",
                value=pct_label(bias.accuracy),
                severity=Severity.MEDIUM,
            ))
        elif bias.type == "overconfidence":
            weaknesses.append(Insight(
                area="predictions",
                label="Overconfidence bias",
                value="High confidence picks hit less often",
                severity=Severity.HIGH,
            ))

    reach = draft.reach_frequency
    if reach is not None and reach.reach_rate > FREQUENT_REACH_RATE:
        weaknesses.append(Insight(
            area="drafts",
            label="Frequent reacher",
            value=f"{pct_label(reach.reach_rate)} reach rate",
            severity=Severity.MEDIUM,
        ))

    for flag in draft.position_allocation.flags:
        weaknesses.append(Insight(
            area="drafts",
            label=f"Draft allocation: {flag}",
            severity=Severity.LOW,
        ))

    bench = roster.lineup_optimality.avg_points_left_on_bench
    if bench is not None and bench > WASTEFUL_BENCH_POINTS:
        weaknesses.append(Insight(
            area="lineups",
            label="Too many points left on bench",
            value=f"{bench} pts/week avg",
            severity=Severity.HIGH,
        ))

    action = capture.capture_to_action
    if action is not None and action.rate < IDLE_RESEARCH_RATE:
        weaknesses.append(Insight(
            area="research",
            label="Research not translating to action",
            value=f"Only {pct_label(action.rate)} act-on rate",
            severity=Severity.LOW,
        ))

    return weaknesses


# =============================================================================
# BIASES / TENDENCIES
# =============================================================================

def identify_biases(draft: DraftPatterns, prediction: PredictionPatterns) -> List[Bias]:
    biases = [
        Bias(type="position_allocation", flag=flag, source="drafts")
        for flag in draft.position_allocation.flags
    ]
    for bias in prediction.biases:
        biases.append(Bias(source="predictions", **bias.model_dump()))
    return biases


def identify_tendencies(
    draft: DraftPatterns,
    roster: RosterPatterns,
    capture: CapturePatterns,
) -> List[Tendency]:
    tendencies = []

    auction = draft.auction_patterns
    if auction is not None and auction.early_spend_rate is not None:
        if auction.early_spend_rate > FRONT_LOADED_SPEND:
            tendencies.append(Tendency(
                type="auction_front_loaded",
                label="Front-loads auction budget",
                value=f"{pct_label(auction.early_spend_rate)} spent in first half",
            ))
        elif auction.early_spend_rate < PATIENT_SPEND:
            tendencies.append(Tendency(
                type="auction_patient",
                label="Patient auction strategy",
                value=f"Only {pct_label(auction.early_spend_rate)} spent in first half",
            ))

    proposed = roster.trading_style.total_proposed
    won_claims = roster.waiver_tendencies.won_claims
    if proposed > ACTIVE_TRADER_PROPOSALS:
        tendencies.append(Tendency(type="active_trader", label="Active trader", value=f"{proposed} proposals"))
    elif proposed == 0 and won_claims > WAIVER_WARRIOR_CLAIMS:
        tendencies.append(Tendency(
            type="waiver_warrior",
            label="Prefers waivers over trades",
            value=f"{won_claims} claims, 0 trades",
        ))

    if capture.capture_volume is not None and capture.capture_volume.total > PROLIFIC_CAPTURES:
        tendencies.append(Tendency(
            type="prolific_researcher",
            label="Prolific researcher",
            value=f"{capture.capture_volume.total} captures",
        ))

    adherence = draft.board_adherence
    if adherence is not None:
        if adherence.follow_rate >= BOARD_DISCIPLINED:
            tendencies.append(Tendency(
                type="board_disciplined",
                label="Sticks to the plan",
                value=f"{pct_label(adherence.follow_rate)} follow rate",
            ))
        elif adherence.follow_rate < BOARD_REACTIVE:
            tendencies.append(Tendency(
                type="board_reactive",
                label="Reactive drafter, abandons the board easily",
                value=f"{pct_label(adherence.follow_rate)} follow rate",
            ))

    return tendencies


# =============================================================================
# CONFIDENCE / PRIORITY
# =============================================================================

def confidence_points(draft: DraftPatterns, prediction: PredictionPatterns, capture: CapturePatterns) -> int:
    points = 0

    if draft.draft_count >= 3:
        points += 3
    elif draft.draft_count >= 1:
        points += 1

    if prediction.resolved >= 50:
        points += 3
    elif prediction.resolved >= 10:
        points += 1

    if capture.total_captures >= 20:
        points += 2
    elif capture.total_captures >= 5:
        points += 1

    if draft.has_board_data:
        points += 1

    return points


def assess_data_confidence(
    draft: DraftPatterns,
    prediction: PredictionPatterns,
    capture: CapturePatterns,
) -> DataConfidence:
    points = confidence_points(draft, prediction, capture)
    if points >= HIGH_CONFIDENCE_POINTS:
        return DataConfidence.HIGH
    if points >= MEDIUM_CONFIDENCE_POINTS:
        return DataConfidence.MEDIUM
    return DataConfidence.LOW


def identify_top_priority(weaknesses: List[Insight]) -> Optional[Insight]:
    """Worst-severity weakness; ties keep detection order (sorted is stable)."""
    if not weaknesses:
        return None
    return sorted(weaknesses, key=lambda w: (w.severity or Severity.LOW).rank)[0]


# =============================================================================
# SYNTHESIS
# =============================================================================

def synthesize(
    draft: DraftPatterns,
    prediction: PredictionPatterns,
    roster: RosterPatterns,
    capture: CapturePatterns,
    *,
    user_id: str,
    sport: str,
    generated_at: datetime,
) -> UserIntelligenceProfile:
    weaknesses = identify_weaknesses(draft, prediction, roster, capture)
    return UserIntelligenceProfile(
        user_id=user_id,
        sport=sport,
        generated_at=generated_at,
        data_confidence=assess_data_confidence(draft, prediction, capture),
        strengths=identify_strengths(draft, prediction, roster, capture),
        weaknesses=weaknesses,
        biases=identify_biases(draft, prediction),
        tendencies=identify_tendencies(draft, roster, capture),
        one_thing_to_fix=identify_top_priority(weaknesses),
        draft_patterns=draft,
        prediction_patterns=prediction,
        roster_patterns=roster,
        capture_patterns=capture,
    )
