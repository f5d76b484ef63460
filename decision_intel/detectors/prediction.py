"""
Prediction Pattern Detector
===========================

Accuracy overall, by type, by cited factor and by confidence level, factor
and calibration biases, and hit/miss streaks.

Only resolved predictions count toward any ratio. CORRECT and PARTIAL_CREDIT
are hits; INCORRECT is a miss. Streaks run over CORRECT and INCORRECT only.
"""

from collections import defaultdict
from typing import Dict, List, Optional

from decision_intel.detectors.base import rate
from decision_intel.graph.types import ProfileGraph
from decision_intel.models import PredictionOutcome
from decision_intel.schemas import (
    Prediction,
    PredictionBias,
    PredictionPatterns,
    Streak,
    Streaks,
    TypeAccuracy,
)

# =============================================================================
# THRESHOLDS
# =============================================================================

MIN_RESOLVED = 1
MIN_FACTOR_SAMPLES = 3
MIN_CONFIDENCE_SAMPLES = 3

WEAK_FACTOR_BELOW = 0.40
STRONG_FACTOR_ABOVE = 0.70
CALIBRATION_GAP = 0.20

# Partial credit is a hit for accuracy but sits outside streaks
STREAK_KINDS = {
    PredictionOutcome.CORRECT: "correct",
    PredictionOutcome.INCORRECT: "incorrect",
}


class _Tally:
    __slots__ = ("total", "hits")

    def __init__(self):
        self.total = 0
        self.hits = 0

    def add(self, hit: bool) -> None:
        self.total += 1
        if hit:
            self.hits += 1


def _accuracy_by_type(predictions: List[Prediction]) -> Dict[str, TypeAccuracy]:
    buckets: Dict[str, Dict[str, int]] = {}
    for p in predictions:
        b = buckets.setdefault(p.prediction_type, {"total": 0, "correct": 0, "incorrect": 0, "pending": 0})
        b["total"] += 1
        if not p.is_resolved:
            b["pending"] += 1
        elif p.outcome.is_hit:
            b["correct"] += 1
        else:
            b["incorrect"] += 1

    return {
        kind: TypeAccuracy(
            **b,
            accuracy=rate(b["correct"], b["correct"] + b["incorrect"], MIN_RESOLVED),
        )
        for kind, b in buckets.items()
    }


def _factor_biases(accuracy_by_factor: Dict[str, Optional[float]]) -> List[PredictionBias]:
    biases = []
    for factor, accuracy in accuracy_by_factor.items():
        if accuracy is None:
            continue
        if accuracy < WEAK_FACTOR_BELOW:
            biases.append(PredictionBias(
                type="weak_factor",
                factor=factor,
                accuracy=accuracy,
                note=f"Predictions citing {factor} hit {round(accuracy * 100)}% of the time",
            ))
        elif accuracy > STRONG_FACTOR_ABOVE:
            biases.append(PredictionBias(
                type="strong_factor",
                factor=factor,
                accuracy=accuracy,
                note=f"Predictions citing {factor} hit {round(accuracy * 100)}% of the time",
            ))
    return biases


def _calibration_bias(accuracy_by_confidence: Dict[int, Optional[float]]) -> Optional[PredictionBias]:
    """Compare the lowest and highest confidence levels that have an accuracy."""
    levels = sorted(level for level, acc in accuracy_by_confidence.items() if acc is not None)
    if len(levels) < 2:
        return None

    low = accuracy_by_confidence[levels[0]]
    high = accuracy_by_confidence[levels[-1]]
    if high < low:
        return PredictionBias(
            type="overconfidence",
            note="High-confidence predictions are less accurate than low-confidence ones",
            high_conf_accuracy=high,
            low_conf_accuracy=low,
        )
    if high - low > CALIBRATION_GAP:
        return PredictionBias(
            type="well_calibrated",
            note="Confidence levels track accuracy",
            high_conf_accuracy=high,
            low_conf_accuracy=low,
        )
    return None


def compute_streaks(resolved: List[Prediction]) -> Streaks:
    """Current and longest CORRECT/INCORRECT runs in time order.

    Partial credit neither extends nor breaks a run.
    """
    current = Streak()
    longest = Streak()
    for p in resolved:
        kind = STREAK_KINDS.get(p.outcome)
        if kind is None:
            continue
        if kind == current.type:
            current = Streak(count=current.count + 1, type=kind)
        else:
            current = Streak(count=1, type=kind)
        if current.count > longest.count:
            longest = current
    return Streaks(current=current, longest=longest)


def detect_prediction_patterns(graph: ProfileGraph) -> PredictionPatterns:
    predictions = sorted(graph.predictions, key=lambda p: p.created_at)
    if not predictions:
        return PredictionPatterns()

    resolved = [p for p in predictions if p.is_resolved]
    correct = sum(1 for p in resolved if p.outcome.is_hit)

    factors: Dict[str, _Tally] = defaultdict(_Tally)
    confidence: Dict[int, _Tally] = defaultdict(_Tally)
    for p in predictions:
        # Pending predictions still register their factors with zero samples
        for factor in dict.fromkeys(p.key_factors):
            tally = factors[factor]
            if p.is_resolved:
                tally.add(p.outcome.is_hit)
        if p.confidence_level is not None:
            tally = confidence[p.confidence_level]
            if p.is_resolved:
                tally.add(p.outcome.is_hit)

    accuracy_by_factor = {
        factor: rate(t.hits, t.total, MIN_FACTOR_SAMPLES) for factor, t in factors.items()
    }
    accuracy_by_confidence = {
        level: rate(t.hits, t.total, MIN_CONFIDENCE_SAMPLES) for level, t in sorted(confidence.items())
    }

    streaks = compute_streaks(resolved)
    biases = _factor_biases(accuracy_by_factor)
    calibration = _calibration_bias(accuracy_by_confidence)
    if calibration is not None:
        biases.append(calibration)

    return PredictionPatterns(
        has_prediction_data=True,
        total_predictions=len(predictions),
        resolved=len(resolved),
        pending=len(predictions) - len(resolved),
        correct=correct,
        incorrect=len(resolved) - correct,
        overall_accuracy=rate(correct, len(resolved), MIN_RESOLVED),
        accuracy_by_type=_accuracy_by_type(predictions),
        accuracy_by_factor=accuracy_by_factor,
        accuracy_by_confidence=accuracy_by_confidence,
        factor_samples={factor: t.total for factor, t in factors.items()},
        biases=biases,
        streaks=streaks if streaks.longest.count else None,
    )
