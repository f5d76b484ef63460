"""
Pattern Detectors
=================

Pure functions from a decision graph to a pattern result. No detector calls
another, so the profile detectors can run in parallel.
"""

from decision_intel.detectors.capture import detect_capture_patterns
from decision_intel.detectors.draft import detect_draft_patterns
from decision_intel.detectors.head_to_head import detect_head_to_head
from decision_intel.detectors.prediction import detect_prediction_patterns
from decision_intel.detectors.roster import detect_roster_patterns

# Profile detectors keyed by the profile field they fill
PROFILE_DETECTORS = {
    "draft": detect_draft_patterns,
    "prediction": detect_prediction_patterns,
    "roster": detect_roster_patterns,
    "capture": detect_capture_patterns,
}

__all__ = [
    "PROFILE_DETECTORS",
    "detect_capture_patterns",
    "detect_draft_patterns",
    "detect_head_to_head",
    "detect_prediction_patterns",
    "detect_roster_patterns",
]
