"""
Decision Intelligence
=====================

Reconstructs a fantasy-sports user's event trail into decision graphs and
derives deterministic behavioral metrics:
- Graph assembly per player, season, draft, multi-season, profile and user-pair
- Draft, prediction, roster, capture and head-to-head pattern detection
- Profile synthesis (strengths, weaknesses, biases, tendencies, confidence)
- Cached intelligence profiles with a 7-day expiry
"""

__version__ = "1.0.0"
