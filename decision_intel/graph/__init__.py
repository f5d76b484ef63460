"""
Decision Graphs
===============

Subject-scoped, in-memory bundles of events built by the GraphAssembler.
"""

from decision_intel.graph.assembler import SUBJECT_KINDS, GraphAssembler, infer_opinion_sentiment
from decision_intel.graph.types import (
    MULTI_SEASON_NOTE,
    DraftGraph,
    MultiSeasonGraph,
    PairGraph,
    PlayerGraph,
    ProfileGraph,
    SeasonGraph,
)

__all__ = [
    "SUBJECT_KINDS",
    "GraphAssembler",
    "infer_opinion_sentiment",
    "MULTI_SEASON_NOTE",
    "DraftGraph",
    "MultiSeasonGraph",
    "PairGraph",
    "PlayerGraph",
    "ProfileGraph",
    "SeasonGraph",
]
