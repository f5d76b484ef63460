"""
Decision Graph Types
====================

In-memory, subject-scoped bundles of event entities. A graph is rebuilt from
the event store on every request and never patched; it may hold entity
references because, unlike pattern results, it is never cached.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Dict, List, Optional, Tuple

from decision_intel.schemas import (
    BoardComparison,
    BoardEntry,
    Capture,
    CaptureOutcome,
    DraftPick,
    Matchup,
    OpinionEvent,
    Prediction,
    RosterEvents,
    Trade,
    WaiverClaim,
)


# =============================================================================
# PLAYER
# =============================================================================

@dataclass(frozen=True)
class TimelineItem:
    """One dated decision touching a player, from any event family."""
    kind: str  # opinion, capture, prediction, draft_pick
    at: datetime
    ref_id: str
    label: str


@dataclass(frozen=True)
class SentimentPoint:
    event_type: str
    sentiment: str  # positive / negative / bullish / bearish ...
    at: datetime


@dataclass
class PlayerGraph:
    kind: ClassVar[str] = "player"

    user_id: str
    player_id: str
    events: List[OpinionEvent] = field(default_factory=list)
    board_positions: List[BoardEntry] = field(default_factory=list)
    is_watched: bool = False
    watch_note: Optional[str] = None
    captures: List[Capture] = field(default_factory=list)
    predictions: List[Prediction] = field(default_factory=list)
    draft_picks: List[DraftPick] = field(default_factory=list)
    outcome_data: List[CaptureOutcome] = field(default_factory=list)
    timeline: List[TimelineItem] = field(default_factory=list)
    sentiment_arc: List[SentimentPoint] = field(default_factory=list)


# =============================================================================
# SEASON
# =============================================================================

@dataclass(frozen=True)
class TradeLeg:
    """A trade as seen from one player's side: sent away or acquired."""
    trade: Trade
    direction: str  # "away" / "acquired"


@dataclass
class PlayerSlice:
    player_id: str
    player_name: Optional[str] = None
    events: List[OpinionEvent] = field(default_factory=list)
    board_entries: List[BoardEntry] = field(default_factory=list)
    predictions: List[Prediction] = field(default_factory=list)
    draft_picks: List[DraftPick] = field(default_factory=list)
    captures: List[Capture] = field(default_factory=list)
    waiver_claims: List[WaiverClaim] = field(default_factory=list)
    trades: List[TradeLeg] = field(default_factory=list)


@dataclass(frozen=True)
class SeasonSummary:
    total_events: int = 0
    total_predictions: int = 0
    total_draft_picks: int = 0
    total_captures: int = 0
    total_waiver_claims: int = 0
    total_trades: int = 0
    unique_players: int = 0


@dataclass
class SeasonGraph:
    kind: ClassVar[str] = "season"

    user_id: str
    sport: str
    season: int
    players: Dict[str, PlayerSlice] = field(default_factory=dict)
    summary: SeasonSummary = field(default_factory=SeasonSummary)


# =============================================================================
# DRAFT
# =============================================================================

@dataclass(frozen=True)
class DraftGraphPick:
    """A user's pick joined against their board."""
    pick: DraftPick
    board_entry: Optional[BoardEntry]
    board_rank: Optional[int]
    deviation: Optional[int]       # pick_number - board_rank
    is_reach: Optional[bool]       # pick_number < board_rank


@dataclass(frozen=True)
class DeviationSummary:
    total_picks: int = 0
    picks_on_board: int = 0
    picks_off_board: int = 0
    avg_deviation: Optional[float] = None
    tag_breakdown: Dict[str, int] = field(default_factory=dict)


@dataclass
class DraftGraph:
    kind: ClassVar[str] = "draft"

    user_id: str
    draft_id: str
    sport: str
    total_rounds: int
    board_id: Optional[str] = None
    board_name: Optional[str] = None
    board_entry_count: int = 0
    picks: List[DraftGraphPick] = field(default_factory=list)
    comparison: Optional[BoardComparison] = None
    deviation_summary: DeviationSummary = field(default_factory=DeviationSummary)


# =============================================================================
# MULTI-SEASON
# =============================================================================

MULTI_SEASON_NOTE = "Need 2+ seasons of data for cross-season analysis"


@dataclass(frozen=True)
class SeasonPredictionSummary:
    season: int
    prediction_accuracy: Optional[float]
    total_predictions: int
    resolved: int


@dataclass(frozen=True)
class CrossSeasonPatterns:
    accuracy_trend: List[Tuple[int, Optional[float]]]
    volume_trend: List[Tuple[int, int]]


@dataclass
class MultiSeasonGraph:
    kind: ClassVar[str] = "multi_season"

    user_id: str
    sport: str
    seasons: List[int] = field(default_factory=list)
    season_graphs: List[SeasonPredictionSummary] = field(default_factory=list)
    cross_season_patterns: Optional[CrossSeasonPatterns] = None
    note: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.cross_season_patterns is None


# =============================================================================
# PROFILE
# =============================================================================

@dataclass
class ProfileGraph:
    """Everything the four profile detectors read for one (user, sport)."""
    kind: ClassVar[str] = "profile"

    user_id: str
    sport: str
    season: int
    draft_picks: List[DraftPick] = field(default_factory=list)
    board_comparisons: List[BoardComparison] = field(default_factory=list)
    board_entries: List[BoardEntry] = field(default_factory=list)
    predictions: List[Prediction] = field(default_factory=list)
    captures: List[Capture] = field(default_factory=list)
    roster: RosterEvents = field(default_factory=RosterEvents)
    expected_positions: List[str] = field(default_factory=list)


# =============================================================================
# PAIR
# =============================================================================

@dataclass
class PairGraph:
    """Matchups between two users, read under canonical pair ordering."""
    kind: ClassVar[str] = "pair"

    perspective_user: str
    opponent_id: str
    user_lo: str
    user_hi: str
    is_swapped: bool
    sport: Optional[str] = None
    matchups: List[Matchup] = field(default_factory=list)
