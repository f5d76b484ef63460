"""
Decision Intelligence Schemas
=============================

Pydantic schemas exchanged across the pipeline boundaries:
- Event entities read from the event store (immutable)
- Pattern results produced by the detectors (counts, rates, flags only)
- The user intelligence profile produced by the synthesizer and cached

No schema carries a live reference into the event store; every pattern
result and profile is a self-contained snapshot that can be dumped to JSON
and validated back.

Rates are Optional everywhere: None means "not enough data", which must
never be confused with a computed zero.
"""

import enum
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from decision_intel.models import (
    CaptureSentiment,
    OpinionEventType,
    PredictionOutcome,
    TradeStatus,
    WaiverStatus,
)


# =============================================================================
# BASE SCHEMAS
# =============================================================================

class EventSchema(BaseModel):
    """Base for event-store entities: built from ORM rows, immutable once emitted."""
    model_config = ConfigDict(from_attributes=True, frozen=True)


class ResultSchema(BaseModel):
    """Base for derived, serializable results."""
    model_config = ConfigDict(frozen=True)


# =============================================================================
# EVENT ENTITIES
# =============================================================================

class OpinionEvent(EventSchema):
    id: str
    user_id: str
    player_id: str
    sport: str = "unknown"
    event_type: OpinionEventType
    event_data: Dict[str, Any] = Field(default_factory=dict)
    sentiment: Optional[str] = None
    source_id: Optional[str] = None
    source_type: Optional[str] = None
    created_at: datetime


class BoardEntry(EventSchema):
    """A ranked player on one of the user's boards, with its board's metadata."""
    id: str
    user_id: str
    board_id: str
    board_name: str = "My Board"
    sport: str
    season: Optional[int] = None
    board_updated_at: datetime
    player_id: str
    player_name: Optional[str] = None
    rank: int
    tier: Optional[int] = None
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    baseline_rank: Optional[int] = None
    created_at: Optional[datetime] = None


class BoardComparison(EventSchema):
    id: str
    user_id: str
    draft_id: str
    board_id: str
    sport: str
    total_picks: int = 0
    picks_matching_board: int = 0
    average_board_rank_deviation: Optional[float] = None
    created_at: datetime


class WatchListEntry(EventSchema):
    user_id: str
    player_id: str
    note: Optional[str] = None
    created_at: datetime


class CaptureVerdict(EventSchema):
    player_id: Optional[str] = None
    verdict: str


class CaptureOutcome(EventSchema):
    players: List[CaptureVerdict] = Field(default_factory=list)


class Capture(EventSchema):
    id: str
    user_id: str
    content: str
    sentiment: CaptureSentiment = CaptureSentiment.NONE
    source_type: Optional[str] = None
    players: List[str] = Field(default_factory=list)
    outcome_linked: bool = False
    outcome_data: Optional[CaptureOutcome] = None
    created_at: datetime


class Prediction(EventSchema):
    id: str
    user_id: str
    sport: str
    subject_player_id: Optional[str] = None
    prediction_type: str = "unknown"
    confidence_level: Optional[int] = Field(default=None, ge=1, le=5)
    key_factors: List[str] = Field(default_factory=list)
    thesis: Optional[str] = None
    outcome: PredictionOutcome = PredictionOutcome.PENDING
    accuracy_score: Optional[float] = None
    created_at: datetime

    @property
    def is_resolved(self) -> bool:
        return self.outcome.is_terminal


class DraftPick(EventSchema):
    id: str
    draft_id: str
    team_id: Optional[str] = None
    user_id: str
    player_id: str
    player_name: Optional[str] = None
    position: Optional[str] = None
    pick_number: int
    round: int
    board_rank_at_pick: Optional[int] = None
    pick_tag: Optional[str] = None
    amount: Optional[int] = None
    picked_at: Optional[datetime] = None


class Draft(EventSchema):
    id: str
    sport: str
    draft_type: str = "snake"
    total_rounds: int = 15
    picks: List[DraftPick] = Field(default_factory=list)


class WaiverClaim(EventSchema):
    id: str
    user_id: str
    sport: str
    player_id: str
    position: Optional[str] = None
    status: WaiverStatus = WaiverStatus.PENDING
    bid_amount: Optional[int] = None
    reasoning: Optional[str] = None
    created_at: datetime


class Trade(EventSchema):
    id: str
    sport: str
    initiator_id: str
    receiver_id: str
    status: TradeStatus = TradeStatus.PENDING
    sender_players: List[str] = Field(default_factory=list)
    receiver_players: List[str] = Field(default_factory=list)
    proposer_reasoning: Optional[str] = None
    responder_reasoning: Optional[str] = None
    created_at: datetime


class LineupSnapshot(EventSchema):
    id: str
    user_id: str
    sport: str
    week: int
    active_points: Optional[float] = None
    bench_points: Optional[float] = None
    optimal_points: Optional[float] = None
    created_at: datetime

    @property
    def has_complete_scoring(self) -> bool:
        return (
            self.active_points is not None
            and self.bench_points is not None
            and self.optimal_points is not None
        )


class Matchup(EventSchema):
    id: str
    sport: str
    season: int
    week: int
    home_user_id: str
    away_user_id: str
    home_points: Optional[float] = None
    away_points: Optional[float] = None
    played_at: datetime


class RosterEvents(EventSchema):
    waiver_claims: List[WaiverClaim] = Field(default_factory=list)
    trades: List[Trade] = Field(default_factory=list)
    lineup_snapshots: List[LineupSnapshot] = Field(default_factory=list)


# =============================================================================
# DRAFT PATTERNS
# =============================================================================

class PositionShare(ResultSchema):
    count: int
    pct: float


class PositionAllocation(ResultSchema):
    breakdown: Dict[str, PositionShare] = Field(default_factory=dict)
    flags: List[str] = Field(default_factory=list)


class ReachFrequency(ResultSchema):
    reach_rate: float
    avg_reach_amount: Optional[float] = None
    reach_count: int
    total_with_board_data: int


class BoardAdherence(ResultSchema):
    follow_rate: float
    deviation_avg: Optional[float] = None
    picks_analyzed: int


class TagAccuracy(ResultSchema):
    tag_counts: Dict[str, int]
    total_tagged: int
    total_picks: int


class BoardTagAccuracy(ResultSchema):
    target_count: int
    sleeper_count: int
    avoid_count: int
    total: int


class AuctionPatterns(ResultSchema):
    total_spend: int
    avg_per_pick: float
    early_spend_rate: Optional[float] = None
    max_single_pick: int
    auction_pick_count: int


class DraftPatterns(ResultSchema):
    has_draft_data: bool = False
    draft_count: int = 0
    total_picks: int = 0
    position_allocation: PositionAllocation = Field(default_factory=PositionAllocation)
    reach_frequency: Optional[ReachFrequency] = None
    board_adherence: Optional[BoardAdherence] = None
    comparisons_analyzed: int = 0
    tag_accuracy: Optional[TagAccuracy] = None
    board_tag_accuracy: Optional[BoardTagAccuracy] = None
    round_by_round_tendency: Dict[str, int] = Field(default_factory=dict)
    auction_patterns: Optional[AuctionPatterns] = None

    @property
    def has_board_data(self) -> bool:
        return self.board_adherence is not None or self.comparisons_analyzed > 0


# =============================================================================
# PREDICTION PATTERNS
# =============================================================================

class TypeAccuracy(ResultSchema):
    total: int = 0
    correct: int = 0
    incorrect: int = 0
    pending: int = 0
    accuracy: Optional[float] = None


class PredictionBias(ResultSchema):
    type: str  # weak_factor, strong_factor, overconfidence, well_calibrated
    note: str
    factor: Optional[str] = None
    accuracy: Optional[float] = None
    high_conf_accuracy: Optional[float] = None
    low_conf_accuracy: Optional[float] = None


class Streak(ResultSchema):
    count: int = 0
    type: Optional[str] = None  # "correct" / "incorrect"


class Streaks(ResultSchema):
    current: Streak = Field(default_factory=Streak)
    longest: Streak = Field(default_factory=Streak)


class PredictionPatterns(ResultSchema):
    has_prediction_data: bool = False
    total_predictions: int = 0
    resolved: int = 0
    pending: int = 0
    correct: int = 0
    incorrect: int = 0
    overall_accuracy: Optional[float] = None
    accuracy_by_type: Dict[str, TypeAccuracy] = Field(default_factory=dict)
    accuracy_by_factor: Dict[str, Optional[float]] = Field(default_factory=dict)
    accuracy_by_confidence: Dict[int, Optional[float]] = Field(default_factory=dict)
    factor_samples: Dict[str, int] = Field(default_factory=dict)
    biases: List[PredictionBias] = Field(default_factory=list)
    streaks: Optional[Streaks] = None


# =============================================================================
# ROSTER PATTERNS
# =============================================================================

class WaiverPositionBreakdown(ResultSchema):
    claims: int = 0
    total_faab: int = 0


class WaiverTendencies(ResultSchema):
    total_claims: int = 0
    won_claims: int = 0
    position_breakdown: Dict[str, WaiverPositionBreakdown] = Field(default_factory=dict)
    total_faab_spent: int = 0
    avg_bid: Optional[float] = None
    with_reasoning: int = 0


class TradingStyle(ResultSchema):
    total_proposed: int = 0
    total_received: int = 0
    total_accepted: int = 0
    accept_rate: Optional[float] = None
    with_reasoning: int = 0


class LineupOptimality(ResultSchema):
    weeks_tracked: int = 0
    weeks_with_scoring: int = 0
    suboptimal_weeks: int = 0
    avg_points_left_on_bench: Optional[float] = None
    total_points_left_on_bench: float = 0.0


class RosterPatterns(ResultSchema):
    has_roster_data: bool = False
    season: Optional[int] = None
    waiver_tendencies: WaiverTendencies = Field(default_factory=WaiverTendencies)
    trading_style: TradingStyle = Field(default_factory=TradingStyle)
    lineup_optimality: LineupOptimality = Field(default_factory=LineupOptimality)


# =============================================================================
# CAPTURE PATTERNS
# =============================================================================

class CaptureVolume(ResultSchema):
    total: int
    monthly: Dict[str, int] = Field(default_factory=dict)
    with_players: int = 0


class SentimentAccuracy(ResultSchema):
    correct: int
    incorrect: int
    total: int
    rate: Optional[float] = None
    linked_captures: int


class CaptureToAction(ResultSchema):
    captured_players: int
    players_acted_on: int
    rate: float
    board_adds: int = 0
    draft_picks: int = 0
    predictions: int = 0


class CapturePatterns(ResultSchema):
    has_capture_data: bool = False
    total_captures: int = 0
    capture_volume: Optional[CaptureVolume] = None
    sentiment_breakdown: Dict[str, int] = Field(default_factory=dict)
    sentiment_accuracy: Optional[SentimentAccuracy] = None
    capture_to_action: Optional[CaptureToAction] = None


# =============================================================================
# HEAD-TO-HEAD
# =============================================================================

class HeadToHeadRecord(ResultSchema):
    """Record between two users, seen from user_id's side."""
    user_id: str
    opponent_id: str
    sport: Optional[str] = None
    has_matchup_data: bool = False
    matchups_played: int = 0
    wins: int = 0
    losses: int = 0
    ties: int = 0
    points_for: float = 0.0
    points_against: float = 0.0
    avg_margin: Optional[float] = None
    last_matchup_at: Optional[datetime] = None

    def flip(self) -> "HeadToHeadRecord":
        """The same record seen from the opponent's side."""
        return self.model_copy(update={
            "user_id": self.opponent_id,
            "opponent_id": self.user_id,
            "wins": self.losses,
            "losses": self.wins,
            "points_for": self.points_against,
            "points_against": self.points_for,
            "avg_margin": -self.avg_margin if self.avg_margin is not None else None,
        })


# =============================================================================
# USER INTELLIGENCE PROFILE
# =============================================================================

class DataConfidence(str, enum.Enum):
    """Coarse tier summarizing sample sufficiency."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def allows_high_stakes(self) -> bool:
        """Higher-stakes consumers gate behind HIGH only."""
        return self is DataConfidence.HIGH


class Severity(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 0, "medium": 1, "low": 2}[self.value]


class Insight(ResultSchema):
    """A strength or weakness. Weaknesses always carry a severity."""
    area: str
    label: str
    value: Optional[str] = None
    severity: Optional[Severity] = None


class Bias(ResultSchema):
    type: str
    source: str
    flag: Optional[str] = None
    factor: Optional[str] = None
    accuracy: Optional[float] = None
    note: Optional[str] = None
    high_conf_accuracy: Optional[float] = None
    low_conf_accuracy: Optional[float] = None


class Tendency(ResultSchema):
    type: str
    label: str
    value: Optional[str] = None


class UserIntelligenceProfile(BaseModel):
    """Synthesized profile. Replaced wholesale on regeneration."""
    user_id: str
    sport: str
    generated_at: datetime
    data_confidence: DataConfidence
    strengths: List[Insight] = Field(default_factory=list)
    weaknesses: List[Insight] = Field(default_factory=list)
    biases: List[Bias] = Field(default_factory=list)
    tendencies: List[Tendency] = Field(default_factory=list)
    one_thing_to_fix: Optional[Insight] = None
    draft_patterns: DraftPatterns
    prediction_patterns: PredictionPatterns
    roster_patterns: RosterPatterns
    capture_patterns: CapturePatterns

    def pattern_results(self) -> Dict[str, ResultSchema]:
        return {
            "draft": self.draft_patterns,
            "prediction": self.prediction_patterns,
            "roster": self.roster_patterns,
            "capture": self.capture_patterns,
        }
