"""
Decision Intelligence Database Models
=====================================

Relational layout of the seven event families read by the pipeline, plus
the profile cache table written by it:
- Opinion layer: opinion_events, watch_list_entries
- Board layer: draft_boards, draft_board_entries, draft_board_comparisons
- Research layer: lab_captures, lab_capture_players
- Prediction layer: predictions
- Draft layer: drafts, draft_picks
- Roster layer: waiver_claims, trades, lineup_snapshots
- Results layer: matchups
- Derived: user_intelligence_profiles

Event rows are append-only from the pipeline's point of view. The only table
the pipeline writes is user_intelligence_profiles, one row per (user, sport),
overwritten wholesale.

All timestamps are naive UTC.
"""

import enum
from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from decision_intel.clock import utcnow


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _new_id() -> str:
    return str(uuid4())


# =============================================================================
# ENUMS
# =============================================================================

class OpinionEventType(str, enum.Enum):
    """Actions that signal a change in a user's view of a player."""
    WATCH_ADD = "WATCH_ADD"
    WATCH_REMOVE = "WATCH_REMOVE"
    BOARD_ADD = "BOARD_ADD"
    BOARD_REMOVE = "BOARD_REMOVE"
    BOARD_MOVE = "BOARD_MOVE"
    BOARD_TAG = "BOARD_TAG"
    CAPTURE = "CAPTURE"
    PREDICTION = "PREDICTION"
    DRAFT_PICK = "DRAFT_PICK"
    WAIVER_ADD = "WAIVER_ADD"
    WAIVER_DROP = "WAIVER_DROP"
    TRADE_ACQUIRE = "TRADE_ACQUIRE"
    TRADE_AWAY = "TRADE_AWAY"
    LINEUP_START = "LINEUP_START"
    LINEUP_BENCH = "LINEUP_BENCH"


class CaptureSentiment(str, enum.Enum):
    """Sentiment a user attached to a research capture."""
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"
    NONE = "none"


class PredictionOutcome(str, enum.Enum):
    """Prediction lifecycle. PENDING transitions exactly once to a terminal value."""
    PENDING = "PENDING"
    CORRECT = "CORRECT"
    PARTIAL_CREDIT = "PARTIAL_CREDIT"
    INCORRECT = "INCORRECT"

    @property
    def is_terminal(self) -> bool:
        return self is not PredictionOutcome.PENDING

    @property
    def is_hit(self) -> bool:
        return self in (PredictionOutcome.CORRECT, PredictionOutcome.PARTIAL_CREDIT)


class WaiverStatus(str, enum.Enum):
    PENDING = "PENDING"
    WON = "WON"
    LOST = "LOST"
    CANCELLED = "CANCELLED"


class TradeStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


# =============================================================================
# OPINION LAYER
# =============================================================================

class OpinionEventRow(Base):
    """Append-only signal that a user's view of a player changed."""
    __tablename__ = "opinion_events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    player_id: Mapped[str] = mapped_column(String(64), nullable=False)
    sport: Mapped[str] = mapped_column(String(20), nullable=False, default="unknown")

    event_type: Mapped[OpinionEventType] = mapped_column(
        Enum(OpinionEventType, native_enum=False, length=30), nullable=False
    )
    event_data: Mapped[Optional[dict]] = mapped_column(JSONType)
    # Example: {"tag": "SLEEPER"} or {"from_rank": 14, "to_rank": 9}
    sentiment: Mapped[Optional[str]] = mapped_column(String(20))

    # Where the action happened (board id, capture id, prediction id ...)
    source_id: Mapped[Optional[str]] = mapped_column(String(64))
    source_type: Mapped[Optional[str]] = mapped_column(String(30))

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_opinion_events_user_player", "user_id", "player_id"),
        Index("ix_opinion_events_user_sport_time", "user_id", "sport", "created_at"),
    )


class WatchListEntryRow(Base):
    """Current watch-list membership of a player for a user."""
    __tablename__ = "watch_list_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    player_id: Mapped[str] = mapped_column(String(64), nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "player_id", name="uq_watch_list_user_player"),
    )


# =============================================================================
# BOARD LAYER
# =============================================================================

class DraftBoardRow(Base):
    """A user's pre-draft ranking board for one sport."""
    __tablename__ = "draft_boards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="My Board")
    sport: Mapped[str] = mapped_column(String(20), nullable=False)
    season: Mapped[Optional[int]] = mapped_column(Integer)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    entries: Mapped[List["DraftBoardEntryRow"]] = relationship(
        back_populates="board", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_draft_boards_user_sport", "user_id", "sport", "updated_at"),
    )


class DraftBoardEntryRow(Base):
    """One ranked player on a board. Unique per (board, player)."""
    __tablename__ = "draft_board_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    board_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("draft_boards.id", ondelete="CASCADE"), nullable=False
    )
    player_id: Mapped[str] = mapped_column(String(64), nullable=False)
    player_name: Mapped[Optional[str]] = mapped_column(String(255))

    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    tier: Mapped[Optional[int]] = mapped_column(Integer)
    tags: Mapped[Optional[list]] = mapped_column(JSONType)  # ["TARGET", "SLEEPER", "AVOID"]
    notes: Mapped[Optional[str]] = mapped_column(Text)
    baseline_rank: Mapped[Optional[int]] = mapped_column(Integer)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    board: Mapped["DraftBoardRow"] = relationship(back_populates="entries")

    __table_args__ = (
        UniqueConstraint("board_id", "player_id", name="uq_board_entry_player"),
        Index("ix_draft_board_entries_player", "player_id"),
    )


class DraftBoardComparisonRow(Base):
    """Stored comparison of a finished draft against the user's board."""
    __tablename__ = "draft_board_comparisons"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    draft_id: Mapped[str] = mapped_column(String(36), nullable=False)
    board_id: Mapped[str] = mapped_column(String(36), nullable=False)
    sport: Mapped[str] = mapped_column(String(20), nullable=False)
    comparison_data: Mapped[Optional[dict]] = mapped_column(JSONType)
    # {"total_picks": 15, "picks_matching_board": 9, "average_board_rank_deviation": 4.2}

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_draft_board_comparisons_user_sport", "user_id", "sport"),
    )


# =============================================================================
# RESEARCH LAYER
# =============================================================================

class LabCaptureRow(Base):
    """Freeform research note, optionally back-filled with a resolved verdict."""
    __tablename__ = "lab_captures"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    sentiment: Mapped[CaptureSentiment] = mapped_column(
        Enum(CaptureSentiment, native_enum=False, length=20), nullable=False, default=CaptureSentiment.NONE
    )
    source_type: Mapped[Optional[str]] = mapped_column(String(30))

    outcome_linked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    outcome_data: Mapped[Optional[dict]] = mapped_column(JSONType)
    # {"players": [{"player_id": "...", "verdict": "TRENDING_CORRECT"}]}

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    players: Mapped[List["LabCapturePlayerRow"]] = relationship(
        back_populates="capture", cascade="all, delete-orphan", lazy="selectin"
    )

    __table_args__ = (
        Index("ix_lab_captures_user_time", "user_id", "created_at"),
    )


class LabCapturePlayerRow(Base):
    """Player mentioned by a capture."""
    __tablename__ = "lab_capture_players"

    capture_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("lab_captures.id", ondelete="CASCADE"), primary_key=True
    )
    player_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    capture: Mapped["LabCaptureRow"] = relationship(back_populates="players")

    __table_args__ = (
        Index("ix_lab_capture_players_player", "player_id"),
    )


# =============================================================================
# PREDICTION LAYER
# =============================================================================

class PredictionRow(Base):
    """A user's call on a player or event, resolved once."""
    __tablename__ = "predictions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    sport: Mapped[str] = mapped_column(String(20), nullable=False)
    subject_player_id: Mapped[Optional[str]] = mapped_column(String(64))

    prediction_type: Mapped[str] = mapped_column(String(50), nullable=False)
    confidence_level: Mapped[Optional[int]] = mapped_column(Integer)  # 1..5
    key_factors: Mapped[Optional[list]] = mapped_column(JSONType)
    thesis: Mapped[Optional[str]] = mapped_column(Text)

    outcome: Mapped[PredictionOutcome] = mapped_column(
        Enum(PredictionOutcome, native_enum=False, length=20), nullable=False, default=PredictionOutcome.PENDING
    )
    accuracy_score: Mapped[Optional[float]] = mapped_column(Float)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    __table_args__ = (
        Index("ix_predictions_user_sport_time", "user_id", "sport", "created_at"),
        Index("ix_predictions_subject_player", "user_id", "subject_player_id"),
    )


# =============================================================================
# DRAFT LAYER
# =============================================================================

class DraftRow(Base):
    """A league draft."""
    __tablename__ = "drafts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    sport: Mapped[str] = mapped_column(String(20), nullable=False)
    league_id: Mapped[Optional[str]] = mapped_column(String(36))
    draft_type: Mapped[str] = mapped_column(String(20), nullable=False, default="snake")
    total_rounds: Mapped[int] = mapped_column(Integer, nullable=False, default=15)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    picks: Mapped[List["DraftPickRow"]] = relationship(
        back_populates="draft", order_by="DraftPickRow.pick_number", lazy="selectin"
    )


class DraftPickRow(Base):
    """One pick in a draft. Immutable."""
    __tablename__ = "draft_picks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    draft_id: Mapped[str] = mapped_column(String(36), ForeignKey("drafts.id"), nullable=False)
    team_id: Mapped[Optional[str]] = mapped_column(String(36))
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)  # team owner

    player_id: Mapped[str] = mapped_column(String(64), nullable=False)
    player_name: Mapped[Optional[str]] = mapped_column(String(255))
    position: Mapped[Optional[str]] = mapped_column(String(10))

    pick_number: Mapped[int] = mapped_column(Integer, nullable=False)
    round: Mapped[int] = mapped_column(Integer, nullable=False)
    board_rank_at_pick: Mapped[Optional[int]] = mapped_column(Integer)
    pick_tag: Mapped[Optional[str]] = mapped_column(String(30))  # STEAL, REACH, VALUE ...
    amount: Mapped[Optional[int]] = mapped_column(Integer)       # auction dollars

    picked_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    draft: Mapped["DraftRow"] = relationship(back_populates="picks")

    __table_args__ = (
        UniqueConstraint("draft_id", "pick_number", name="uq_draft_pick_number"),
        Index("ix_draft_picks_user_time", "user_id", "picked_at"),
        Index("ix_draft_picks_user_player", "user_id", "player_id"),
    )


# =============================================================================
# ROSTER LAYER
# =============================================================================

class WaiverClaimRow(Base):
    __tablename__ = "waiver_claims"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    sport: Mapped[str] = mapped_column(String(20), nullable=False)
    player_id: Mapped[str] = mapped_column(String(64), nullable=False)
    position: Mapped[Optional[str]] = mapped_column(String(10))

    status: Mapped[WaiverStatus] = mapped_column(
        Enum(WaiverStatus, native_enum=False, length=20), nullable=False, default=WaiverStatus.PENDING
    )
    bid_amount: Mapped[Optional[int]] = mapped_column(Integer)
    reasoning: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    __table_args__ = (
        Index("ix_waiver_claims_user_sport_time", "user_id", "sport", "created_at"),
    )


class TradeRow(Base):
    __tablename__ = "trades"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    sport: Mapped[str] = mapped_column(String(20), nullable=False)
    initiator_id: Mapped[str] = mapped_column(String(64), nullable=False)
    receiver_id: Mapped[str] = mapped_column(String(64), nullable=False)

    status: Mapped[TradeStatus] = mapped_column(
        Enum(TradeStatus, native_enum=False, length=20), nullable=False, default=TradeStatus.PENDING
    )
    sender_players: Mapped[Optional[list]] = mapped_column(JSONType)
    receiver_players: Mapped[Optional[list]] = mapped_column(JSONType)
    proposer_reasoning: Mapped[Optional[str]] = mapped_column(Text)
    responder_reasoning: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_trades_initiator_time", "initiator_id", "created_at"),
        Index("ix_trades_receiver_time", "receiver_id", "created_at"),
    )


class LineupSnapshotRow(Base):
    """Weekly lineup with the points scored by active, bench and optimal lineups."""
    __tablename__ = "lineup_snapshots"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    sport: Mapped[str] = mapped_column(String(20), nullable=False)
    week: Mapped[int] = mapped_column(Integer, nullable=False)

    active_points: Mapped[Optional[float]] = mapped_column(Float)
    bench_points: Mapped[Optional[float]] = mapped_column(Float)
    optimal_points: Mapped[Optional[float]] = mapped_column(Float)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_lineup_snapshots_user_sport_time", "user_id", "sport", "created_at"),
    )


# =============================================================================
# RESULTS LAYER
# =============================================================================

class MatchupRow(Base):
    """Weekly head-to-head result between two users."""
    __tablename__ = "matchups"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    sport: Mapped[str] = mapped_column(String(20), nullable=False)
    season: Mapped[int] = mapped_column(Integer, nullable=False)
    week: Mapped[int] = mapped_column(Integer, nullable=False)

    home_user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    away_user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    home_points: Mapped[Optional[float]] = mapped_column(Float)
    away_points: Mapped[Optional[float]] = mapped_column(Float)

    played_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_matchups_home_away", "home_user_id", "away_user_id"),
        Index("ix_matchups_away_home", "away_user_id", "home_user_id"),
    )


# =============================================================================
# DERIVED - Intelligence Profile Cache
# =============================================================================

class UserIntelligenceProfileRow(Base):
    """
    Cached intelligence profile.

    One row per (user, sport). Rows are overwritten wholesale on regeneration
    and never patched field by field. A row past its expires_at is stale but
    kept, so a failed rebuild can still serve it.
    """
    __tablename__ = "user_intelligence_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    sport: Mapped[str] = mapped_column(String(20), nullable=False)

    profile_data: Mapped[dict] = mapped_column(JSONType, nullable=False)
    data_confidence: Mapped[str] = mapped_column(String(10), nullable=False)

    generated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "sport", name="uq_user_intelligence_profile_user_sport"),
    )
