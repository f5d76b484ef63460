"""
SQL Event Store
===============

Async SQLAlchemy implementation of the event store read contract.

Each read opens its own session so the graph assembler can issue the reads
of one subject concurrently. All range and equality filtering is pushed into
the query; rows are converted to immutable schema entities before leaving
this module.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from decision_intel.clock import year_bounds
from decision_intel.models import (
    DraftBoardComparisonRow,
    DraftBoardEntryRow,
    DraftBoardRow,
    DraftPickRow,
    DraftRow,
    LabCapturePlayerRow,
    LabCaptureRow,
    LineupSnapshotRow,
    MatchupRow,
    OpinionEventRow,
    PredictionRow,
    TradeRow,
    WaiverClaimRow,
    WatchListEntryRow,
)
from decision_intel.schemas import (
    BoardComparison,
    BoardEntry,
    Capture,
    CaptureOutcome,
    Draft,
    DraftPick,
    LineupSnapshot,
    Matchup,
    OpinionEvent,
    Prediction,
    RosterEvents,
    Trade,
    WaiverClaim,
    WatchListEntry,
)
from decision_intel.store.base import EventStore


# =============================================================================
# ROW CONVERSION
# =============================================================================

def _opinion_event(row: OpinionEventRow) -> OpinionEvent:
    return OpinionEvent(
        id=row.id,
        user_id=row.user_id,
        player_id=row.player_id,
        sport=row.sport,
        event_type=row.event_type,
        event_data=row.event_data or {},
        sentiment=row.sentiment,
        source_id=row.source_id,
        source_type=row.source_type,
        created_at=row.created_at,
    )


def _board_entry(entry: DraftBoardEntryRow, board: DraftBoardRow) -> BoardEntry:
    return BoardEntry(
        id=entry.id,
        user_id=board.user_id,
        board_id=board.id,
        board_name=board.name,
        sport=board.sport,
        season=board.season,
        board_updated_at=board.updated_at,
        player_id=entry.player_id,
        player_name=entry.player_name,
        rank=entry.rank,
        tier=entry.tier,
        tags=[t for t in (entry.tags or []) if isinstance(t, str)],
        notes=entry.notes,
        baseline_rank=entry.baseline_rank,
        created_at=entry.created_at,
    )


def _board_comparison(row: DraftBoardComparisonRow) -> BoardComparison:
    data = row.comparison_data or {}
    return BoardComparison(
        id=row.id,
        user_id=row.user_id,
        draft_id=row.draft_id,
        board_id=row.board_id,
        sport=row.sport,
        total_picks=data.get("total_picks") or 0,
        picks_matching_board=data.get("picks_matching_board") or 0,
        average_board_rank_deviation=data.get("average_board_rank_deviation"),
        created_at=row.created_at,
    )


def _capture(row: LabCaptureRow) -> Capture:
    outcome = None
    if row.outcome_data:
        players = row.outcome_data.get("players")
        outcome = CaptureOutcome.model_validate(
            {"players": players if isinstance(players, list) else []}
        )
    return Capture(
        id=row.id,
        user_id=row.user_id,
        content=row.content,
        sentiment=row.sentiment,
        source_type=row.source_type,
        players=[p.player_id for p in row.players],
        outcome_linked=row.outcome_linked,
        outcome_data=outcome,
        created_at=row.created_at,
    )


def _prediction(row: PredictionRow) -> Prediction:
    return Prediction(
        id=row.id,
        user_id=row.user_id,
        sport=row.sport,
        subject_player_id=row.subject_player_id,
        prediction_type=row.prediction_type,
        confidence_level=row.confidence_level,
        key_factors=[f for f in (row.key_factors or []) if isinstance(f, str)],
        thesis=row.thesis,
        outcome=row.outcome,
        accuracy_score=row.accuracy_score,
        created_at=row.created_at,
    )


def _draft_pick(row: DraftPickRow) -> DraftPick:
    return DraftPick.model_validate(row)


def _trade(row: TradeRow) -> Trade:
    return Trade(
        id=row.id,
        sport=row.sport,
        initiator_id=row.initiator_id,
        receiver_id=row.receiver_id,
        status=row.status,
        sender_players=[p for p in (row.sender_players or []) if isinstance(p, str)],
        receiver_players=[p for p in (row.receiver_players or []) if isinstance(p, str)],
        proposer_reasoning=row.proposer_reasoning,
        responder_reasoning=row.responder_reasoning,
        created_at=row.created_at,
    )


def _time_filters(column, since: Optional[datetime], until: Optional[datetime]) -> list:
    filters = []
    if since is not None:
        filters.append(column >= since)
    if until is not None:
        filters.append(column <= until)
    return filters


# =============================================================================
# STORE
# =============================================================================

class SqlEventStore(EventStore):
    """Event store reading from the relational schema in decision_intel.models."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def opinion_events(self, user_id, sport=None, player_id=None, since=None, until=None):
        conditions = [OpinionEventRow.user_id == user_id]
        if sport is not None:
            conditions.append(OpinionEventRow.sport == sport)
        if player_id is not None:
            conditions.append(OpinionEventRow.player_id == player_id)
        conditions.extend(_time_filters(OpinionEventRow.created_at, since, until))

        stmt = select(OpinionEventRow).where(and_(*conditions)).order_by(OpinionEventRow.created_at)
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [_opinion_event(r) for r in rows]

    async def board_entries(self, user_id, sport=None, player_id=None, season=None):
        conditions = [DraftBoardRow.user_id == user_id]
        if sport is not None:
            conditions.append(DraftBoardRow.sport == sport)
        if player_id is not None:
            conditions.append(DraftBoardEntryRow.player_id == player_id)
        if season is not None:
            conditions.append(DraftBoardRow.season == season)

        stmt = (
            select(DraftBoardEntryRow, DraftBoardRow)
            .join(DraftBoardRow, DraftBoardEntryRow.board_id == DraftBoardRow.id)
            .where(and_(*conditions))
            .order_by(DraftBoardRow.updated_at, DraftBoardRow.id, DraftBoardEntryRow.rank)
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).all()
        return [_board_entry(entry, board) for entry, board in rows]

    async def board_comparisons(self, user_id, sport, draft_id=None):
        conditions = [
            DraftBoardComparisonRow.user_id == user_id,
            DraftBoardComparisonRow.sport == sport,
        ]
        if draft_id is not None:
            conditions.append(DraftBoardComparisonRow.draft_id == draft_id)

        stmt = (
            select(DraftBoardComparisonRow)
            .where(and_(*conditions))
            .order_by(DraftBoardComparisonRow.created_at)
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [_board_comparison(r) for r in rows]

    async def watch_list(self, user_id, player_id=None):
        conditions = [WatchListEntryRow.user_id == user_id]
        if player_id is not None:
            conditions.append(WatchListEntryRow.player_id == player_id)

        stmt = select(WatchListEntryRow).where(and_(*conditions)).order_by(WatchListEntryRow.created_at)
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [WatchListEntry.model_validate(r) for r in rows]

    async def captures(self, user_id, since=None, until=None, player_id=None):
        conditions = [LabCaptureRow.user_id == user_id]
        conditions.extend(_time_filters(LabCaptureRow.created_at, since, until))
        if player_id is not None:
            conditions.append(
                LabCaptureRow.id.in_(
                    select(LabCapturePlayerRow.capture_id).where(LabCapturePlayerRow.player_id == player_id)
                )
            )

        stmt = select(LabCaptureRow).where(and_(*conditions)).order_by(LabCaptureRow.created_at)
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [_capture(r) for r in rows]

    async def predictions(self, user_id, sport=None, since=None, until=None, player_id=None):
        conditions = [PredictionRow.user_id == user_id]
        if sport is not None:
            conditions.append(PredictionRow.sport == sport)
        if player_id is not None:
            conditions.append(PredictionRow.subject_player_id == player_id)
        conditions.extend(_time_filters(PredictionRow.created_at, since, until))

        stmt = select(PredictionRow).where(and_(*conditions)).order_by(PredictionRow.created_at)
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [_prediction(r) for r in rows]

    async def draft_picks(self, user_id, sport=None, since=None, until=None, player_id=None):
        conditions = [DraftPickRow.user_id == user_id]
        if sport is not None:
            conditions.append(DraftRow.sport == sport)
        if player_id is not None:
            conditions.append(DraftPickRow.player_id == player_id)
        conditions.extend(_time_filters(DraftPickRow.picked_at, since, until))

        stmt = (
            select(DraftPickRow)
            .join(DraftRow, DraftPickRow.draft_id == DraftRow.id)
            .where(and_(*conditions))
            .order_by(DraftPickRow.picked_at.asc().nulls_last(), DraftPickRow.draft_id, DraftPickRow.pick_number)
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [_draft_pick(r) for r in rows]

    async def draft(self, draft_id):
        async with self._session_factory() as session:
            row = await session.get(DraftRow, draft_id)
            if row is None:
                return None
            return Draft(
                id=row.id,
                sport=row.sport,
                draft_type=row.draft_type,
                total_rounds=row.total_rounds,
                picks=[_draft_pick(p) for p in row.picks],
            )

    async def roster_events(self, user_id, sport, year):
        start, end = year_bounds(year)

        claims_stmt = (
            select(WaiverClaimRow)
            .where(and_(
                WaiverClaimRow.user_id == user_id,
                WaiverClaimRow.sport == sport,
                WaiverClaimRow.created_at >= start,
                WaiverClaimRow.created_at <= end,
            ))
            .order_by(WaiverClaimRow.created_at)
        )
        trades_stmt = (
            select(TradeRow)
            .where(and_(
                or_(TradeRow.initiator_id == user_id, TradeRow.receiver_id == user_id),
                TradeRow.sport == sport,
                TradeRow.created_at >= start,
                TradeRow.created_at <= end,
            ))
            .order_by(TradeRow.created_at)
        )
        lineups_stmt = (
            select(LineupSnapshotRow)
            .where(and_(
                LineupSnapshotRow.user_id == user_id,
                LineupSnapshotRow.sport == sport,
                LineupSnapshotRow.created_at >= start,
                LineupSnapshotRow.created_at <= end,
            ))
            .order_by(LineupSnapshotRow.created_at)
        )

        async with self._session_factory() as session:
            claims = (await session.execute(claims_stmt)).scalars().all()
            trades = (await session.execute(trades_stmt)).scalars().all()
            lineups = (await session.execute(lineups_stmt)).scalars().all()

        return RosterEvents(
            waiver_claims=[WaiverClaim.model_validate(c) for c in claims],
            trades=[_trade(t) for t in trades],
            lineup_snapshots=[LineupSnapshot.model_validate(s) for s in lineups],
        )

    async def matchups(self, user_lo, user_hi, sport=None):
        conditions = [
            or_(
                and_(MatchupRow.home_user_id == user_lo, MatchupRow.away_user_id == user_hi),
                and_(MatchupRow.home_user_id == user_hi, MatchupRow.away_user_id == user_lo),
            )
        ]
        if sport is not None:
            conditions.append(MatchupRow.sport == sport)

        stmt = select(MatchupRow).where(and_(*conditions)).order_by(MatchupRow.played_at)
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
        return [Matchup.model_validate(r) for r in rows]
