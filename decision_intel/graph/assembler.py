"""
Graph Assembler
===============

Joins event families around one subject key into an in-memory decision graph.

Subject kinds:
- player        (user_id, player_id)
- season        (user_id, sport, year)
- draft         (user_id, draft_id)
- multi_season  (user_id, sport)
- profile       (user_id, sport), scope = roster year (defaults to current year)
- pair          (user_id, opponent_id), scope = sport

The reads of one subject are issued concurrently, each bounded by the store
read timeout. Any failing read aborts the whole build with
UpstreamUnavailable; a partially assembled graph is never returned.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from decision_intel.clock import utcnow, year_bounds
from decision_intel.config import settings
from decision_intel.detectors.base import is_reach, rate
from decision_intel.errors import DecisionIntelError, InvalidSubject, UpstreamUnavailable
from decision_intel.graph.types import (
    MULTI_SEASON_NOTE,
    CrossSeasonPatterns,
    DeviationSummary,
    DraftGraph,
    DraftGraphPick,
    MultiSeasonGraph,
    PairGraph,
    PlayerGraph,
    PlayerSlice,
    ProfileGraph,
    SeasonGraph,
    SeasonPredictionSummary,
    SeasonSummary,
    SentimentPoint,
    TimelineItem,
    TradeLeg,
)
from decision_intel.models import OpinionEventType, TradeStatus, WaiverStatus
from decision_intel.pairs import canonical_pair
from decision_intel.schemas import BoardEntry, OpinionEvent
from decision_intel.store.base import EventStore

logger = logging.getLogger(__name__)


# Number of parts in each subject key
SUBJECT_KEY_PARTS = {"player": 2, "season": 3, "draft": 2, "multi_season": 2, "profile": 2, "pair": 2}
SUBJECT_KINDS = tuple(SUBJECT_KEY_PARTS)

POSITIVE_EVENT_TYPES = {
    OpinionEventType.WATCH_ADD,
    OpinionEventType.BOARD_ADD,
    OpinionEventType.WAIVER_ADD,
    OpinionEventType.TRADE_ACQUIRE,
    OpinionEventType.LINEUP_START,
}
NEGATIVE_EVENT_TYPES = {
    OpinionEventType.WATCH_REMOVE,
    OpinionEventType.BOARD_REMOVE,
    OpinionEventType.WAIVER_DROP,
    OpinionEventType.TRADE_AWAY,
    OpinionEventType.LINEUP_BENCH,
}
POSITIVE_TAGS = {"TARGET", "SLEEPER"}
NEGATIVE_TAGS = {"AVOID"}


def infer_opinion_sentiment(event: OpinionEvent) -> Optional[str]:
    """Stated sentiment if present, otherwise the one implied by the event type."""
    if event.sentiment:
        return event.sentiment
    if event.event_type in POSITIVE_EVENT_TYPES:
        return "positive"
    if event.event_type in NEGATIVE_EVENT_TYPES:
        return "negative"
    if event.event_type == OpinionEventType.BOARD_TAG:
        tag = str(event.event_data.get("tag") or "").upper()
        if tag in POSITIVE_TAGS:
            return "positive"
        if tag in NEGATIVE_TAGS:
            return "negative"
    if event.event_type == OpinionEventType.CAPTURE:
        return event.event_data.get("sentiment") or None
    return None


def _latest_board(entries: Sequence[BoardEntry]) -> List[BoardEntry]:
    """Entries of the most recently updated board."""
    if not entries:
        return []
    latest = max(entries, key=lambda e: (e.board_updated_at, e.board_id))
    return [e for e in entries if e.board_id == latest.board_id]


class GraphAssembler:
    """Builds decision graphs from an event store."""

    def __init__(
        self,
        store: EventStore,
        read_timeout: Optional[float] = None,
        position_classes: Optional[Dict[str, List[str]]] = None,
        clock: Callable = utcnow,
    ):
        self.store = store
        self.read_timeout = read_timeout if read_timeout is not None else settings.store_read_timeout_seconds
        self.position_classes = position_classes if position_classes is not None else settings.position_classes
        self.clock = clock

    # =========================================================================
    # DISPATCH
    # =========================================================================

    async def build_graph(self, subject_kind: str, subject_key, scope=None):
        """
        Build the graph for one subject.

        Raises:
            InvalidSubject: unknown kind, malformed key, unknown draft
            UpstreamUnavailable: any store read failed or timed out
        """
        if subject_kind not in SUBJECT_KEY_PARTS:
            raise InvalidSubject(subject_kind, subject_key, "unknown subject kind")
        if not isinstance(subject_key, (tuple, list)) or len(subject_key) != SUBJECT_KEY_PARTS[subject_kind]:
            raise InvalidSubject(
                subject_kind, subject_key, f"expected a key of {SUBJECT_KEY_PARTS[subject_kind]} parts"
            )
        if any(part is None or part == "" for part in subject_key):
            raise InvalidSubject(subject_kind, subject_key, "empty key part")

        if subject_kind == "player":
            return await self.player_graph(*subject_key)
        if subject_kind == "season":
            user_id, sport, year = subject_key
            try:
                year = int(year)
            except (TypeError, ValueError):
                raise InvalidSubject(subject_kind, subject_key, "season year must be an integer") from None
            return await self.season_graph(user_id, sport, year)
        if subject_kind == "draft":
            return await self.draft_graph(*subject_key)
        if subject_kind == "multi_season":
            return await self.multi_season_graph(*subject_key)
        if subject_kind == "profile":
            return await self.profile_graph(*subject_key, season=scope)
        return await self.pair_graph(*subject_key, sport=scope)

    # =========================================================================
    # READS
    # =========================================================================

    async def _read(self, operation: str, awaitable: Awaitable) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.read_timeout)
        except DecisionIntelError:
            raise
        except asyncio.TimeoutError as exc:
            raise UpstreamUnavailable(operation, f"timed out after {self.read_timeout}s") from exc
        except Exception as exc:
            raise UpstreamUnavailable(operation, str(exc) or type(exc).__name__) from exc

    async def _read_all(self, reads: Dict[str, Awaitable]) -> Dict[str, Any]:
        """Issue named reads concurrently; the first failure aborts the build."""
        names = list(reads)
        results = await asyncio.gather(
            *(self._read(name, reads[name]) for name in names),
            return_exceptions=True,
        )
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                logger.warning("Graph read %s failed: %s", name, result)
                raise result
        return dict(zip(names, results))

    # =========================================================================
    # PLAYER
    # =========================================================================

    async def player_graph(self, user_id: str, player_id: str) -> PlayerGraph:
        data = await self._read_all({
            "opinion_events": self.store.opinion_events(user_id, player_id=player_id),
            "board_entries": self.store.board_entries(user_id, player_id=player_id),
            "watch_list": self.store.watch_list(user_id, player_id=player_id),
            "captures": self.store.captures(user_id, player_id=player_id),
            "predictions": self.store.predictions(user_id, player_id=player_id),
            "draft_picks": self.store.draft_picks(user_id, player_id=player_id),
        })

        events = data["opinion_events"]
        captures = data["captures"]
        predictions = data["predictions"]
        picks = data["draft_picks"]
        watch = data["watch_list"]

        timeline = [TimelineItem("opinion", e.created_at, e.id, e.event_type.value) for e in events]
        timeline += [TimelineItem("capture", c.created_at, c.id, c.sentiment.value) for c in captures]
        timeline += [
            TimelineItem("prediction", p.created_at, p.id, f"{p.prediction_type}:{p.outcome.value}")
            for p in predictions
        ]
        timeline += [
            TimelineItem("draft_pick", p.picked_at, p.id, f"pick {p.pick_number}")
            for p in picks if p.picked_at is not None
        ]
        timeline.sort(key=lambda item: (item.at, item.kind, item.ref_id))

        arc = []
        for event in events:
            sentiment = infer_opinion_sentiment(event)
            if sentiment:
                arc.append(SentimentPoint(event.event_type.value, sentiment, event.created_at))

        return PlayerGraph(
            user_id=user_id,
            player_id=player_id,
            events=events,
            board_positions=data["board_entries"],
            is_watched=bool(watch),
            watch_note=watch[-1].note if watch else None,
            captures=captures,
            predictions=predictions,
            draft_picks=picks,
            outcome_data=[c.outcome_data for c in captures if c.outcome_linked and c.outcome_data],
            timeline=timeline,
            sentiment_arc=arc,
        )

    # =========================================================================
    # SEASON
    # =========================================================================

    async def season_graph(self, user_id: str, sport: str, season: int) -> SeasonGraph:
        start, end = year_bounds(season)
        data = await self._read_all({
            "opinion_events": self.store.opinion_events(user_id, sport=sport, since=start, until=end),
            "board_entries": self.store.board_entries(user_id, sport=sport, season=season),
            "predictions": self.store.predictions(user_id, sport=sport, since=start, until=end),
            "draft_picks": self.store.draft_picks(user_id, sport=sport, since=start, until=end),
            "captures": self.store.captures(user_id, since=start, until=end),
            "roster_events": self.store.roster_events(user_id, sport, season),
        })

        players: Dict[str, PlayerSlice] = {}

        def slice_for(player_id: str) -> PlayerSlice:
            if player_id not in players:
                players[player_id] = PlayerSlice(player_id=player_id)
            return players[player_id]

        for event in data["opinion_events"]:
            slice_for(event.player_id).events.append(event)
        for entry in data["board_entries"]:
            player = slice_for(entry.player_id)
            player.board_entries.append(entry)
            player.player_name = player.player_name or entry.player_name
        for prediction in data["predictions"]:
            if prediction.subject_player_id:
                slice_for(prediction.subject_player_id).predictions.append(prediction)
        for pick in data["draft_picks"]:
            player = slice_for(pick.player_id)
            player.draft_picks.append(pick)
            player.player_name = player.player_name or pick.player_name
        for capture in data["captures"]:
            for player_id in capture.players:
                slice_for(player_id).captures.append(capture)

        roster = data["roster_events"]
        won_claims = [c for c in roster.waiver_claims if c.status == WaiverStatus.WON]
        accepted = [t for t in roster.trades if t.status == TradeStatus.ACCEPTED]
        for claim in won_claims:
            slice_for(claim.player_id).waiver_claims.append(claim)
        for trade in accepted:
            if trade.initiator_id == user_id:
                sent, received = trade.sender_players, trade.receiver_players
            else:
                sent, received = trade.receiver_players, trade.sender_players
            for player_id in sent:
                slice_for(player_id).trades.append(TradeLeg(trade, "away"))
            for player_id in received:
                slice_for(player_id).trades.append(TradeLeg(trade, "acquired"))

        summary = SeasonSummary(
            total_events=len(data["opinion_events"]),
            total_predictions=len(data["predictions"]),
            total_draft_picks=len(data["draft_picks"]),
            total_captures=len(data["captures"]),
            total_waiver_claims=len(won_claims),
            total_trades=len(accepted),
            unique_players=len(players),
        )
        return SeasonGraph(user_id=user_id, sport=sport, season=season, players=players, summary=summary)

    # =========================================================================
    # DRAFT
    # =========================================================================

    async def draft_graph(self, user_id: str, draft_id: str) -> DraftGraph:
        draft = await self._read("draft", self.store.draft(draft_id))
        if draft is None:
            raise InvalidSubject("draft", (user_id, draft_id), "draft not found")

        data = await self._read_all({
            "board_entries": self.store.board_entries(user_id, sport=draft.sport),
            "board_comparisons": self.store.board_comparisons(user_id, draft.sport, draft_id=draft_id),
        })

        board = _latest_board(data["board_entries"])
        by_player = {e.player_id: e for e in board}

        picks = []
        for pick in draft.picks:
            if pick.user_id != user_id:
                continue
            entry = by_player.get(pick.player_id)
            board_rank = entry.rank if entry else None
            picks.append(DraftGraphPick(
                pick=pick,
                board_entry=entry,
                board_rank=board_rank,
                deviation=pick.pick_number - board_rank if board_rank is not None else None,
                is_reach=is_reach(pick.pick_number, board_rank),
            ))

        on_board = [p for p in picks if p.board_rank is not None]
        tags: Dict[str, int] = defaultdict(int)
        for p in picks:
            if p.pick.pick_tag:
                tags[p.pick.pick_tag] += 1
        deviations = [abs(p.deviation) for p in on_board]
        summary = DeviationSummary(
            total_picks=len(picks),
            picks_on_board=len(on_board),
            picks_off_board=len(picks) - len(on_board),
            avg_deviation=round(sum(deviations) / len(deviations), 1) if deviations else None,
            tag_breakdown=dict(tags),
        )

        comparisons = data["board_comparisons"]
        return DraftGraph(
            user_id=user_id,
            draft_id=draft_id,
            sport=draft.sport,
            total_rounds=draft.total_rounds,
            board_id=board[0].board_id if board else None,
            board_name=board[0].board_name if board else None,
            board_entry_count=len(board),
            picks=picks,
            comparison=comparisons[-1] if comparisons else None,
            deviation_summary=summary,
        )

    # =========================================================================
    # MULTI-SEASON
    # =========================================================================

    async def multi_season_graph(self, user_id: str, sport: str) -> MultiSeasonGraph:
        events = await self._read("opinion_events", self.store.opinion_events(user_id, sport=sport))
        seasons = sorted({e.created_at.year for e in events})
        if len(seasons) < 2:
            return MultiSeasonGraph(user_id=user_id, sport=sport, seasons=seasons, note=MULTI_SEASON_NOTE)

        predictions = await self._read("predictions", self.store.predictions(user_id, sport=sport))
        by_year = defaultdict(list)
        for prediction in predictions:
            by_year[prediction.created_at.year].append(prediction)

        summaries = []
        for season in seasons:
            rows = by_year.get(season, [])
            resolved = [p for p in rows if p.is_resolved]
            hits = sum(1 for p in resolved if p.outcome.is_hit)
            summaries.append(SeasonPredictionSummary(
                season=season,
                prediction_accuracy=rate(hits, len(resolved)),
                total_predictions=len(rows),
                resolved=len(resolved),
            ))

        return MultiSeasonGraph(
            user_id=user_id,
            sport=sport,
            seasons=seasons,
            season_graphs=summaries,
            cross_season_patterns=CrossSeasonPatterns(
                accuracy_trend=[(s.season, s.prediction_accuracy) for s in summaries],
                volume_trend=[(s.season, s.total_predictions) for s in summaries],
            ),
        )

    # =========================================================================
    # PROFILE
    # =========================================================================

    async def profile_graph(self, user_id: str, sport: str, season: Optional[int] = None) -> ProfileGraph:
        if season is None:
            season = self.clock().year
        data = await self._read_all({
            "draft_picks": self.store.draft_picks(user_id, sport=sport),
            "board_comparisons": self.store.board_comparisons(user_id, sport),
            "board_entries": self.store.board_entries(user_id, sport=sport),
            "predictions": self.store.predictions(user_id, sport=sport),
            "captures": self.store.captures(user_id),
            "roster_events": self.store.roster_events(user_id, sport, season),
        })
        return ProfileGraph(
            user_id=user_id,
            sport=sport,
            season=season,
            draft_picks=data["draft_picks"],
            board_comparisons=data["board_comparisons"],
            board_entries=data["board_entries"],
            predictions=data["predictions"],
            captures=data["captures"],
            roster=data["roster_events"],
            expected_positions=list(self.position_classes.get(sport.lower(), [])),
        )

    # =========================================================================
    # PAIR
    # =========================================================================

    async def pair_graph(self, user_id: str, opponent_id: str, sport: Optional[str] = None) -> PairGraph:
        try:
            lo, hi, swapped = canonical_pair(user_id, opponent_id)
        except ValueError as exc:
            raise InvalidSubject("pair", (user_id, opponent_id), str(exc)) from exc

        matchups = await self._read("matchups", self.store.matchups(lo, hi, sport=sport))
        return PairGraph(
            perspective_user=user_id,
            opponent_id=opponent_id,
            user_lo=lo,
            user_hi=hi,
            is_swapped=swapped,
            sport=sport,
            matchups=matchups,
        )
