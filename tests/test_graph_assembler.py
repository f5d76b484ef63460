"""
Graph Assembler Tests
=====================

Tests for:
- player, season, draft, multi-season, profile and pair graphs
- bounded read counts for season graphs
- InvalidSubject and UpstreamUnavailable failures
"""

import asyncio
from datetime import datetime, timedelta

import pytest

from decision_intel.errors import InvalidSubject, UpstreamUnavailable
from decision_intel.graph import MULTI_SEASON_NOTE, GraphAssembler, infer_opinion_sentiment
from decision_intel.models import OpinionEventType, PredictionOutcome, TradeStatus, WaiverStatus
from decision_intel.schemas import RosterEvents
from decision_intel.store import InMemoryEventStore

from factories import (
    T0,
    USER,
    FakeClock,
    make_board_entry,
    make_capture,
    make_comparison,
    make_draft,
    make_event,
    make_matchup,
    make_pick,
    make_prediction,
    make_trade,
    make_waiver,
    make_watch,
)


class FailingStore(InMemoryEventStore):
    """Store whose prediction reads always fail."""

    async def predictions(self, *args, **kwargs):
        raise RuntimeError("connection reset")


class SlowStore(InMemoryEventStore):
    """Store whose capture reads never finish in time."""

    async def captures(self, *args, **kwargs):
        await asyncio.sleep(5)
        return []


# =============================================================================
# PLAYER
# =============================================================================

class TestPlayerGraph:
    """Tests for the single-player decision timeline."""

    @pytest.mark.asyncio
    async def test_collects_every_family_for_the_player(self, store):
        store.add_opinion_events([
            make_event("p1", OpinionEventType.WATCH_ADD, T0),
            make_event("p1", OpinionEventType.BOARD_ADD, T0 + timedelta(days=1)),
            make_event("p2", OpinionEventType.BOARD_ADD, T0),
        ])
        store.add_board_entries([
            make_board_entry("p1", 4, board_id="board-a"),
            make_board_entry("p1", 9, board_id="board-b"),
        ])
        store.add_watch_list([make_watch("p1", note="breakout candidate")])
        store.add_captures([
            make_capture(T0 + timedelta(days=2), players=["p1"], verdicts=["CORRECT"]),
            make_capture(T0, players=["p2"]),
        ])
        store.add_predictions([make_prediction(player_id="p1", created_at=T0 + timedelta(days=3))])
        store.add_draft(make_draft("draft-1", [make_pick(5, player_id="p1", picked_at=T0 + timedelta(days=4))]))

        graph = await GraphAssembler(store).build_graph("player", (USER, "p1"))

        assert [e.event_type for e in graph.events] == [OpinionEventType.WATCH_ADD, OpinionEventType.BOARD_ADD]
        assert sorted(e.rank for e in graph.board_positions) == [4, 9]
        assert graph.is_watched is True
        assert graph.watch_note == "breakout candidate"
        assert len(graph.captures) == 1
        assert len(graph.predictions) == 1
        assert len(graph.draft_picks) == 1
        assert len(graph.outcome_data) == 1

    @pytest.mark.asyncio
    async def test_timeline_is_chronological(self, store):
        store.add_opinion_events([make_event("p1", OpinionEventType.BOARD_ADD, T0 + timedelta(days=2))])
        store.add_captures([make_capture(T0, players=["p1"])])
        store.add_predictions([make_prediction(player_id="p1", created_at=T0 + timedelta(days=1))])

        graph = await GraphAssembler(store).player_graph(USER, "p1")

        assert [item.kind for item in graph.timeline] == ["capture", "prediction", "opinion"]
        times = [item.at for item in graph.timeline]
        assert times == sorted(times)

    @pytest.mark.asyncio
    async def test_unwatched_player(self, store):
        graph = await GraphAssembler(store).player_graph(USER, "nobody")
        assert graph.is_watched is False
        assert graph.watch_note is None
        assert graph.timeline == []

    @pytest.mark.asyncio
    async def test_sentiment_arc_uses_inferred_sentiment(self, store):
        store.add_opinion_events([
            make_event("p1", OpinionEventType.BOARD_ADD, T0),
            make_event("p1", OpinionEventType.BOARD_MOVE, T0 + timedelta(days=1)),
            make_event("p1", OpinionEventType.WAIVER_DROP, T0 + timedelta(days=2)),
        ])

        graph = await GraphAssembler(store).player_graph(USER, "p1")

        # BOARD_MOVE carries no implied sentiment
        assert [p.sentiment for p in graph.sentiment_arc] == ["positive", "negative"]


class TestInferOpinionSentiment:
    """Tests for sentiment inference from event types."""

    def test_stated_sentiment_wins(self):
        event = make_event("p1", OpinionEventType.BOARD_REMOVE, sentiment="bullish")
        assert infer_opinion_sentiment(event) == "bullish"

    def test_board_tags(self):
        target = make_event("p1", OpinionEventType.BOARD_TAG, event_data={"tag": "TARGET"})
        avoid = make_event("p1", OpinionEventType.BOARD_TAG, event_data={"tag": "AVOID"})
        assert infer_opinion_sentiment(target) == "positive"
        assert infer_opinion_sentiment(avoid) == "negative"

    def test_capture_event_uses_payload(self):
        event = make_event("p1", OpinionEventType.CAPTURE, event_data={"sentiment": "bearish"})
        assert infer_opinion_sentiment(event) == "bearish"

    def test_neutral_types(self):
        assert infer_opinion_sentiment(make_event("p1", OpinionEventType.PREDICTION)) is None


# =============================================================================
# SEASON
# =============================================================================

class TestSeasonGraph:
    """Tests for the per-season, per-player grouping."""

    @pytest.mark.asyncio
    async def test_read_count_does_not_grow_with_players(self, store):
        players = [f"p{i}" for i in range(25)]
        store.add_opinion_events([make_event(p, OpinionEventType.BOARD_ADD, T0) for p in players])
        store.add_predictions([make_prediction(player_id=p) for p in players])

        graph = await GraphAssembler(store).build_graph("season", (USER, "nfl", 2025))

        assert graph.summary.unique_players == 25
        assert sum(store.calls.values()) == 6
        assert all(count == 1 for count in store.calls.values())

    @pytest.mark.asyncio
    async def test_only_events_in_the_calendar_year(self, store):
        store.add_opinion_events([
            make_event("p1", OpinionEventType.BOARD_ADD, datetime(2025, 3, 1)),
            make_event("p1", OpinionEventType.BOARD_ADD, datetime(2024, 12, 31, 23, 0)),
        ])
        store.add_board_entries([
            make_board_entry("p1", 3, season=2025, player_name="Player One"),
            make_board_entry("p1", 5, board_id="old", season=2024),
        ])

        graph = await GraphAssembler(store).season_graph(USER, "nfl", 2025)

        slice_ = graph.players["p1"]
        assert len(slice_.events) == 1
        assert [e.rank for e in slice_.board_entries] == [3]
        assert slice_.player_name == "Player One"

    @pytest.mark.asyncio
    async def test_only_won_claims_and_accepted_trades(self, store):
        store.add_waiver_claims([
            make_waiver(WaiverStatus.WON, player_id="w1"),
            make_waiver(WaiverStatus.LOST, player_id="w2"),
        ])
        store.add_trades([
            make_trade(USER, "user-2", TradeStatus.ACCEPTED, sender_players=["out1"], receiver_players=["in1"]),
            make_trade(USER, "user-2", TradeStatus.REJECTED, sender_players=["out2"]),
        ])

        graph = await GraphAssembler(store).season_graph(USER, "nfl", 2025)

        assert "w1" in graph.players and "w2" not in graph.players
        assert "out2" not in graph.players
        assert graph.players["out1"].trades[0].direction == "away"
        assert graph.players["in1"].trades[0].direction == "acquired"
        assert graph.summary.total_waiver_claims == 1
        assert graph.summary.total_trades == 1

    @pytest.mark.asyncio
    async def test_trade_directions_from_receiver_side(self, store):
        store.add_trades([
            make_trade("user-2", USER, TradeStatus.ACCEPTED, sender_players=["theirs"], receiver_players=["mine"]),
        ])

        graph = await GraphAssembler(store).season_graph(USER, "nfl", 2025)

        assert graph.players["mine"].trades[0].direction == "away"
        assert graph.players["theirs"].trades[0].direction == "acquired"

    @pytest.mark.asyncio
    async def test_non_integer_year_is_invalid(self, store):
        with pytest.raises(InvalidSubject):
            await GraphAssembler(store).build_graph("season", (USER, "nfl", "last year"))


# =============================================================================
# DRAFT
# =============================================================================

class TestDraftGraph:
    """Tests for picks joined against the user's latest board."""

    @pytest.fixture
    def draft_store(self, store):
        picks = [make_pick(n, round=n, player_id=f"p{n}", user_id=USER if n in (3, 8, 9) else "other")
                 for n in range(1, 11)]
        store.add_draft(make_draft("draft-1", picks))
        store.add_board_entries([
            # Older board with different ranks must be ignored
            make_board_entry("p8", 30, board_id="old", board_updated_at=T0 - timedelta(days=30)),
            make_board_entry("p8", 2, board_id="current", board_updated_at=T0, tags=["TARGET"]),
            make_board_entry("p3", 10, board_id="current", board_updated_at=T0),
        ])
        store.add_board_comparisons([make_comparison("draft-1")])
        return store

    @pytest.mark.asyncio
    async def test_pick_eight_against_rank_two_is_not_a_reach(self, draft_store):
        graph = await GraphAssembler(draft_store).build_graph("draft", (USER, "draft-1"))

        pick8 = next(p for p in graph.picks if p.pick.pick_number == 8)
        assert pick8.board_rank == 2
        assert pick8.deviation == 6
        assert pick8.is_reach is False

    @pytest.mark.asyncio
    async def test_pick_ahead_of_board_rank_is_a_reach(self, draft_store):
        graph = await GraphAssembler(draft_store).draft_graph(USER, "draft-1")

        pick3 = next(p for p in graph.picks if p.pick.pick_number == 3)
        assert pick3.board_rank == 10
        assert pick3.deviation == -7
        assert pick3.is_reach is True

    @pytest.mark.asyncio
    async def test_off_board_pick_has_no_rank(self, draft_store):
        graph = await GraphAssembler(draft_store).draft_graph(USER, "draft-1")

        pick9 = next(p for p in graph.picks if p.pick.pick_number == 9)
        assert pick9.board_rank is None
        assert pick9.deviation is None
        assert pick9.is_reach is None

    @pytest.mark.asyncio
    async def test_keeps_only_the_users_picks_and_summarizes(self, draft_store):
        graph = await GraphAssembler(draft_store).draft_graph(USER, "draft-1")

        assert [p.pick.pick_number for p in graph.picks] == [3, 8, 9]
        assert graph.board_id == "current"
        assert graph.board_entry_count == 2
        assert graph.deviation_summary.picks_on_board == 2
        assert graph.deviation_summary.picks_off_board == 1
        assert graph.deviation_summary.avg_deviation == 6.5
        assert graph.comparison is not None

    @pytest.mark.asyncio
    async def test_unknown_draft(self, store):
        with pytest.raises(InvalidSubject) as exc_info:
            await GraphAssembler(store).build_graph("draft", (USER, "missing"))
        assert exc_info.value.subject_kind == "draft"


# =============================================================================
# MULTI-SEASON
# =============================================================================

class TestMultiSeasonGraph:
    """Tests for cross-season trends."""

    @pytest.mark.asyncio
    async def test_single_season_short_circuits(self, store):
        store.add_opinion_events([make_event("p1", OpinionEventType.BOARD_ADD, datetime(2025, 2, 1))])

        graph = await GraphAssembler(store).build_graph("multi_season", (USER, "nfl"))

        assert graph.note == MULTI_SEASON_NOTE
        assert graph.season_graphs == []
        assert graph.cross_season_patterns is None
        assert store.calls["predictions"] == 0

    @pytest.mark.asyncio
    async def test_two_seasons_report_per_season_accuracy(self, store):
        store.add_opinion_events([
            make_event("p1", OpinionEventType.BOARD_ADD, datetime(2024, 2, 1)),
            make_event("p1", OpinionEventType.BOARD_ADD, datetime(2025, 2, 1)),
        ])
        store.add_predictions([
            make_prediction(PredictionOutcome.CORRECT, created_at=datetime(2024, 5, 1)),
            make_prediction(PredictionOutcome.INCORRECT, created_at=datetime(2024, 6, 1)),
            make_prediction(PredictionOutcome.PARTIAL_CREDIT, created_at=datetime(2025, 5, 1)),
            make_prediction(PredictionOutcome.PENDING, created_at=datetime(2025, 6, 1)),
        ])

        graph = await GraphAssembler(store).multi_season_graph(USER, "nfl")

        assert graph.note is None
        assert graph.seasons == [2024, 2025]
        by_season = {s.season: s for s in graph.season_graphs}
        assert by_season[2024].prediction_accuracy == 0.5
        assert by_season[2025].prediction_accuracy == 1.0
        assert by_season[2025].resolved == 1
        assert graph.cross_season_patterns.volume_trend == [(2024, 2), (2025, 2)]
        assert store.calls["predictions"] == 1


# =============================================================================
# PROFILE / PAIR
# =============================================================================

class TestProfileGraph:
    """Tests for the detector input bundle."""

    @pytest.mark.asyncio
    async def test_roster_year_defaults_to_clock_year(self, store):
        assembler = GraphAssembler(store, clock=FakeClock(datetime(2026, 3, 1)))
        graph = await assembler.build_graph("profile", (USER, "nfl"))
        assert graph.season == 2026
        assert graph.roster == RosterEvents()

    @pytest.mark.asyncio
    async def test_expected_positions_per_sport(self, store):
        assembler = GraphAssembler(store, position_classes={"nfl": ["QB", "K"]})
        graph = await assembler.profile_graph(USER, "nfl", season=2025)
        assert graph.expected_positions == ["QB", "K"]

    @pytest.mark.asyncio
    async def test_undated_picks_come_last(self, store):
        store.add_draft(make_draft("draft-1", [
            make_pick(3, player_id="undated", picked_at=None),
            make_pick(2, player_id="second", picked_at=T0 + timedelta(minutes=5)),
            make_pick(1, player_id="first", picked_at=T0),
        ]))

        graph = await GraphAssembler(store).profile_graph(USER, "nfl", season=2025)

        assert [p.player_id for p in graph.draft_picks] == ["first", "second", "undated"]


class TestPairGraph:
    """Tests for two-user matchup graphs."""

    @pytest.mark.asyncio
    async def test_reads_under_canonical_order(self, store):
        store.add_matchups([make_matchup("user-b", "user-a", 100.0, 90.0)])

        graph = await GraphAssembler(store).build_graph("pair", ("user-b", "user-a"))

        assert graph.perspective_user == "user-b"
        assert (graph.user_lo, graph.user_hi) == ("user-a", "user-b")
        assert graph.is_swapped is True
        assert len(graph.matchups) == 1

    @pytest.mark.asyncio
    async def test_same_user_is_invalid(self, store):
        with pytest.raises(InvalidSubject):
            await GraphAssembler(store).pair_graph("user-a", "user-a")


# =============================================================================
# FAILURES
# =============================================================================

class TestAssemblerFailures:
    """Tests for InvalidSubject and UpstreamUnavailable."""

    @pytest.mark.asyncio
    async def test_unknown_subject_kind(self, store):
        with pytest.raises(InvalidSubject):
            await GraphAssembler(store).build_graph("league", (USER,))

    @pytest.mark.asyncio
    async def test_malformed_key(self, store):
        with pytest.raises(InvalidSubject):
            await GraphAssembler(store).build_graph("player", USER)
        with pytest.raises(InvalidSubject):
            await GraphAssembler(store).build_graph("player", (USER, ""))

    @pytest.mark.asyncio
    async def test_failed_read_aborts_build(self):
        with pytest.raises(UpstreamUnavailable) as exc_info:
            await GraphAssembler(FailingStore()).build_graph("profile", (USER, "nfl"))

        assert exc_info.value.operation == "predictions"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_timed_out_read_aborts_build(self):
        assembler = GraphAssembler(SlowStore(), read_timeout=0.01)
        with pytest.raises(UpstreamUnavailable) as exc_info:
            await assembler.build_graph("season", (USER, "nfl", 2025))

        assert exc_info.value.operation == "captures"
        assert "timed out" in str(exc_info.value)
