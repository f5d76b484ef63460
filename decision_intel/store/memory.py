"""
In-Memory Event Store
=====================

Holds event entities in process memory and answers the read contract with
the same filtering and ordering rules as the SQL store. Used by tests, by
fixtures and by callers that already have events materialized.

Every read is counted in `calls` so callers can verify how many bulk reads
a graph build issued.
"""

from collections import Counter
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from decision_intel.clock import year_bounds
from decision_intel.schemas import (
    BoardComparison,
    BoardEntry,
    Capture,
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


def _in_range(moment: Optional[datetime], since: Optional[datetime], until: Optional[datetime]) -> bool:
    if since is None and until is None:
        return True
    if moment is None:
        return False
    if since is not None and moment < since:
        return False
    if until is not None and moment > until:
        return False
    return True


class InMemoryEventStore(EventStore):
    """Event store backed by plain lists."""

    def __init__(self):
        self._opinion_events: List[OpinionEvent] = []
        self._board_entries: List[BoardEntry] = []
        self._board_comparisons: List[BoardComparison] = []
        self._watch_list: List[WatchListEntry] = []
        self._captures: List[Capture] = []
        self._predictions: List[Prediction] = []
        self._drafts: Dict[str, Draft] = {}
        self._waiver_claims: List[WaiverClaim] = []
        self._trades: List[Trade] = []
        self._lineup_snapshots: List[LineupSnapshot] = []
        self._matchups: List[Matchup] = []
        self.calls: Counter = Counter()

    # =========================================================================
    # LOADING
    # =========================================================================

    def add_opinion_events(self, events: Iterable[OpinionEvent]) -> None:
        self._opinion_events.extend(events)

    def add_board_entries(self, entries: Iterable[BoardEntry]) -> None:
        self._board_entries.extend(entries)

    def add_board_comparisons(self, comparisons: Iterable[BoardComparison]) -> None:
        self._board_comparisons.extend(comparisons)

    def add_watch_list(self, entries: Iterable[WatchListEntry]) -> None:
        self._watch_list.extend(entries)

    def add_captures(self, captures: Iterable[Capture]) -> None:
        self._captures.extend(captures)

    def add_predictions(self, predictions: Iterable[Prediction]) -> None:
        self._predictions.extend(predictions)

    def replace_prediction(self, prediction: Prediction) -> None:
        """Swap in a new version of a prediction (e.g. after it resolves)."""
        self._predictions = [
            prediction if p.id == prediction.id else p for p in self._predictions
        ]

    def add_draft(self, draft: Draft) -> None:
        self._drafts[draft.id] = draft

    def add_waiver_claims(self, claims: Iterable[WaiverClaim]) -> None:
        self._waiver_claims.extend(claims)

    def add_trades(self, trades: Iterable[Trade]) -> None:
        self._trades.extend(trades)

    def add_lineup_snapshots(self, snapshots: Iterable[LineupSnapshot]) -> None:
        self._lineup_snapshots.extend(snapshots)

    def add_matchups(self, matchups: Iterable[Matchup]) -> None:
        self._matchups.extend(matchups)

    # =========================================================================
    # READ CONTRACT
    # =========================================================================

    async def opinion_events(self, user_id, sport=None, player_id=None, since=None, until=None):
        self.calls["opinion_events"] += 1
        rows = [
            e for e in self._opinion_events
            if e.user_id == user_id
            and (sport is None or e.sport == sport)
            and (player_id is None or e.player_id == player_id)
            and _in_range(e.created_at, since, until)
        ]
        return sorted(rows, key=lambda e: e.created_at)

    async def board_entries(self, user_id, sport=None, player_id=None, season=None):
        self.calls["board_entries"] += 1
        rows = [
            e for e in self._board_entries
            if e.user_id == user_id
            and (sport is None or e.sport == sport)
            and (player_id is None or e.player_id == player_id)
            and (season is None or e.season == season)
        ]
        return sorted(rows, key=lambda e: (e.board_updated_at, e.board_id, e.rank))

    async def board_comparisons(self, user_id, sport, draft_id=None):
        self.calls["board_comparisons"] += 1
        rows = [
            c for c in self._board_comparisons
            if c.user_id == user_id
            and c.sport == sport
            and (draft_id is None or c.draft_id == draft_id)
        ]
        return sorted(rows, key=lambda c: c.created_at)

    async def watch_list(self, user_id, player_id=None):
        self.calls["watch_list"] += 1
        rows = [
            w for w in self._watch_list
            if w.user_id == user_id and (player_id is None or w.player_id == player_id)
        ]
        return sorted(rows, key=lambda w: w.created_at)

    async def captures(self, user_id, since=None, until=None, player_id=None):
        self.calls["captures"] += 1
        rows = [
            c for c in self._captures
            if c.user_id == user_id
            and (player_id is None or player_id in c.players)
            and _in_range(c.created_at, since, until)
        ]
        return sorted(rows, key=lambda c: c.created_at)

    async def predictions(self, user_id, sport=None, since=None, until=None, player_id=None):
        self.calls["predictions"] += 1
        rows = [
            p for p in self._predictions
            if p.user_id == user_id
            and (sport is None or p.sport == sport)
            and (player_id is None or p.subject_player_id == player_id)
            and _in_range(p.created_at, since, until)
        ]
        return sorted(rows, key=lambda p: p.created_at)

    async def draft_picks(self, user_id, sport=None, since=None, until=None, player_id=None):
        self.calls["draft_picks"] += 1
        rows = []
        for draft in self._drafts.values():
            if sport is not None and draft.sport != sport:
                continue
            for pick in draft.picks:
                if pick.user_id != user_id:
                    continue
                if player_id is not None and pick.player_id != player_id:
                    continue
                if not _in_range(pick.picked_at, since, until):
                    continue
                rows.append(pick)
        # Undated picks last, as NULLS LAST does in SQL
        return sorted(
            rows,
            key=lambda p: (p.picked_at is None, p.picked_at or datetime.min, p.draft_id, p.pick_number),
        )

    async def draft(self, draft_id):
        self.calls["draft"] += 1
        return self._drafts.get(draft_id)

    async def roster_events(self, user_id, sport, year):
        self.calls["roster_events"] += 1
        start, end = year_bounds(year)
        claims = [
            c for c in self._waiver_claims
            if c.user_id == user_id and c.sport == sport and _in_range(c.created_at, start, end)
        ]
        trades = [
            t for t in self._trades
            if user_id in (t.initiator_id, t.receiver_id)
            and t.sport == sport
            and _in_range(t.created_at, start, end)
        ]
        lineups = [
            s for s in self._lineup_snapshots
            if s.user_id == user_id and s.sport == sport and _in_range(s.created_at, start, end)
        ]
        return RosterEvents(
            waiver_claims=sorted(claims, key=lambda c: c.created_at),
            trades=sorted(trades, key=lambda t: t.created_at),
            lineup_snapshots=sorted(lineups, key=lambda s: s.created_at),
        )

    async def matchups(self, user_lo, user_hi, sport=None):
        self.calls["matchups"] += 1
        pair = {user_lo, user_hi}
        rows = [
            m for m in self._matchups
            if {m.home_user_id, m.away_user_id} == pair
            and (sport is None or m.sport == sport)
        ]
        return sorted(rows, key=lambda m: m.played_at)
