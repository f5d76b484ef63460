"""
Event Store Read Contract
=========================

The pipeline only ever reads from the event store. Every read is scoped by
user (and sport / player / time range where the family supports it) so that
range and equality filtering happens in the store, and the core only groups
and aggregates.

Implementations must:
1. Return lists ordered ascending by each family's timestamp
2. Treat since/until as an inclusive range
3. Raise on failure (the assembler converts failures to UpstreamUnavailable)
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from decision_intel.schemas import (
    BoardComparison,
    BoardEntry,
    Capture,
    Draft,
    DraftPick,
    Matchup,
    OpinionEvent,
    Prediction,
    RosterEvents,
    WatchListEntry,
)


class EventStore(ABC):
    """Read-only view over the seven event families."""

    @abstractmethod
    async def opinion_events(
        self,
        user_id: str,
        sport: Optional[str] = None,
        player_id: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[OpinionEvent]:
        ...

    @abstractmethod
    async def board_entries(
        self,
        user_id: str,
        sport: Optional[str] = None,
        player_id: Optional[str] = None,
        season: Optional[int] = None,
    ) -> List[BoardEntry]:
        ...

    @abstractmethod
    async def board_comparisons(
        self,
        user_id: str,
        sport: str,
        draft_id: Optional[str] = None,
    ) -> List[BoardComparison]:
        ...

    @abstractmethod
    async def watch_list(
        self,
        user_id: str,
        player_id: Optional[str] = None,
    ) -> List[WatchListEntry]:
        ...

    @abstractmethod
    async def captures(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        player_id: Optional[str] = None,
    ) -> List[Capture]:
        ...

    @abstractmethod
    async def predictions(
        self,
        user_id: str,
        sport: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        player_id: Optional[str] = None,
    ) -> List[Prediction]:
        ...

    @abstractmethod
    async def draft_picks(
        self,
        user_id: str,
        sport: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        player_id: Optional[str] = None,
    ) -> List[DraftPick]:
        ...

    @abstractmethod
    async def draft(self, draft_id: str) -> Optional[Draft]:
        """A draft with all of its picks ordered by pick number, or None."""
        ...

    @abstractmethod
    async def roster_events(self, user_id: str, sport: str, year: int) -> RosterEvents:
        """Waiver claims, trades (either side) and lineup snapshots created in year."""
        ...

    @abstractmethod
    async def matchups(
        self,
        user_lo: str,
        user_hi: str,
        sport: Optional[str] = None,
    ) -> List[Matchup]:
        """
        Season results between two users, in either home/away arrangement.

        Callers pass the pair already in canonical order (see pairs.canonical_pair).
        """
        ...
