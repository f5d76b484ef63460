"""
Intelligence Service
====================

Downstream facade over the pipeline:

    cache → assembler (profile graph) → detectors (concurrent) → synthesizer

Consumers only talk to this class; they never see graphs for profile
requests and never write to the cache directly.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from decision_intel.cache import CacheState, ProfileCache, ProfileRepository, SqlProfileRepository
from decision_intel.clock import utcnow
from decision_intel.detectors import PROFILE_DETECTORS, detect_head_to_head
from decision_intel.graph import GraphAssembler
from decision_intel.schemas import HeadToHeadRecord, UserIntelligenceProfile
from decision_intel.store import EventStore, SqlEventStore
from decision_intel.synthesizer import synthesize

logger = logging.getLogger(__name__)


class IntelligenceService:
    """Profile, graph and head-to-head queries over one event store."""

    def __init__(
        self,
        store: EventStore,
        repository: Optional[ProfileRepository] = None,
        ttl_days: Optional[int] = None,
        read_timeout: Optional[float] = None,
        position_classes: Optional[Dict[str, List[str]]] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.clock = clock
        self.assembler = GraphAssembler(
            store,
            read_timeout=read_timeout,
            position_classes=position_classes,
            clock=clock,
        )
        self.cache = ProfileCache(
            self.build_profile,
            repository=repository,
            ttl_days=ttl_days,
            clock=clock,
        )

    # =========================================================================
    # PROFILES
    # =========================================================================

    async def build_profile(self, user_id: str, sport: str, season: Optional[int] = None) -> UserIntelligenceProfile:
        """Assemble, detect and synthesize without touching the cache."""
        graph = await self.assembler.profile_graph(user_id, sport, season=season)

        results = await asyncio.gather(
            *(asyncio.to_thread(detect, graph) for detect in PROFILE_DETECTORS.values())
        )
        patterns = dict(zip(PROFILE_DETECTORS, results))

        profile = synthesize(
            patterns["draft"],
            patterns["prediction"],
            patterns["roster"],
            patterns["capture"],
            user_id=user_id,
            sport=sport,
            generated_at=self.clock(),
        )
        logger.debug(
            "Built profile user=%s sport=%s: %d strengths, %d weaknesses",
            user_id, sport, len(profile.strengths), len(profile.weaknesses),
        )
        return profile

    async def get_profile(self, user_id: str, sport: str) -> UserIntelligenceProfile:
        return await self.cache.get(user_id, sport)

    async def regenerate_profile(self, user_id: str, sport: str) -> UserIntelligenceProfile:
        return await self.cache.regenerate(user_id, sport)

    async def invalidate_profile(self, user_id: str, sport: str) -> bool:
        return await self.cache.invalidate(user_id, sport)

    async def get_stale_profile(self, user_id: str, sport: str) -> Optional[UserIntelligenceProfile]:
        """Last stored profile regardless of expiry, for serving while upstream is down."""
        entry = await self.cache.peek(user_id, sport)
        return entry.profile if entry is not None else None

    async def profile_state(self, user_id: str, sport: str) -> CacheState:
        return await self.cache.state(user_id, sport)

    # =========================================================================
    # GRAPHS
    # =========================================================================

    async def build_graph(self, subject_kind: str, subject_key, scope=None):
        return await self.assembler.build_graph(subject_kind, subject_key, scope)

    async def head_to_head(self, user_id: str, opponent_id: str, sport: Optional[str] = None) -> HeadToHeadRecord:
        graph = await self.assembler.pair_graph(user_id, opponent_id, sport=sport)
        return detect_head_to_head(graph)


def create_service(session_factory: Optional[async_sessionmaker[AsyncSession]] = None) -> IntelligenceService:
    """Service over the configured database (SQL event store and profile table)."""
    if session_factory is None:
        from decision_intel.database import get_session_factory
        session_factory = get_session_factory()
    return IntelligenceService(
        SqlEventStore(session_factory),
        repository=SqlProfileRepository(session_factory),
    )
