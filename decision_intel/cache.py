"""
Profile Cache
=============

Time-boxed memoization of UserIntelligenceProfile, keyed by (user_id, sport).

Per-key states:
- MISSING:    no entry stored
- FRESH:      entry whose expires_at is in the future, served verbatim
- EXPIRED:    entry past expiry (or invalidated), kept for serve-stale
- REBUILDING: a rebuild for the key is in flight

At most one rebuild per key runs at a time: concurrent callers queue on the
key's asyncio.Lock and re-check freshness once they get it, so they reuse
the result of the rebuild they waited on. A failed rebuild leaves the
previous entry untouched and propagates the error. An invalidation that
arrives while a rebuild is in flight marks that rebuild's result as already
expired, since its reads predate the invalidation. The guard is
process-local; locks are dropped once no caller holds or waits on them.
"""

import asyncio
import enum
import logging
import weakref
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, Optional, Set, Tuple

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from decision_intel.clock import utcnow
from decision_intel.config import settings
from decision_intel.models import UserIntelligenceProfileRow
from decision_intel.schemas import UserIntelligenceProfile

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str]
ProfileBuilder = Callable[[str, str], Awaitable[UserIntelligenceProfile]]


class CacheState(str, enum.Enum):
    MISSING = "MISSING"
    FRESH = "FRESH"
    EXPIRED = "EXPIRED"
    REBUILDING = "REBUILDING"


@dataclass(frozen=True)
class CachedProfile:
    profile: UserIntelligenceProfile
    generated_at: datetime
    expires_at: datetime

    def is_fresh(self, now: datetime) -> bool:
        return self.expires_at > now


# =============================================================================
# REPOSITORIES
# =============================================================================

class ProfileRepository(ABC):
    """Persistence for cached profiles, one entry per (user_id, sport)."""

    @abstractmethod
    async def load(self, user_id: str, sport: str) -> Optional[CachedProfile]:
        pass

    @abstractmethod
    async def save(self, entry: CachedProfile) -> None:
        """Overwrite the entry for the profile's (user_id, sport) wholesale."""
        pass

    @abstractmethod
    async def expire(self, user_id: str, sport: str, at: datetime) -> bool:
        """Move an entry's expiry to `at`. Returns False when there is no entry."""
        pass


class InMemoryProfileRepository(ProfileRepository):

    def __init__(self):
        self._entries: Dict[CacheKey, CachedProfile] = {}

    async def load(self, user_id, sport):
        return self._entries.get((user_id, sport))

    async def save(self, entry):
        self._entries[(entry.profile.user_id, entry.profile.sport)] = entry

    async def expire(self, user_id, sport, at):
        entry = self._entries.get((user_id, sport))
        if entry is None:
            return False
        self._entries[(user_id, sport)] = CachedProfile(entry.profile, entry.generated_at, at)
        return True


class SqlProfileRepository(ProfileRepository):
    """Stores profiles in user_intelligence_profiles as JSON snapshots."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @staticmethod
    def _key_filter(user_id: str, sport: str):
        return and_(
            UserIntelligenceProfileRow.user_id == user_id,
            UserIntelligenceProfileRow.sport == sport,
        )

    async def load(self, user_id, sport):
        stmt = select(UserIntelligenceProfileRow).where(self._key_filter(user_id, sport))
        async with self._session_factory() as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return CachedProfile(
            profile=UserIntelligenceProfile.model_validate(row.profile_data),
            generated_at=row.generated_at,
            expires_at=row.expires_at,
        )

    async def save(self, entry):
        profile = entry.profile
        data = profile.model_dump(mode="json")
        stmt = select(UserIntelligenceProfileRow).where(self._key_filter(profile.user_id, profile.sport))

        async with self._session_factory() as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            if row is None:
                row = UserIntelligenceProfileRow(user_id=profile.user_id, sport=profile.sport)
                session.add(row)
            row.profile_data = data
            row.data_confidence = profile.data_confidence.value
            row.generated_at = entry.generated_at
            row.expires_at = entry.expires_at
            await session.commit()

    async def expire(self, user_id, sport, at):
        stmt = (
            update(UserIntelligenceProfileRow)
            .where(self._key_filter(user_id, sport))
            .values(expires_at=at)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
        return result.rowcount > 0


# =============================================================================
# CACHE
# =============================================================================

class ProfileCache:
    """Read-through profile cache with a per-key rebuild guard."""

    def __init__(
        self,
        builder: ProfileBuilder,
        repository: Optional[ProfileRepository] = None,
        ttl_days: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.builder = builder
        self.repository = repository or InMemoryProfileRepository()
        self.ttl = timedelta(days=ttl_days if ttl_days is not None else settings.profile_ttl_days)
        self.clock = clock
        # Entries vanish once no caller holds or awaits the lock
        self._locks: Dict[CacheKey, asyncio.Lock] = weakref.WeakValueDictionary()
        self._rebuilding: Set[CacheKey] = set()
        self._invalidated: Set[CacheKey] = set()

    def _lock_for(self, key: CacheKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    async def get(self, user_id: str, sport: str) -> UserIntelligenceProfile:
        """Fresh cached profile, or the result of exactly one rebuild."""
        entry = await self.repository.load(user_id, sport)
        if entry is not None and entry.is_fresh(self.clock()):
            return entry.profile

        async with self._lock_for((user_id, sport)):
            # Another caller may have rebuilt while we waited
            entry = await self.repository.load(user_id, sport)
            if entry is not None and entry.is_fresh(self.clock()):
                return entry.profile
            return await self._rebuild(user_id, sport)

    async def regenerate(self, user_id: str, sport: str) -> UserIntelligenceProfile:
        """Rebuild unconditionally, after any rebuild already in flight."""
        async with self._lock_for((user_id, sport)):
            return await self._rebuild(user_id, sport)

    async def invalidate(self, user_id: str, sport: str) -> bool:
        """Expire the entry in place; it stays available to peek().

        A rebuild already in flight for the key stores its result expired.
        """
        key = (user_id, sport)
        in_flight = key in self._rebuilding
        if in_flight:
            self._invalidated.add(key)
        expired = await self.repository.expire(user_id, sport, self.clock())
        expired = expired or in_flight
        if expired:
            logger.info("Invalidated profile for user=%s sport=%s", user_id, sport)
        return expired

    async def peek(self, user_id: str, sport: str) -> Optional[CachedProfile]:
        """Stored entry regardless of freshness, without rebuilding."""
        return await self.repository.load(user_id, sport)

    async def state(self, user_id: str, sport: str) -> CacheState:
        if (user_id, sport) in self._rebuilding:
            return CacheState.REBUILDING
        entry = await self.repository.load(user_id, sport)
        if entry is None:
            return CacheState.MISSING
        if entry.is_fresh(self.clock()):
            return CacheState.FRESH
        return CacheState.EXPIRED

    async def _rebuild(self, user_id: str, sport: str) -> UserIntelligenceProfile:
        key = (user_id, sport)
        self._rebuilding.add(key)
        self._invalidated.discard(key)
        logger.info("Rebuilding profile for user=%s sport=%s", user_id, sport)
        try:
            profile = await self.builder(user_id, sport)
            entry = CachedProfile(
                profile=profile,
                generated_at=profile.generated_at,
                expires_at=profile.generated_at + self.ttl,
            )
            await self.repository.save(entry)
            if key in self._invalidated:
                # Reads predate the invalidation, including one racing the save
                logger.info("Profile for user=%s sport=%s invalidated during rebuild", user_id, sport)
                await self.repository.expire(user_id, sport, self.clock())
        except Exception as e:
            logger.warning("Profile rebuild failed for user=%s sport=%s: %s", user_id, sport, e)
            raise
        finally:
            self._rebuilding.discard(key)
            self._invalidated.discard(key)

        logger.info(
            "Cached profile for user=%s sport=%s (confidence=%s, expires %s)",
            user_id, sport, profile.data_confidence.value, entry.expires_at.isoformat(),
        )
        return profile
