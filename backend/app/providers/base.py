from abc import ABC, abstractmethod
from typing import Optional

from app.models.fixtures import EntityCandidate, EntityKind, FixtureEvent


class BaseSportsDataProvider(ABC):
    """Abstract base class for sports data sources used by fixture resolution."""

    @abstractmethod
    async def search(self, query: str, sport_hint: Optional[str] = None) -> list[EntityCandidate]:
        """Search players/teams matching a free-text query.

        Returns at most a handful of candidates in the source's relevance
        order. Timeouts, non-2xx responses and undecodable payloads raise.
        """
        ...

    @abstractmethod
    async def upcoming_fixtures(self, entity_id: str, kind: EntityKind) -> list[FixtureEvent]:
        """Scheduled fixtures for an entity. Upstream failures yield []."""
        ...

    @abstractmethod
    async def recent_fixtures(self, entity_id: str, kind: EntityKind) -> list[FixtureEvent]:
        """Recently played fixtures for an entity. Upstream failures yield []."""
        ...

    async def aclose(self) -> None:
        return None
