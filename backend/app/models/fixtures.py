from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.utils import from_timestamp, to_iso_utc


class EntityKind(str, Enum):
    player = "player"
    team = "team"


class RawSelection(BaseModel):
    """One selection as extracted from the slip image, before enrichment."""
    model_config = ConfigDict(frozen=True)

    match_text: str
    tournament_text: Optional[str] = None
    start_time_text: Optional[str] = None         # Literal slip text, e.g. "Hoy 19:00"
    start_time_iso: Optional[str] = None          # Only when the slip printed an absolute date
    market: str
    pick: str
    odds: float
    bookmaker_text: Optional[str] = None


class EntityCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: EntityKind
    id: str                                       # Opaque external id
    display_name: str = ""


class FixtureEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    home_name: str = ""
    away_name: str = ""
    tournament_name: str = ""
    season_name: Optional[str] = None
    start_timestamp: Optional[int] = None         # Epoch seconds

    @classmethod
    def from_payload(cls, event: dict[str, Any]) -> "FixtureEvent":
        """Build from a fixture-service event dict; missing keys become blanks."""
        def _name(key: str) -> str:
            node = event.get(key)
            if isinstance(node, dict):
                return str(node.get("name") or "")
            return ""

        raw_ts = event.get("startTimestamp")
        try:
            start_ts = int(raw_ts) if raw_ts is not None else None
        except (TypeError, ValueError):
            start_ts = None

        return cls(
            home_name=_name("homeTeam"),
            away_name=_name("awayTeam"),
            tournament_name=_name("tournament"),
            season_name=_name("season") or None,
            start_timestamp=start_ts,
        )

    @property
    def start_iso(self) -> Optional[str]:
        if not self.start_timestamp:
            return None
        return to_iso_utc(from_timestamp(self.start_timestamp))


class ResolutionResult(BaseModel):
    """Resolver output. Null fields mean "not found", never a guess."""
    tournament: Optional[str] = None
    start_iso: Optional[str] = None               # UTC, second precision, Z suffix
    tz: Optional[str] = None
    confidence: Optional[float] = None
    sources: List[str] = Field(default_factory=list)
    strategy: Optional[str] = None                # combined | cross_reference | verified

    @classmethod
    def empty(cls) -> "ResolutionResult":
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.tournament is None and self.start_iso is None


class EnrichedSelection(BaseModel):
    """A selection with tournament/kickoff filled in where they could be resolved."""
    match: str
    tournament: Optional[str] = None
    start_time_utc: Optional[str] = None
    start_time_text: Optional[str] = None
    market: str
    pick: str
    odds: float
    bookmaker: Optional[str] = None
    resolution_strategy: Optional[str] = None     # Set when the resolver filled a field
