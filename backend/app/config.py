"""
backend/app/config.py

Purpose:
    Central settings loading for the slip parsing backend and the fixture
    resolution engine.

Dependencies:
    - pydantic-settings
    - pathlib
"""

from pathlib import Path

from pydantic_settings import BaseSettings

# Prefer backend/.env, fallback to project-root .env.
_BACKEND_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"
_ROOT_ENV_FILE = Path(__file__).resolve().parent.parent.parent / ".env"


class Settings(BaseSettings):
    BACKEND_CORS_ORIGINS: str = "*"

    # Timezone used to interpret relative slip dates ("Hoy 19:00")
    BASE_TZ: str = "Europe/Madrid"

    # Verbose resolution logging (ENRICH_DEBUG=true)
    ENRICH_DEBUG: bool = False

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = 6.0
    HTTP_MAX_RETRIES: int = 0  # 0 = single attempt per call
    HTTP_RETRY_BASE_DELAY_SECONDS: float = 0.5
    HTTP_RETRY_MAX_DELAY_SECONDS: float = 5.0
    CIRCUIT_FAILURE_THRESHOLD: int = 5
    CIRCUIT_RECOVERY_SECONDS: float = 60.0
    HTTP_USER_AGENT: str = "Mozilla/5.0"
    HTTP_ACCEPT_LANGUAGE: str = "es-ES,es;q=0.9"

    # Sports data source (search + fixtures)
    SOFASCORE_BASE_URL: str = "https://api.sofascore.com/api/v1"
    DEFAULT_SPORT: str = "tennis"
    SEARCH_MAX_CANDIDATES: int = 5
    SEARCH_GENERIC_PER_KIND: int = 3
    INCLUDE_RECENT_FIXTURES: bool = True

    # Resolution pipeline
    RESOLUTION_STRATEGIES: str = "combined,cross_reference,verified"
    COMBINED_QUERY_LIMIT: int = 6
    COMBINED_CANDIDATE_LIMIT: int = 3
    CROSS_REFERENCE_CANDIDATE_LIMIT: int = 3
    RESOLUTION_CACHE_TTL_SECONDS: int = 300  # 5 minutes
    RESOLUTION_CACHE_MAX_ENTRIES: int = 5000
    RESOLUTION_DEADLINE_SECONDS: float = 30.0

    # Plausibility window
    FIXTURE_PAST_GRACE_MINUTES: int = 10
    FIXTURE_HORIZON_DAYS: int = 3

    # Verified fallback (LLM with browsing, allow-listed domains only)
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    VERIFIER_MODEL: str = "gpt-4o-mini"
    VERIFIER_TIMEOUT_SECONDS: float = 15.0

    model_config = {
        "env_file": (str(_BACKEND_ENV_FILE), str(_ROOT_ENV_FILE)),
        "extra": "ignore",
    }


settings = Settings()
