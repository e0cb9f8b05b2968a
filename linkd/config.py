"""
Runtime settings for linkd.

All knobs come from the environment (optionally a ``.env`` file) and are
frozen into a ``Settings`` instance. Missing API keys never fail at import
time; the component that needs a key degrades, or raises when it is built.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

from linkd.errors import ReasonerUnavailable


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip().lower() for item in raw.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    # LLM
    groq_api_key: Optional[str]
    groq_model: str
    llm_temperature: float
    reasoner: str  # "groq" | "rules"

    # Search
    serpapi_api_key: Optional[str]
    search_engines: List[str]
    results_per_query: int
    max_queries: int
    search_concurrency: int

    # Email
    zerobounce_api_key: Optional[str]
    max_email_patterns: int
    email_concurrency: int

    # Profile store
    profile_api_url: Optional[str]

    # Conversation
    confirmation_ttl_turns: int
    max_people: int
    max_conversations: int

    # Timeouts / logging
    tool_timeout_seconds: float
    log_level: str
    log_dir: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv()
    groq_api_key = os.getenv("GROQ_API_KEY") or os.getenv("GROQ_API_KEY_1")
    reasoner = os.getenv("REASONER") or ("groq" if groq_api_key else "rules")
    reasoner = reasoner.strip().lower()

    return Settings(
        groq_api_key=groq_api_key,
        groq_model=os.getenv("GROQ_MODEL", "llama-3.1-8b-instant"),
        llm_temperature=float(os.getenv("LLM_TEMPERATURE", "0.2")),
        reasoner=reasoner,
        serpapi_api_key=os.getenv("SERPAPI_API_KEY") or os.getenv("SERPAPI_KEY"),
        search_engines=_env_list("SEARCH_ENGINES", "serpapi,duckduckgo"),
        results_per_query=int(os.getenv("RESULTS_PER_QUERY", "5")),
        max_queries=int(os.getenv("MAX_QUERIES", "6")),
        search_concurrency=int(os.getenv("SEARCH_CONCURRENCY", "4")),
        zerobounce_api_key=os.getenv("ZEROBOUNCE_API_KEY"),
        max_email_patterns=int(os.getenv("MAX_EMAIL_PATTERNS", "3")),
        email_concurrency=int(os.getenv("EMAIL_CONCURRENCY", "4")),
        profile_api_url=os.getenv("PROFILE_API_URL"),
        confirmation_ttl_turns=int(os.getenv("CONFIRMATION_TTL_TURNS", "3")),
        max_people=int(os.getenv("MAX_PEOPLE", "10")),
        max_conversations=int(os.getenv("MAX_CONVERSATIONS", "1000")),
        tool_timeout_seconds=float(os.getenv("TOOL_TIMEOUT_SECONDS", "30")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_dir=os.getenv("LOG_DIR", "logs"),
    )


def resolve_reasoner(settings: Optional[Settings] = None) -> str:
    """Return the configured reasoning backend once its requirements hold.

    Raises:
        ReasonerUnavailable: REASONER is unknown, or groq is chosen without a key.
    """
    settings = settings or get_settings()
    if settings.reasoner not in ("groq", "rules"):
        raise ReasonerUnavailable(f"REASONER must be 'groq' or 'rules', got {settings.reasoner!r}")
    if settings.reasoner == "groq" and not settings.groq_api_key:
        raise ReasonerUnavailable("GROQ_API_KEY required when REASONER=groq")
    return settings.reasoner
