"""
Search tools for linkd.

SerpAPI (Google) and DuckDuckGo engines behind one ``web_search`` entry
point. Each engine is rate limited, swallows its own transport errors and
returns flat result dicts ready for ``SearchResult`` validation.
"""

import threading
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

import requests
from ddgs import DDGS

from linkd.config import get_settings
from linkd.utils.logger import logger

SERPAPI_URL = "https://serpapi.com/search"

# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------
_last_call_ts: Dict[str, float] = {"serpapi": 0.0, "duckduckgo": 0.0}
_rate_lock = threading.Lock()
_MIN_INTERVAL = 1.5  # seconds between requests to the same engine


def _rate_limit(engine: str) -> None:
    """Reserve the next slot for *engine* and sleep until it arrives."""
    with _rate_lock:
        now = time.time()
        slot = max(now, _last_call_ts.get(engine, 0.0) + _MIN_INTERVAL)
        _last_call_ts[engine] = slot
    if slot > now:
        time.sleep(slot - now)


def _to_results(
    items: Iterable[Dict[str, Any]],
    engine: str,
    url_key: str,
    snippet_key: str,
    limit: int,
) -> List[Dict[str, Any]]:
    results: List[Dict[str, Any]] = []
    for item in items:
        if len(results) >= limit:
            break
        results.append({
            "title": item.get("title", "") or "",
            "url": item.get(url_key, "") or "",
            "snippet": item.get(snippet_key, "") or "",
            "source_engine": engine,
        })
    return results


# ---------------------------------------------------------------------------
# Engines
# ---------------------------------------------------------------------------

def serpapi_search(query: str, num_results: int = 10, api_key: Optional[str] = None) -> List[Dict[str, Any]]:
    """Search Google via SerpAPI.

    Args:
        query: Search query string.
        num_results: Maximum number of results to return.
        api_key: SerpAPI key; read from settings when omitted.

    Returns:
        List of dicts with keys: title, url, snippet, source_engine.
    """
    settings = get_settings()
    api_key = api_key or settings.serpapi_api_key
    if not api_key:
        logger.error("SERPAPI_API_KEY / SERPAPI_KEY not set in environment")
        return []

    _rate_limit("serpapi")
    logger.info("SerpAPI search – query: %s", query)

    try:
        response = requests.get(
            SERPAPI_URL,
            params={"engine": "google", "q": query, "api_key": api_key, "num": num_results},
            timeout=settings.tool_timeout_seconds,
        )
        response.raise_for_status()
        organic = response.json().get("organic_results", [])
    except requests.RequestException as exc:
        logger.error("SerpAPI request failed: %s", exc)
        return []
    except ValueError as exc:
        logger.error("SerpAPI returned unreadable JSON: %s", exc)
        return []

    results = _to_results(organic, "serpapi", "link", "snippet", num_results)
    logger.info("SerpAPI returned %d results for: %s", len(results), query)
    return results


def duckduckgo_search(query: str, num_results: int = 10) -> List[Dict[str, Any]]:
    """Search via DuckDuckGo (``ddgs`` text search).

    Args:
        query: Search query string.
        num_results: Maximum number of results to return.

    Returns:
        List of dicts with keys: title, url, snippet, source_engine.
    """
    _rate_limit("duckduckgo")
    logger.info("DuckDuckGo search – query: %s", query)

    try:
        with DDGS() as ddgs:
            rows = list(ddgs.text(query, max_results=num_results))
    except Exception as exc:  # DDGS may raise various exceptions
        logger.error("DuckDuckGo search failed: %s", exc)
        return []

    results = _to_results(rows, "duckduckgo", "href", "body", num_results)
    logger.info("DuckDuckGo returned %d results for: %s", len(results), query)
    return results


ENGINES: Dict[str, Callable[..., List[Dict[str, Any]]]] = {
    "serpapi": serpapi_search,
    "duckduckgo": duckduckgo_search,
}


# ---------------------------------------------------------------------------
# Combined web search
# ---------------------------------------------------------------------------

def web_search(query: str) -> List[Dict[str, Any]]:
    """Run ``query`` on every configured engine and pool the results.

    Results are concatenated in engine order, not deduplicated; an empty
    list is a valid answer.
    """
    settings = get_settings()
    pooled: List[Dict[str, Any]] = []
    for engine in settings.search_engines:
        search = ENGINES.get(engine)
        if search is None:
            logger.warning("Unknown search engine %r ignored", engine)
            continue
        pooled.extend(search(query, num_results=settings.results_per_query))

    logger.info("web_search pooled %d results for: %s", len(pooled), query)
    return pooled
