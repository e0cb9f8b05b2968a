"""
User profile lookup for linkd.

The profile store is owned by the identity provider; linkd only reads the
requester's declared field, location and interests from it.
"""

from typing import Any, Dict, Optional, Protocol

import requests

from linkd.config import get_settings
from linkd.errors import ContextUnavailable
from linkd.schemas import UserContext, validate_model
from linkd.utils.logger import logger


class ProfileStore(Protocol):
    def fetch(self, user_identity: Any) -> Dict[str, Any]:
        ...


class InMemoryProfileStore:
    """Profiles keyed by user identity."""

    def __init__(self, profiles: Optional[Dict[Any, Dict[str, Any]]] = None) -> None:
        self.profiles: Dict[Any, Dict[str, Any]] = dict(profiles or {})

    def put(self, user_identity: Any, profile: Dict[str, Any]) -> None:
        self.profiles[user_identity] = profile

    def fetch(self, user_identity: Any) -> Dict[str, Any]:
        return self.profiles.get(user_identity, {})


class HttpProfileStore:
    """Reads ``GET {base_url}/profile`` with the identity as bearer token."""

    def __init__(self, base_url: str, timeout: Optional[float] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or get_settings().tool_timeout_seconds
        self.session = requests.Session()

    def fetch(self, user_identity: Any) -> Dict[str, Any]:
        try:
            response = self.session.get(
                f"{self.base_url}/profile",
                headers={"Authorization": f"Bearer {user_identity}"},
                timeout=self.timeout,
            )
            if response.status_code == 404:
                return {}
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise ContextUnavailable(f"profile store unreachable: {exc}") from exc
        except ValueError as exc:
            raise ContextUnavailable(f"profile store returned invalid JSON: {exc}") from exc

        # The store wraps the profile as {"profile": {...}}
        if isinstance(payload, dict) and isinstance(payload.get("profile"), dict):
            payload = payload["profile"]
        return payload if isinstance(payload, dict) else {}


def default_profile_store() -> ProfileStore:
    url = get_settings().profile_api_url
    if url:
        return HttpProfileStore(url)
    return InMemoryProfileStore()


def _as_context(profile: Dict[str, Any]) -> UserContext:
    interests = profile.get("interests") or []
    if isinstance(interests, str):
        interests = [part.strip() for part in interests.split(",") if part.strip()]
    return validate_model(UserContext, {
        "name": profile.get("name") or None,
        "field": profile.get("field") or profile.get("program") or None,
        "location": profile.get("location") or None,
        "interests": list(interests),
    }, "get_user_info")


def get_user_info(user_identity: Any, store: Optional[ProfileStore] = None) -> UserContext:
    """Return the requester's declared context.

    Raises:
        ContextUnavailable: The profile store failed.
    """
    store = store or default_profile_store()
    try:
        profile = store.fetch(user_identity)
    except ContextUnavailable:
        raise
    except Exception as exc:  # store implementations are pluggable
        raise ContextUnavailable(str(exc)) from exc

    context = _as_context(profile or {})
    logger.info(
        "User context loaded – field=%s location=%s interests=%d",
        context.field, context.location, len(context.interests),
    )
    return context
