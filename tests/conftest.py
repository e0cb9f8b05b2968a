from __future__ import annotations

import os
import sys
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest


def pytest_configure():
    # Ensure project root is on sys.path for absolute imports like 'linkd.schemas'
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    # Set test environment knobs before linkd reads its settings
    os.environ["REASONER"] = "rules"
    os.environ["SEARCH_ENGINES"] = "duckduckgo"
    os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="linkd-logs-"))


@pytest.fixture
def settings_env(monkeypatch):
    """Override environment-backed settings for one test."""
    from linkd.config import get_settings

    def apply(**values: Any):
        for key, value in values.items():
            monkeypatch.setenv(key, str(value))
        get_settings.cache_clear()
        return get_settings()

    yield apply
    get_settings.cache_clear()


def result(title: str, snippet: str, url: str) -> Dict[str, Any]:
    return {"title": title, "snippet": snippet, "url": url, "source_engine": "duckduckgo"}


JANE = result(
    "Jane Doe - Technical Recruiter - Acme Corp | LinkedIn",
    "Jane Doe, Technical Recruiter, Acme Corp. San Francisco Bay Area.",
    "https://www.linkedin.com/in/janedoe",
)
JANE_TEAM_PAGE = result(
    "Acme Corp Careers - Meet the Team",
    "Jane Doe, Technical Recruiter at Acme Corp, shares tips for applicants.",
    "https://acme.com/careers/team",
)
JOHN = result(
    "John Smith - Talent Acquisition Partner - Acme Corp | LinkedIn",
    "John Smith, Talent Acquisition Partner, Acme Corp. New York.",
    "https://www.linkedin.com/in/johnsmith",
)
UNRELATED = result(
    "Acme Corp reports record quarterly earnings",
    "Shares of Acme Corp rose 5% on Tuesday.",
    "https://news.example.com/acme-earnings",
)
APEX_IDENTITY = [
    result("Apex Systems | IT Staffing", "Apex Systems is an IT staffing firm.", "https://www.apexsystems.com/"),
    result(
        "Apex Logistics - Freight Forwarding",
        "Apex Logistics International provides freight services.",
        "https://apexlogistics.com/about",
    ),
]
STRIPE_IDENTITY = [
    result("Stripe | Financial Infrastructure", "Stripe powers online payments.", "https://stripe.com/"),
    result("Stripe Press | Ideas for progress", "Stripe Press publishes books.", "https://press.stripe.dev/"),
    result("Stripe Docs", "Stripe API reference.", "https://docs.stripe.com/api"),
]


class FakeTools:
    """Scriptable stand-ins for the four tools, recording every call."""

    def __init__(
        self,
        profile: Optional[Dict[str, Any]] = None,
        results: Optional[List[Dict[str, Any]]] = None,
        identity_results: Optional[List[Dict[str, Any]]] = None,
        queries: Optional[List[str]] = None,
        emails: Optional[Dict[str, Any]] = None,
        profile_error: Optional[Exception] = None,
        planner_error: Optional[Exception] = None,
        on_user_info: Optional[Callable[[], None]] = None,
    ) -> None:
        self.profile = profile or {}
        self.results = results or []
        self.identity_results = identity_results or []
        self.queries = queries or ["people at the company"]
        self.emails = emails or {}
        self.profile_error = profile_error
        self.planner_error = planner_error
        self.on_user_info = on_user_info
        self.calls: List[tuple] = []

    def names(self) -> List[str]:
        return [call[0] for call in self.calls]

    def user_info(self, identity):
        self.calls.append(("get_user_info", identity))
        if self.on_user_info:
            self.on_user_info()
        if self.profile_error:
            raise self.profile_error
        return self.profile

    def planner(self, goal, context):
        self.calls.append(("generate_search_queries", goal))
        if self.planner_error:
            raise self.planner_error
        return {"queries": list(self.queries)}

    def search(self, query):
        self.calls.append(("web_search", query))
        if "official site" in query:
            return list(self.identity_results)
        return list(self.results)

    def email(self, person, domain=None):
        from linkd.schemas import EmailResult

        self.calls.append(("find_and_verify_email", person.name))
        value = self.emails.get(person.name)
        if isinstance(value, Exception):
            raise value
        if isinstance(value, float):
            time.sleep(value)
            value = None
        if value is None:
            return EmailResult.not_found(person)
        return EmailResult(name=person.name, role=person.role, company=person.company,
                           email=value, email_source="search")

    def toolbox(self):
        from linkd.tools.toolbox import Toolbox

        return Toolbox(user_info=self.user_info, query_planner=self.planner,
                       search=self.search, email_finder=self.email)


@pytest.fixture
def rule_capabilities():
    from linkd.agents.capabilities import (
        Capabilities,
        RuleCompanyResolver,
        RuleIntentClassifier,
        RulePeopleExtractor,
    )

    return Capabilities(RuleIntentClassifier(), RuleCompanyResolver(), RulePeopleExtractor())
