"""
The four capability-typed tools handed to the people-search agent.

Each method calls the underlying adapter and validates its output against
the matching schema before returning, so the agent only ever sees
well-formed records. Swapping an adapter (tests, another provider) means
passing a different callable.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from linkd.errors import ContextUnavailable, LinkdError, PerPersonEmailFailure, QueryGenerationFailed
from linkd.schemas import (
    EmailResult,
    Person,
    QuerySet,
    SearchResult,
    UserContext,
    validate_model,
    validate_results,
)
from linkd.tools.email_tools import find_and_verify_email
from linkd.tools.query_tools import generate_search_queries
from linkd.tools.search_tools import web_search
from linkd.tools.user_info import get_user_info


@dataclass
class Toolbox:
    user_info: Callable[[Any], Any] = field(default=get_user_info)
    query_planner: Callable[[str, UserContext], Any] = field(default=generate_search_queries)
    search: Callable[[str], List[Dict[str, Any]]] = field(default=web_search)
    email_finder: Callable[..., Any] = field(default=find_and_verify_email)

    def get_user_info(self, user_identity: Any) -> UserContext:
        try:
            raw = self.user_info(user_identity)
        except LinkdError:
            raise
        except Exception as exc:  # profile stores are pluggable
            raise ContextUnavailable(str(exc)) from exc
        return validate_model(UserContext, raw, "get_user_info")

    def generate_search_queries(self, goal: str, context: UserContext) -> QuerySet:
        try:
            raw = self.query_planner(goal, context)
        except QueryGenerationFailed:
            raise
        except LinkdError as exc:
            raise QueryGenerationFailed(str(exc)) from exc
        return validate_model(QuerySet, raw, "generate_search_queries")

    def web_search(self, query: str) -> List[SearchResult]:
        return validate_results(self.search(query) or [], "web_search")

    def find_and_verify_email(self, person: Person, company_domain: Optional[str] = None) -> EmailResult:
        """Resolve one person's email.

        Raises:
            PerPersonEmailFailure: The lookup raised or returned a malformed record.
        """
        try:
            result = validate_model(EmailResult, self.email_finder(person, company_domain), "find_and_verify_email")
        except Exception as exc:  # any lookup error stays local to this person
            raise PerPersonEmailFailure(person.name, exc) from exc
        if result.name != person.name:
            raise PerPersonEmailFailure(person.name, ValueError(f"result is for {result.name!r}"))
        return result


def default_toolbox() -> Toolbox:
    return Toolbox()
