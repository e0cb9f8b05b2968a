"""
Email resolution for people presented on an earlier turn, or for one person
the user named.

Only reachable from a confirmed turn or an explicit named-person request.
Each person is looked up exactly once, concurrently; one failed or timed-out
lookup yields ``emailSource = none`` for that person and never fails the batch.
"""

from typing import Any, Dict, List

from linkd.config import get_settings
from linkd.schemas import EmailResult, Person, SearchResponse
from linkd.tools.toolbox import Toolbox
from linkd.utils.logger import logger
from linkd.utils.pool import map_with_timeout


def _emails_message(emails: List[EmailResult]) -> str:
    found = sum(1 for e in emails if e.email is not None)
    total = len(emails)
    noun = "person" if total == 1 else "people"
    if found == 0:
        if total == 1:
            return "I couldn't find a verified email for this person."
        return "I couldn't find verified emails for these people."
    if found == total:
        return f"Found emails for all {total} {noun}." if total > 1 else "Found the email."
    return f"Found emails for {found} of {total} {noun}."


def run_email_resolver(state: Dict[str, Any], toolbox: Toolbox) -> Dict[str, Any]:
    """RESOLVE_EMAILS node.

    Args:
        state: AgentState with 'pending_people' and optional 'company_domain'.
        toolbox: Tool adapters.

    Returns:
        Updated state with 'emails' and an ``emails_found`` response.
    """
    settings = get_settings()
    people: List[Person] = state.get("pending_people") or []
    trace = state.get("trace", []) + ["RESOLVE_EMAILS"]

    if not people:
        logger.error("RESOLVE_EMAILS reached with nobody pending")
        return {**state, "trace": trace, "error": "nothing_pending"}

    domain = state.get("company_domain")
    outcomes = map_with_timeout(
        lambda person: toolbox.find_and_verify_email(person, domain),
        people,
        max_workers=settings.email_concurrency,
        timeout=settings.tool_timeout_seconds,
    )

    emails: List[EmailResult] = []
    for outcome in outcomes:
        if outcome.ok:
            emails.append(outcome.value)
        else:
            logger.warning("Email lookup for %s failed: %s", outcome.item.name, outcome.error)
            emails.append(EmailResult.not_found(outcome.item))

    logger.info("Resolved %d / %d emails", sum(1 for e in emails if e.email), len(emails))
    return {
        **state,
        "trace": trace,
        "emails": emails,
        "response": SearchResponse(status="emails_found", message=_emails_message(emails), emails=emails),
    }
