"""
Reporter Agent for linkd.

Responsibilities:
- PRESENT: summarise qualifying people as a ``people_found`` response, or
  ``cant_find`` when nobody qualifies.
- CLARIFY: offer company options when the target is ambiguous.
- FAIL: map an unrecoverable error to a short, non-technical ``cant_find``.

Messages never repeat names or emails, and never mention queries,
internal steps or error details.
"""

from typing import Any, Dict, List

from linkd import roles
from linkd.errors import LinkdError
from linkd.schemas import Person, SearchResponse, SearchTarget, validate_model
from linkd.utils.logger import logger

MIN_PEOPLE = 3
FAILURE_MESSAGE = "I couldn't complete that search right now. Please try again in a moment."


def _people_message(people: List[Person], target: SearchTarget) -> str:
    found = roles.describe(target.role, len(people))
    if len(people) < MIN_PEOPLE:
        return (
            f"Only found {found} at {target.company}. "
            f"Want me to broaden the search to {roles.related_role(target.role)} too? "
            "I can also look up their emails."
        )
    return f"Found {found} at {target.company}. Want me to find their emails?"


def _nobody_message(target: SearchTarget) -> str:
    label = roles.describe(target.role, 2).split(" ", 1)[1]
    return (
        f"I couldn't find any current {label} at {target.company}. "
        f"Want me to broaden the search to {roles.related_role(target.role)}?"
    )


def _respond(state: Dict[str, Any], trace: List[str], payload: Dict[str, Any]) -> Dict[str, Any]:
    try:
        response = validate_model(SearchResponse, payload, "search_response")
    except LinkdError as exc:
        logger.error("Response failed validation: %s", exc)
        return run_failure({**state, "trace": trace, "error": exc.code})
    return {**state, "trace": trace, "response": response}


def run_reporter(state: Dict[str, Any]) -> Dict[str, Any]:
    """PRESENT node: format the people found this turn.

    Args:
        state: Current AgentState dict.

    Returns:
        Updated state with 'response'.
    """
    target: SearchTarget = state["target"]
    people: List[Person] = state.get("people") or []
    trace = state.get("trace", []) + ["PRESENT"]

    if not people:
        logger.warning("Reporter: no qualifying people for %s", target.company)
        return _respond(state, trace, {"status": "cant_find", "message": _nobody_message(target)})

    logger.info("Reporter presenting %d people", len(people))
    return _respond(state, trace, {
        "status": "people_found",
        "message": _people_message(people, target),
        "people": people,
    })


def run_clarifier(state: Dict[str, Any]) -> Dict[str, Any]:
    """CLARIFY node: ask which of the matching companies the user means."""
    target: SearchTarget = state["target"]
    options = state.get("company_options") or []
    trace = state.get("trace", []) + ["CLARIFY"]
    logger.info("Asking user to pick between %d companies", len(options))
    return _respond(state, trace, {
        "status": "clarification_needed",
        "message": f"There's more than one company called {target.company}. Which one do you mean?",
        "companyOptions": options,
    })


def run_failure(state: Dict[str, Any]) -> Dict[str, Any]:
    """FAIL node: a generic ``cant_find``; the error code stays in the log."""
    logger.error("Turn failed with %s", state.get("error"))
    return {
        **state,
        "trace": state.get("trace", []) + ["FAIL"],
        "response": SearchResponse(status="cant_find", message=FAILURE_MESSAGE),
    }
