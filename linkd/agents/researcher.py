"""
Researcher Agent for linkd.

Responsibilities:
- GATHER_CONTEXT: load the requester's profile, then check whether the
  target company name is ambiguous.
- PLAN_QUERIES: plan queries when the request is too vague to search directly.
- SEARCH: run the queries concurrently and pool the results.
"""

from typing import Any, Dict, List

from linkd import roles
from linkd.agents.capabilities import CompanyResolver
from linkd.config import get_settings
from linkd.errors import ContextUnavailable, LinkdError, ToolTimeout, ValidationFailure
from linkd.schemas import CompanyOption, SearchResult, SearchTarget, UserContext, validate_model
from linkd.tools.query_tools import build_queries
from linkd.tools.toolbox import Toolbox
from linkd.utils.logger import logger
from linkd.utils.pool import map_with_timeout


def _step(state: Dict[str, Any], name: str) -> List[str]:
    return state.get("trace", []) + [name]


# ---------------------------------------------------------------------------
# GATHER_CONTEXT
# ---------------------------------------------------------------------------

def _load_context(toolbox: Toolbox, user_identity: Any, timeout: float) -> UserContext:
    outcome = map_with_timeout(toolbox.get_user_info, [user_identity], max_workers=1, timeout=timeout)[0]
    if outcome.ok:
        return outcome.value
    if isinstance(outcome.error, (ContextUnavailable, ToolTimeout)):
        logger.warning("User context unavailable (%s) – continuing without it", outcome.error)
        return UserContext()
    raise outcome.error


def _identity_query(company: str) -> str:
    return f'"{company}" company official site'


def run_gather_context(state: Dict[str, Any], toolbox: Toolbox, resolver: CompanyResolver) -> Dict[str, Any]:
    """GATHER_CONTEXT node: user profile first, then company disambiguation.

    Args:
        state: Current AgentState dict.
        toolbox: Tool adapters.
        resolver: Company disambiguation capability.

    Returns:
        Updated state with 'context', 'company_options' and possibly 'company_domain'.
    """
    settings = get_settings()
    target: SearchTarget = state["target"]
    trace = _step(state, "GATHER_CONTEXT")

    try:
        context = _load_context(toolbox, state.get("user_identity"), settings.tool_timeout_seconds)
    except LinkdError as exc:
        logger.error("GATHER_CONTEXT failed: %s", exc)
        return {**state, "trace": trace, "error": exc.code}

    options: List[CompanyOption] = []
    company_domain = target.company_domain

    if company_domain is None:
        outcome = map_with_timeout(
            toolbox.web_search, [_identity_query(target.company)], max_workers=1,
            timeout=settings.tool_timeout_seconds,
        )[0]
        if isinstance(outcome.error, ValidationFailure):
            return {**state, "trace": trace, "context": context, "error": outcome.error.code}
        if not outcome.ok:
            logger.warning("Company identity search failed: %s", outcome.error)
        results: List[SearchResult] = outcome.value or []

        try:
            options = [
                validate_model(CompanyOption, option, "company_options")
                for option in resolver.resolve(target.company, results, context)
            ]
        except LinkdError as exc:
            logger.error("Company resolution failed: %s", exc)
            return {**state, "trace": trace, "context": context, "error": exc.code}

        if len(options) == 1:
            company_domain = options[0].domain
        elif len(options) >= 2:
            logger.info("Company %r is ambiguous: %d options", target.company, len(options))

    return {
        **state,
        "trace": trace,
        "context": context,
        "company_options": options if len(options) >= 2 else [],
        "company_domain": company_domain,
    }


def needs_planning(state: Dict[str, Any]) -> bool:
    """A vague or unrecognised role needs planned queries; a known role class does not."""
    target: SearchTarget = state["target"]
    return not roles.is_specific(target.role)


# ---------------------------------------------------------------------------
# PLAN_QUERIES
# ---------------------------------------------------------------------------

def run_plan_queries(state: Dict[str, Any], toolbox: Toolbox) -> Dict[str, Any]:
    """PLAN_QUERIES node: turn the request into search queries."""
    target: SearchTarget = state["target"]
    trace = _step(state, "PLAN_QUERIES")
    goal = target.goal or f"{target.role or 'people'} at {target.company}"
    if target.company.lower() not in goal.lower():
        goal = f"{goal} at {target.company}"

    try:
        query_set = toolbox.generate_search_queries(goal, state.get("context") or UserContext())
    except LinkdError as exc:
        logger.error("PLAN_QUERIES failed: %s", exc)
        return {**state, "trace": trace, "error": exc.code}

    logger.info("Planned %d queries (%s)", len(query_set.queries), query_set.reasoning or "no reasoning")
    return {**state, "trace": trace, "queries": query_set.queries}


# ---------------------------------------------------------------------------
# SEARCH
# ---------------------------------------------------------------------------

def run_search(state: Dict[str, Any], toolbox: Toolbox) -> Dict[str, Any]:
    """SEARCH node: run every query concurrently, then pool the results.

    A query that times out or fails contributes no results. Results are
    pooled in query order and not deduplicated.
    """
    settings = get_settings()
    target: SearchTarget = state["target"]
    trace = _step(state, "SEARCH")

    queries = list(state.get("queries") or [])
    if not queries:
        queries = build_queries(target, state.get("context"), limit=settings.max_queries)
    queries = queries[: settings.max_queries]

    outcomes = map_with_timeout(
        toolbox.web_search, queries,
        max_workers=settings.search_concurrency,
        timeout=settings.tool_timeout_seconds,
    )

    pooled: List[SearchResult] = []
    for outcome in outcomes:
        if isinstance(outcome.error, ValidationFailure):
            logger.error("web_search output invalid for %r: %s", outcome.item, outcome.error)
            return {**state, "trace": trace, "queries": queries, "error": outcome.error.code}
        if not outcome.ok:
            logger.warning("web_search for %r yielded nothing: %s", outcome.item, outcome.error)
            continue
        pooled.extend(outcome.value)

    logger.info("SEARCH pooled %d results from %d queries", len(pooled), len(queries))
    return {**state, "trace": trace, "queries": queries, "results": pooled}
