"""
Query generation for linkd.

Two ways to turn a request into search-engine-ready queries:

- ``build_queries`` expands a concrete target (company + role class) with
  title synonyms; no model call, used when the agent can search directly.
- ``generate_search_queries`` plans queries for vaguer requests through a
  pluggable ``QueryPlanner`` (Groq model or a rule fallback).
"""

from datetime import date, timedelta
from typing import List, Optional, Protocol

from linkd import roles
from linkd.config import get_settings, resolve_reasoner
from linkd.errors import LinkdError, QueryGenerationFailed
from linkd.schemas import QuerySet, SearchTarget, UserContext, validate_model
from linkd.utils.logger import logger


def _dedupe(queries: List[str]) -> List[str]:
    seen: set = set()
    unique: List[str] = []
    for q in queries:
        q_lower = q.lower()
        if q_lower not in seen:
            seen.add(q_lower)
            unique.append(q)
    return unique


def build_queries(
    target: SearchTarget,
    context: Optional[UserContext] = None,
    limit: Optional[int] = None,
) -> List[str]:
    """Generate a diverse set of queries for a concrete company + role.

    Location-qualified queries come first, using the requested location or
    else the requester's own; the location-free variants follow as the
    broader fallback.

    Args:
        target: Company, role and optional location.
        context: Requester profile from GATHER_CONTEXT.
        limit: Maximum number of queries to return.

    Returns:
        List of search query strings, most specific first.
    """
    variants = roles.query_terms(target.role) or ["team"]
    company = target.company
    location = target.location or (context.location if context else None)
    queries: List[str] = []

    if location:
        queries.extend(f'"{company}" {variant} {location}' for variant in variants)
    for variant in variants:
        queries.append(f'site:linkedin.com/in "{company}" {variant}')
        queries.append(f'"{company}" {variant}')
        queries.append(f"{variant} at {company}")

    unique = _dedupe(queries)
    if limit:
        unique = unique[:limit]
    logger.info("Built %d queries for company=%s role=%s location=%s", len(unique), company, target.role, location)
    return unique


# ---------------------------------------------------------------------------
# Planners
# ---------------------------------------------------------------------------

class QueryPlanner(Protocol):
    def plan(self, goal: str, context: UserContext) -> QuerySet:
        ...


class RuleQueryPlanner:
    """Template planner for when no language model is configured."""

    def plan(self, goal: str, context: UserContext) -> QuerySet:
        goal = goal.strip()
        if not goal:
            raise QueryGenerationFailed("empty goal")
        queries = [goal, f"{goal} site:linkedin.com/in", f'"{goal}" "worked at" OR "experience at"']
        if context.location:
            queries.insert(0, f"{goal} {context.location}")
        return QuerySet(queries=_dedupe(queries), reasoning="template expansion")


QUERY_SYSTEM_PROMPT = """Generate 6-10 search-engine-ready queries that find real, named people for the request.

Rules:
- Prefer recent pages: append an after: date filter no older than {cutoff} to some queries
- Use site:linkedin.com/in for LinkedIn profile searches
- Quote exact phrases and use Boolean operators (AND, OR) where they help
- Include title synonyms (e.g. SWE, Developer, Engineer; Recruiter, Talent Acquisition)
- Include "worked at" / "experience at" phrasings
- Company names may be misspelled or rebranded; include one role-agnostic company query
- Do not fetch results

Return the queries and a one-line reasoning."""


class GroqQueryPlanner:
    """LLM planner backed by the Groq chat model."""

    def plan(self, goal: str, context: UserContext) -> QuerySet:
        from linkd.llm import invoke_structured

        cutoff = (date.today() - timedelta(days=730)).isoformat()
        user_prompt = (
            f"Request: {goal}\n"
            f"Requester field: {context.field or 'unknown'}\n"
            f"Requester location: {context.location or 'unknown'}\n"
            f"Requester interests: {', '.join(context.interests) or 'unknown'}"
        )
        return invoke_structured(QuerySet, QUERY_SYSTEM_PROMPT.format(cutoff=cutoff), user_prompt)


def default_planner() -> QueryPlanner:
    if resolve_reasoner() == "groq":
        return GroqQueryPlanner()
    return RuleQueryPlanner()


def generate_search_queries(
    goal: str,
    context: UserContext,
    planner: Optional[QueryPlanner] = None,
) -> QuerySet:
    """Plan search queries for ``goal``.

    Raises:
        QueryGenerationFailed: No usable query could be produced.
    """
    planner = planner or default_planner()
    try:
        query_set = validate_model(QuerySet, planner.plan(goal, context), "generate_search_queries")
    except QueryGenerationFailed:
        raise
    except LinkdError as exc:
        raise QueryGenerationFailed(str(exc)) from exc

    limit = get_settings().max_queries
    logger.info("Planned %d queries (using %d)", len(query_set.queries), min(limit, len(query_set.queries)))
    return QuerySet(queries=query_set.queries[:limit], reasoning=query_set.reasoning)
