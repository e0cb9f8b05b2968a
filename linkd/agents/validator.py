"""
Validator Agent for linkd.

Responsibilities:
- Ask the extractor capability for candidate people in the pooled results.
- Re-check grounding: the name and company must appear in the cited result.
- Apply the role-flexibility policy and keep only clearly current employees.
- Attribute each person to a source and deduplicate by name + company.
"""

import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from linkd import roles
from linkd.agents.capabilities import PeopleExtractor
from linkd.config import get_settings
from linkd.errors import LinkdError, ValidationFailure
from linkd.schemas import Candidate, Person, SearchResult, SearchTarget, validate_model
from linkd.tools.email_tools import apex_domain, company_slug
from linkd.utils.logger import logger

_LINKEDIN_PROFILE = re.compile(r"(^|\.)linkedin\.com$")


def _same_company(candidate: str, target: str) -> bool:
    a, b = company_slug(candidate), company_slug(target)
    return bool(a and b) and (a == b or a.startswith(b) or b.startswith(a))


def _source_for(url: str, company: str, company_domain: Optional[str]) -> Dict[str, Any]:
    """Source attribution for a result URL."""
    parsed = urlparse(url)
    host = parsed.netloc.lower()
    if _LINKEDIN_PROFILE.search(host) and parsed.path.startswith("/in/"):
        return {"source": "linkedin", "linkedinUrl": url, "webUrl": None}

    domain = apex_domain(url)
    slug = company_slug(company)
    own_site = domain is not None and (
        (company_domain is not None and domain == apex_domain(company_domain))
        or (company_domain is None and bool(slug) and slug in domain.replace(".", ""))
    )
    if own_site:
        return {"source": "company_page", "linkedinUrl": None, "webUrl": url}
    return {"source": "web", "linkedinUrl": None, "webUrl": url}


def _grounded(candidate: Candidate, result: SearchResult, target: SearchTarget) -> Optional[str]:
    """Return why ``candidate`` is rejected, or None when it holds up."""
    text = result.text.lower()
    if candidate.name.lower() not in text:
        return "name not in cited result"
    if candidate.company.lower() not in text:
        return "company not in cited result"
    if not _same_company(candidate.company, target.company):
        return "different company"
    if candidate.role.lower() not in text:
        return "role not in cited result"
    if not roles.role_matches(candidate.role, target.role):
        return "role does not match request"
    if candidate.employment != "current":
        return f"employment {candidate.employment}"
    return None


def qualify(
    candidates: List[Candidate],
    results: List[SearchResult],
    target: SearchTarget,
    company_domain: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Person]:
    """Turn extractor candidates into presentable people."""
    people: List[Person] = []
    seen: set = set()

    for candidate in candidates:
        if candidate.result_index >= len(results):
            logger.info("Dropped %s: cites missing result %d", candidate.name, candidate.result_index)
            continue
        result = results[candidate.result_index]

        reason = _grounded(candidate, result, target)
        if reason:
            logger.info("Dropped candidate: %s", reason)
            continue

        try:
            person = validate_model(Person, {
                "name": candidate.name,
                "role": candidate.role,
                "company": candidate.company,
                "location": candidate.location,
                "description": candidate.description or result.snippet,
                **_source_for(result.url, target.company, company_domain),
            }, "person")
        except ValidationFailure as exc:
            logger.info("Dropped candidate with unusable record: %s", exc)
            continue

        if person.identity in seen:
            continue
        seen.add(person.identity)
        people.append(person)

        if limit and len(people) >= limit:
            break

    return people


def run_validator(state: Dict[str, Any], extractor: PeopleExtractor) -> Dict[str, Any]:
    """EXTRACT node: extract, ground and filter candidate people.

    Args:
        state: Current AgentState dict.
        extractor: People-extraction capability.

    Returns:
        Updated state with 'candidates' and 'people'.
    """
    target: SearchTarget = state["target"]
    results: List[SearchResult] = state.get("results") or []
    trace = state.get("trace", []) + ["EXTRACT"]

    try:
        candidates = [validate_model(Candidate, c, "candidate") for c in extractor.extract(results, target)]
    except LinkdError as exc:
        logger.error("EXTRACT failed: %s", exc)
        return {**state, "trace": trace, "error": exc.code}

    people = qualify(candidates, results, target, state.get("company_domain"), get_settings().max_people)
    logger.info("Validator kept %d of %d candidates", len(people), len(candidates))

    return {
        **state,
        "trace": trace,
        "candidates": candidates,
        "people": people,
    }
