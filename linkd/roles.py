"""
Role-flexibility policy.

A requested role ("recruiters") is mapped to a role class; any title that
mentions one of the class's synonyms ("Talent Acquisition Partner",
"People Ops Lead") satisfies the request.
"""

import re
from typing import Dict, List, Optional, Tuple

# ---------------------------------------------------------------------------
# Role classes: canonical name → lowercase synonyms found in titles
# ---------------------------------------------------------------------------
ROLE_CLASSES: Dict[str, List[str]] = {
    "recruiter": [
        "recruiter", "recruiting", "recruitment", "campus recruiter", "university recruiter",
        "talent acquisition", "talent partner", "sourcer", "people ops", "people operations",
        "people partner", "hr", "human resources", "hr business partner", "hiring manager",
        "hiring lead",
    ],
    "engineer": [
        "engineer", "engineering", "developer", "swe", "sde", "software",
        "programmer", "tech lead",
    ],
    "product manager": [
        "product manager", "pm", "product owner", "product lead", "head of product",
        "product",
    ],
    "designer": ["designer", "design", "ux", "ui", "design lead"],
    "data scientist": [
        "data scientist", "data analyst", "data engineer", "machine learning",
        "ml engineer", "analytics",
    ],
    "executive": [
        "founder", "co-founder", "cofounder", "ceo", "chief executive officer",
        "cto", "chief technology officer", "coo", "chief operating officer",
        "cfo", "chief financial officer", "cmo", "chief marketing officer",
        "president", "managing director", "executive", "vp", "vice president",
        "director", "head of",
    ],
    "sales": [
        "account executive", "sales", "business development", "bdr", "sdr",
        "partnerships",
    ],
    "marketing": ["marketing", "growth", "brand", "communications"],
    # Vague requests ("who should I reach out to") accept any role.
    "contact": [
        "contacts", "contact", "people", "employees", "someone", "anyone",
        "reach out", "who to", "who should",
    ],
}

# Display forms used when building search queries.
QUERY_TERMS: Dict[str, List[str]] = {
    "recruiter": ["recruiter", "talent acquisition", "hiring manager"],
    "engineer": ["software engineer", "developer", "engineering manager"],
    "product manager": ["product manager", "product lead"],
    "designer": ["product designer", "UX designer"],
    "data scientist": ["data scientist", "machine learning engineer"],
    "executive": ["founder", "CEO", "CTO"],
    "sales": ["account executive", "sales"],
    "marketing": ["marketing manager", "growth"],
}

# Singular and plural labels used in summaries.
LABELS: Dict[str, Tuple[str, str]] = {
    "recruiter": ("recruiter", "recruiters"),
    "engineer": ("engineer", "engineers"),
    "product manager": ("product manager", "product managers"),
    "designer": ("designer", "designers"),
    "data scientist": ("data scientist", "data scientists"),
    "executive": ("executive", "executives"),
    "sales": ("salesperson", "salespeople"),
    "marketing": ("marketer", "marketers"),
}

# Adjacent roles offered when a search comes back thin.
RELATED_ROLES: Dict[str, str] = {
    "recruiter": "hiring managers",
    "engineer": "engineering managers",
    "product manager": "product leads",
    "designer": "design leads",
    "data scientist": "data team leads",
    "executive": "senior directors",
    "sales": "sales leaders",
    "marketing": "marketing leads",
    "contact": "recruiters",
}


def _normalize(text: str) -> str:
    text = text.lower()
    # Crude singularization of title words: recruiters -> recruiter
    return re.sub(r"\b([a-z]{3,})s\b", r"\1", text)


_ALL_TERMS = sorted(
    ((_normalize(term), cls) for cls, terms in ROLE_CLASSES.items() for term in terms),
    key=lambda pair: len(pair[0]),
    reverse=True,
)


def _contains(text: str, term: str) -> bool:
    return re.search(rf"(?<![a-z]){re.escape(term)}(?![a-z])", text) is not None


def find_role_mention(text: str) -> Optional[str]:
    """Return the longest role phrase mentioned in ``text``, if any."""
    normalized = _normalize(text)
    for term, _cls in _ALL_TERMS:
        if _contains(normalized, term):
            return term
    return None


def role_class(role: Optional[str]) -> Optional[str]:
    """Map a free-text role to its role class, or None if unknown."""
    if not role:
        return None
    normalized = _normalize(role)
    for term, cls in _ALL_TERMS:
        if _contains(normalized, term):
            return cls
    return None


def is_specific(role: Optional[str]) -> bool:
    """True when ``role`` maps to a concrete role class."""
    cls = role_class(role)
    return cls is not None and cls != "contact"


def role_matches(title: str, wanted: Optional[str]) -> bool:
    """Does a person's ``title`` satisfy the ``wanted`` role request?"""
    cls = role_class(wanted)
    if cls is None:
        if not wanted:
            return True
        words = re.findall(r"[a-z]{3,}", _normalize(wanted))
        normalized = _normalize(title)
        return any(_contains(normalized, w) for w in words)
    if cls == "contact":
        return True
    normalized = _normalize(title)
    return any(_contains(normalized, _normalize(term)) for term in ROLE_CLASSES[cls])


def query_terms(role: Optional[str]) -> List[str]:
    cls = role_class(role)
    terms = list(QUERY_TERMS.get(cls or "", []))
    if role and role.lower() not in [t.lower() for t in terms]:
        terms.insert(0, role)
    return terms


def related_role(role: Optional[str]) -> str:
    return RELATED_ROLES.get(role_class(role) or "contact", "recruiters")


def describe(role: Optional[str], count: int) -> str:
    """Human label for ``count`` people of ``role`` ("1 recruiter", "3 people")."""
    cls = role_class(role)
    if cls is None or cls == "contact":
        return f"{count} {'person' if count == 1 else 'people'}"
    singular, plural = LABELS[cls]
    return f"{count} {singular if count == 1 else plural}"
