"""
Structured output schemas for linkd.

Every artifact produced by an agent, a tool adapter or a reasoning
capability is one of these pydantic models. Enumerated fields are closed
``Literal`` sets and unknown keys are rejected, so an unexpected value is a
validation failure rather than a silent default. Field aliases keep the
camelCase wire names used by the presentation layer.
"""

import re
from typing import Any, Dict, List, Literal, Optional, Type, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from linkd.errors import ValidationFailure

Status = Literal["people_found", "emails_found", "cant_find", "greeting", "clarification_needed"]
PersonSource = Literal["linkedin", "web", "company_page", "request"]
EmailSource = Literal["search", "guess", "none"]
Employment = Literal["current", "ambiguous", "former"]
Route = Literal["people_search", "direct_reply"]
Intent = Literal[
    "search",
    "confirm_emails",
    "email_lookup",
    "decline_emails",
    "greeting",
    "clarify_company",
    "clarify_role",
]

# Names that stand in for a person without identifying one.
_PLACEHOLDER_NAME = re.compile(
    r"(not shown|not listed|not available|unknown|unnamed|anonymous|withheld|"
    r"hidden|\bn/?a\b|tbd|redacted|\bname\b|recruiter|hiring manager|linkedin member)",
    re.IGNORECASE,
)

M = TypeVar("M", bound=BaseModel)


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True, str_strip_whitespace=True)


# ---------------------------------------------------------------------------
# Tool-level records
# ---------------------------------------------------------------------------

class UserContext(_Strict):
    """The requester's declared profile, used to target searches."""

    name: Optional[str] = None
    field: Optional[str] = None
    location: Optional[str] = None
    interests: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.field or self.location or self.interests)


class SearchResult(_Strict):
    """A single raw result snippet returned by ``web_search``."""

    title: str = ""
    snippet: str = ""
    url: str = ""
    source_engine: Optional[str] = None

    @property
    def text(self) -> str:
        return f"{self.title} {self.snippet}".strip()


class QuerySet(_Strict):
    queries: List[str] = Field(..., min_length=1)
    reasoning: Optional[str] = None

    @field_validator("queries")
    @classmethod
    def _non_blank(cls, value: List[str]) -> List[str]:
        cleaned = [q.strip() for q in value if q and q.strip()]
        if not cleaned:
            raise ValueError("at least one non-blank query is required")
        return cleaned


# ---------------------------------------------------------------------------
# Agent output records
# ---------------------------------------------------------------------------

class Person(_Strict):
    """A candidate professional.

    Every field traces to retrieved text, except for people the user named
    in an email request (``source = request``), which are never presented.
    """

    name: str = Field(..., min_length=1)
    role: str = Field(..., min_length=1)
    company: str = Field(..., min_length=1)
    location: Optional[str] = None
    description: str = ""
    linkedin_url: Optional[HttpUrl] = Field(default=None, alias="linkedinUrl")
    source: PersonSource
    web_url: Optional[HttpUrl] = Field(default=None, alias="webUrl")

    @field_validator("name")
    @classmethod
    def _real_name(cls, value: str) -> str:
        if _PLACEHOLDER_NAME.search(value):
            raise ValueError(f"placeholder is not a person name: {value!r}")
        tokens = [t for t in value.split() if any(ch.isalpha() for ch in t)]
        if len(tokens) < 2:
            raise ValueError(f"full name required, got {value!r}")
        return value

    @model_validator(mode="after")
    def _source_urls(self) -> "Person":
        if self.source == "linkedin" and self.web_url is not None:
            raise ValueError("webUrl must be null when source is linkedin")
        if self.source in ("web", "company_page") and self.web_url is None:
            raise ValueError(f"webUrl is required when source is {self.source}")
        if self.source == "request" and (self.web_url is not None or self.linkedin_url is not None):
            raise ValueError("a person named in the request carries no URLs")
        return self

    @property
    def identity(self) -> tuple:
        return (self.name.lower(), self.company.lower())


class EmailResult(_Strict):
    """Email resolution outcome for one Person."""

    name: str
    role: str
    company: str
    email: Optional[str] = None
    email_source: EmailSource = Field(..., alias="emailSource")

    @field_validator("email")
    @classmethod
    def _looks_like_email(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not re.fullmatch(r"[^@\s]+@[^@\s]+\.[^@\s]+", value):
            raise ValueError(f"not an email address: {value!r}")
        return value

    @model_validator(mode="after")
    def _email_matches_source(self) -> "EmailResult":
        if (self.email is None) != (self.email_source == "none"):
            raise ValueError("email must be null exactly when emailSource is 'none'")
        return self

    @classmethod
    def not_found(cls, person: Person) -> "EmailResult":
        return cls(name=person.name, role=person.role, company=person.company, email=None, email_source="none")


class CompanyOption(_Strict):
    name: str = Field(..., min_length=1)
    domain: Optional[str] = None
    description: str = ""


class SearchResponse(_Strict):
    """The structured output of one agent turn."""

    status: Status
    message: str = Field(..., min_length=1)
    people: Optional[List[Person]] = None
    emails: Optional[List[EmailResult]] = None
    company_options: Optional[List[CompanyOption]] = Field(default=None, alias="companyOptions")

    @model_validator(mode="after")
    def _payload_matches_status(self) -> "SearchResponse":
        populated = {
            "people": bool(self.people),
            "emails": bool(self.emails),
            "company_options": bool(self.company_options),
        }
        expected = {
            "people_found": "people",
            "emails_found": "emails",
            "clarification_needed": "company_options",
        }.get(self.status)

        for key, is_set in populated.items():
            if is_set and key != expected:
                raise ValueError(f"{key} must be empty when status is {self.status}")
        if expected and not populated[expected]:
            raise ValueError(f"{expected} is required when status is {self.status}")
        if self.status == "clarification_needed" and len(self.company_options or []) < 2:
            raise ValueError("clarification needs at least two company options")
        if any(person.source == "request" for person in self.people or []):
            raise ValueError("presented people must come from search results")
        return self

    @model_validator(mode="after")
    def _message_has_no_list_content(self) -> "SearchResponse":
        lowered = self.message.lower()
        for person in self.people or []:
            if person.name.lower() in lowered:
                raise ValueError("message must not repeat person names")
        for result in self.emails or []:
            if result.name.lower() in lowered or (result.email and result.email.lower() in lowered):
                raise ValueError("message must not repeat email results")
        return self

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ConversationTurn(_Strict):
    """One user or assistant message. Immutable once appended."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str
    response: Optional[SearchResponse] = None


# ---------------------------------------------------------------------------
# Capability records
# ---------------------------------------------------------------------------

class Candidate(_Strict):
    """A person proposed by an extractor, before grounding and policy checks."""

    name: str
    role: str
    company: str
    location: Optional[str] = None
    description: str = ""
    result_index: int = Field(..., ge=0, description="Index of the search result the person was read from")
    employment: Employment = "ambiguous"


class ExtractionBatch(_Strict):
    candidates: List[Candidate] = Field(default_factory=list)


class CompanyOptions(_Strict):
    options: List[CompanyOption] = Field(default_factory=list)


class TriageDecision(_Strict):
    """Router output for the latest user turn."""

    route: Route
    intent: Intent
    company: Optional[str] = None
    company_domain: Optional[str] = None
    role: Optional[str] = None
    location: Optional[str] = None
    person_name: Optional[str] = None
    reply: Optional[str] = None

    @model_validator(mode="after")
    def _route_matches_intent(self) -> "TriageDecision":
        search_intents = ("search", "confirm_emails", "email_lookup")
        if self.route == "people_search" and self.intent not in search_intents:
            raise ValueError(f"intent {self.intent} cannot route to people_search")
        if self.route == "direct_reply" and self.intent in search_intents:
            raise ValueError(f"intent {self.intent} cannot route to direct_reply")
        if self.route == "direct_reply" and not self.reply:
            raise ValueError("direct_reply needs a reply")
        if self.intent == "search" and not self.company:
            raise ValueError("search intent needs a company")
        if self.intent == "email_lookup" and not (self.person_name and self.company):
            raise ValueError("email_lookup needs a person name and a company")
        return self


class SearchTarget(_Strict):
    """What the people-search agent is looking for in this turn."""

    company: str
    role: Optional[str] = None
    company_domain: Optional[str] = None
    location: Optional[str] = None
    goal: str = ""


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def validate_model(model: Type[M], data: Any, what: str = "") -> M:
    """Validate ``data`` against ``model``, raising ValidationFailure."""
    if isinstance(data, model):
        data = data.model_dump(mode="json", by_alias=True)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ValidationFailure(what or model.__name__, exc) from exc


_RESULTS = TypeAdapter(List[SearchResult])


def validate_results(data: Any, what: str = "web_search") -> List[SearchResult]:
    """Validate a raw list of search results."""
    if isinstance(data, list):
        data = [r.model_dump(mode="json") if isinstance(r, SearchResult) else r for r in data]
    try:
        return _RESULTS.validate_python(data)
    except ValidationError as exc:
        raise ValidationFailure(what, exc) from exc
