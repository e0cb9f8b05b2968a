"""
Pluggable reasoning capabilities.

The people-search agent and the triage router never reason in free text;
they ask one of three narrow capabilities for a typed answer:

- ``IntentClassifier``  – what does the latest user turn want?
- ``CompanyResolver``   – which real companies could the requested name mean?
- ``PeopleExtractor``   – which named people do these search results mention?

Each has a rule-based implementation (no model, deterministic) and a
Groq-backed one using LangChain structured output. Tests pass their own
stubs.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Set

from linkd import roles
from linkd.config import resolve_reasoner
from linkd.schemas import (
    Candidate,
    CompanyOption,
    CompanyOptions,
    ConversationTurn,
    ExtractionBatch,
    SearchResult,
    SearchTarget,
    TriageDecision,
    UserContext,
)
from linkd.tools.email_tools import SOCIAL_HOSTS, apex_domain, company_slug
from linkd.utils.logger import logger


class IntentClassifier(Protocol):
    def classify(self, turns: Sequence[ConversationTurn], awaiting_confirmation: bool) -> TriageDecision:
        ...


class CompanyResolver(Protocol):
    def resolve(self, company: str, results: List[SearchResult], context: UserContext) -> List[CompanyOption]:
        ...


class PeopleExtractor(Protocol):
    def extract(self, results: List[SearchResult], target: SearchTarget) -> List[Candidate]:
        ...


@dataclass
class Capabilities:
    classifier: IntentClassifier
    resolver: CompanyResolver
    extractor: PeopleExtractor


# ---------------------------------------------------------------------------
# Canned replies
# ---------------------------------------------------------------------------
GREETING_REPLY = (
    "Hi! Tell me a company and the kind of people you want to reach, "
    "and I'll find them for you."
)
DECLINE_REPLY = "No problem. Let me know if you want to look for anyone else."
ASK_BOTH_REPLY = "Which company are you interested in, and what kind of people should I look for there?"


def ask_role_reply(company: str) -> str:
    return f"Who at {company} should I look for? For example recruiters, engineers or founders."


def ask_company_reply(role: str) -> str:
    return f"Which company should I look for {role} at?"


def ask_person_company_reply(name: str) -> str:
    return f"Which company does {name} work at?"


# ---------------------------------------------------------------------------
# Rule-based intent classifier
# ---------------------------------------------------------------------------
_GREETING = re.compile(
    r"^\s*(hi|hey|hello|hiya|yo|howdy|good (morning|afternoon|evening)|thanks|thank you)\b",
    re.IGNORECASE,
)
_AFFIRMATIVE = re.compile(
    r"^\s*(yes|yeah|yep|yup|sure|ok|okay|please|go ahead|do it|sounds good|definitely|absolutely)\b",
    re.IGNORECASE,
)
_EMAIL_REQUEST = re.compile(r"\b(find|get|look up|grab|pull)\b.*\bemails?\b", re.IGNORECASE)
_DECLINE = re.compile(
    r"^\s*(no|nope|nah|not now|no thanks|skip|that's all|that is all|all good)\b",
    re.IGNORECASE,
)
_COMPANY_CAPITALIZED = re.compile(
    r"(?:\b(?:at|from|with)\s+|@\s*)([A-Z0-9][\w&.'-]*(?:\s+(?:[A-Z0-9][\w&.'-]*|&|of))*)"
)
_COMPANY_LOWER = re.compile(
    r"\bat\s+([a-z0-9][\w&.'-]*(?:\s+[a-z0-9][\w&.'-]*){0,2}?)(?=\s+(?:in|near|who|that|for)\b|[?.!,]|$)"
)
_LOCATION = re.compile(r"\bin\s+([A-Z][\w.-]*(?:\s+[A-Z][\w.-]*)*)")
_PERSON_NAME = r"[A-Z][a-z]+(?:[ -][A-Z][a-z]+)+"
_NAMED_EMAIL = [
    re.compile(rf"({_PERSON_NAME})(?:'s|’s)\s+(?:work\s+|business\s+)?e-?mail\b"),
    re.compile(rf"\be-?mail(?:\s+address)?\s+(?:for|of)\s+({_PERSON_NAME})"),
]
_LEAD_WORDS = {"Find", "Get", "Grab", "Pull", "Look", "Lookup", "What", "Whats", "Need", "Please", "Can", "Could"}
_FILLER = re.compile(r"^(what about|how about|and|try|maybe|at)\s+", re.IGNORECASE)
_ORDINALS = [
    re.compile(r"\b(1|first|one)\b", re.IGNORECASE),
    re.compile(r"\b(2|second|two)\b", re.IGNORECASE),
    re.compile(r"\b(3|third|three)\b", re.IGNORECASE),
]


def extract_company(text: str) -> Optional[str]:
    """Return the company named after "at"/"from"/"with" in ``text``."""
    for pattern in (_COMPANY_CAPITALIZED, _COMPANY_LOWER):
        match = pattern.search(text)
        if not match:
            continue
        company = re.sub(r"\s+(of|&)$", "", match.group(1).strip(" ?.!,"))
        if company and roles.role_class(company) is None:
            return company
    return None


def extract_location(text: str, company: Optional[str] = None) -> Optional[str]:
    match = _LOCATION.search(text)
    if not match:
        return None
    location = match.group(1).strip(" ?.!,")
    return None if company and location.lower() == company.lower() else location


def extract_named_person(text: str) -> Optional[str]:
    """Full name of the person whose email ``text`` asks for ("Sarah Johnson's email")."""
    for pattern in _NAMED_EMAIL:
        match = pattern.search(text)
        if not match:
            continue
        tokens = match.group(1).split()
        while tokens and tokens[0] in _LEAD_WORDS:
            tokens.pop(0)
        name = " ".join(tokens)
        if len(tokens) >= 2 and roles.role_class(name) is None:
            return name
    return None


def _last_user_turns(turns: Sequence[ConversationTurn]) -> List[ConversationTurn]:
    return [t for t in turns if t.role == "user"]


def _pending_options(turns: Sequence[ConversationTurn]) -> List[CompanyOption]:
    for turn in reversed(turns[:-1]):
        if turn.role == "assistant":
            if turn.response is not None and turn.response.status == "clarification_needed":
                return list(turn.response.company_options or [])
            return []
    return []


def _pick_option(text: str, options: List[CompanyOption]) -> Optional[CompanyOption]:
    lowered = text.lower()
    for option in options:
        if option.name.lower() in lowered or (option.domain and option.domain.lower() in lowered):
            return option
    # Later ordinals first so "the second one" is not read as "one".
    for index in reversed(range(min(len(options), len(_ORDINALS)))):
        if _ORDINALS[index].search(text):
            return options[index]
    return None


class RuleIntentClassifier:
    """Keyword and pattern classifier over the transcript."""

    def classify(self, turns: Sequence[ConversationTurn], awaiting_confirmation: bool) -> TriageDecision:
        user_turns = _last_user_turns(turns)
        if not user_turns:
            return TriageDecision(route="direct_reply", intent="greeting", reply=GREETING_REPLY)

        text = user_turns[-1].content.strip()
        history = user_turns[:-1]
        role = roles.find_role_mention(text)
        company = extract_company(text)
        location = extract_location(text, company)

        person_name = extract_named_person(text)
        if person_name is None and history and role is None:
            earlier = extract_named_person(history[-1].content)
            if earlier and extract_company(history[-1].content) is None:
                named_company = company or self._bare_company(text)
                if named_company:
                    person_name, company = earlier, named_company
        if person_name:
            if company:
                return TriageDecision(route="people_search", intent="email_lookup", person_name=person_name,
                                      company=company, role=role, location=location)
            return TriageDecision(route="direct_reply", intent="clarify_company", person_name=person_name,
                                  reply=ask_person_company_reply(person_name))

        if awaiting_confirmation and not company:
            if _EMAIL_REQUEST.search(text) or _AFFIRMATIVE.match(text):
                return TriageDecision(route="people_search", intent="confirm_emails")
            if _DECLINE.match(text):
                return TriageDecision(route="direct_reply", intent="decline_emails", reply=DECLINE_REPLY)
        elif _EMAIL_REQUEST.search(text) and not company:
            return TriageDecision(route="people_search", intent="confirm_emails")

        if _GREETING.match(text) and not (role or company) and len(text.split()) <= 5:
            return TriageDecision(route="direct_reply", intent="greeting", reply=GREETING_REPLY)

        company_domain = None
        options = _pending_options(turns)
        if options and not company:
            picked = _pick_option(text, options)
            if picked is not None:
                company, company_domain = picked.name, picked.domain

        text_role = role
        if role is None:
            history_role = next((r for r in (roles.find_role_mention(t.content) for t in reversed(history)) if r), None)
            if company is None and history_role is not None:
                company = self._bare_company(text)
            if company is not None:
                role = history_role
        if company is None and text_role is not None:
            company = next((c for c in (extract_company(t.content) for t in reversed(history)) if c), None)

        if company and role:
            return TriageDecision(
                route="people_search",
                intent="search",
                company=company,
                company_domain=company_domain,
                role=role,
                location=location,
            )
        if company:
            return TriageDecision(route="direct_reply", intent="clarify_role", company=company,
                                  reply=ask_role_reply(company))
        if role:
            label = roles.describe(role, 2).split(" ", 1)[1]
            return TriageDecision(route="direct_reply", intent="clarify_company", role=role,
                                  reply=ask_company_reply(label))
        return TriageDecision(route="direct_reply", intent="clarify_company", reply=ASK_BOTH_REPLY)

    @staticmethod
    def _bare_company(text: str) -> Optional[str]:
        """A short reply naming only a company ("Stripe", "what about Acme?")."""
        if len(text.split()) > 5 or _AFFIRMATIVE.match(text) or _DECLINE.match(text) or _GREETING.match(text):
            return None
        company = _FILLER.sub("", text).strip(" ?.!,")
        if not company or not (company[0].isupper() or company[0].isdigit()):
            return None
        return company


# ---------------------------------------------------------------------------
# Rule-based company resolver
# ---------------------------------------------------------------------------

def _site_name(title: str) -> str:
    return re.split(r"\s+[|\-–:]\s+", title, maxsplit=1)[0].strip()


class RuleCompanyResolver:
    """Groups company-identity results into distinct companies.

    Domains sharing a brand label (``stripe.com``, ``stripe.dev``) or a site
    name belong to one company, represented by its first-ranked domain.
    """

    def __init__(self, max_results: int = 8) -> None:
        self.max_results = max_results

    def resolve(self, company: str, results: List[SearchResult], context: UserContext) -> List[CompanyOption]:
        slug = company_slug(company)
        if not slug:
            return []

        options: List[CompanyOption] = []
        identities: List[Set[str]] = []
        for result in results[: self.max_results]:
            domain = apex_domain(result.url)
            if not domain or domain in SOCIAL_HOSTS:
                continue
            if slug not in domain.replace(".", "").replace("-", ""):
                continue
            if company.lower() not in result.text.lower():
                continue

            name = _site_name(result.title) or company
            identity = {domain.split(".", 1)[0].replace("-", ""), company_slug(name)} - {""}
            known = next((seen for seen in identities if seen & identity), None)
            if known is not None:
                known |= identity
                continue
            identities.append(identity)
            options.append(CompanyOption(name=name, domain=domain, description=result.snippet[:160]))

        logger.info("Company %r resolved to %d distinct companies", company, len(options))
        return options


# ---------------------------------------------------------------------------
# Rule-based people extractor
# ---------------------------------------------------------------------------
_NAME_PATTERN = re.compile(
    r"\b([A-Z][a-z]{1,20}(?:\s[A-Z]\.?)?\s[A-Z][a-z]{1,20}(?:-[A-Z][a-z]{1,20})?)\b"
)

_FALSE_POSITIVES = {
    "The Company", "Our Team", "Read More", "Learn More", "Sign In",
    "Sign Up", "Contact Us", "Privacy Policy", "Terms Service",
    "All Rights", "New York", "San Francisco", "Los Angeles",
    "United States", "United Kingdom", "Hong Kong", "Last Updated",
    "About Us", "See Also", "Click Here", "Find Out", "Meet The",
}

# Capitalised page words that are never part of a person name.
_NAME_STOPWORDS = {
    "Team", "Meet", "Our", "About", "Contact", "Careers", "Join", "Leadership",
    "Jobs", "Hiring", "Profile", "Profiles", "View", "Company", "Staff",
}

_PAST = re.compile(
    r"\b(former|formerly|previously|ex-|until (19|20)\d{2}|retired)\b", re.IGNORECASE
)
_UNCERTAIN = re.compile(r"\b(alum|alumni|alumnus|worked at|worked with|was at)\b", re.IGNORECASE)
_SEPARATORS = re.compile(r"\s*(?:,|\||·|•|–|—|\s-\s)\s*")


def _title_from(text: str, name: str, company: str) -> Optional[str]:
    segments = [s.strip() for s in _SEPARATORS.split(text) if s and s.strip()]
    after_name = False
    for segment in segments:
        if name in segment:
            after_name = True
            rest = segment.replace(name, "").strip(" :")
            if rest and roles.role_class(rest) not in (None, "contact"):
                return re.sub(r"\s+at\s+.*$", "", rest, flags=re.IGNORECASE)
            continue
        if after_name and roles.role_class(segment) not in (None, "contact"):
            title = re.sub(rf"\s+(at|@)\s+{re.escape(company)}.*$", "", segment, flags=re.IGNORECASE)
            return title.strip()
    return None


class RulePeopleExtractor:
    """Regex name extraction with title and tenure heuristics."""

    def extract(self, results: List[SearchResult], target: SearchTarget) -> List[Candidate]:
        company_tokens = {t.lower() for t in re.findall(r"\w+", target.company)}
        candidates: List[Candidate] = []

        for index, result in enumerate(results):
            text = result.text
            if target.company.lower() not in text.lower():
                continue

            if _PAST.search(text):
                employment = "former"
            elif _UNCERTAIN.search(text):
                employment = "ambiguous"
            else:
                employment = "current"

            # Title and snippet separately so names never span the two.
            for part in (result.title, result.snippet):
                for name in _NAME_PATTERN.findall(part):
                    name = name.strip()
                    tokens = name.split()
                    if name in _FALSE_POSITIVES or _NAME_STOPWORDS & set(tokens):
                        continue
                    if roles.role_class(name) is not None:
                        continue
                    if {t.lower() for t in tokens} & company_tokens:
                        continue

                    title = _title_from(part, name, target.company) or _title_from(text, name, target.company)
                    if not title:
                        continue

                    candidates.append(Candidate(
                        name=name,
                        role=title,
                        company=target.company,
                        description=result.snippet[:200],
                        result_index=index,
                        employment=employment,
                    ))

        logger.info("Rule extractor proposed %d candidates", len(candidates))
        return candidates


# ---------------------------------------------------------------------------
# Groq-backed capabilities
# ---------------------------------------------------------------------------
TRIAGE_SYSTEM_PROMPT = """You route messages for a lead-finding assistant.

Classify the LATEST user message using the whole conversation for context.

intents:
- search: the user wants people at a company and both company and role are known (possibly from different turns)
- confirm_emails: the user agrees to look up emails for the people just presented (only when awaiting_confirmation is yes)
- decline_emails: the user does not want emails for the people just presented
- email_lookup: the user names one specific person and asks for their email; set person_name and company
- greeting: small talk or thanks
- clarify_company: a role is known but no company
- clarify_role: a company is known but not what kind of people

route is people_search for search, confirm_emails and email_lookup, otherwise direct_reply with a short reply.
If the previous assistant turn offered company options and the user picks one, return search with that
company's name and domain. When unsure, choose direct_reply and ask a short clarifying question.
Never mention tools, queries or internal steps in reply."""

EXTRACT_SYSTEM_PROMPT = """You extract real people from numbered search results.

Rules:
- Only people whose full name appears in the result text
- Only people at the target company; set employment to current, former or ambiguous from the text
- role is the person's title exactly as written in the result
- result_index is the number of the result the person was read from
- Never invent names; skip placeholders like "Recruiter (name not shown)"
- Return an empty list when nobody qualifies"""

RESOLVE_SYSTEM_PROMPT = """Decide which distinct real companies the requested name could refer to,
using only the search results given. Return one option per distinct company with its official
domain when a result shows it. Return a single option when the name is unambiguous."""


def _transcript(turns: Sequence[ConversationTurn], limit: int = 8) -> str:
    lines = []
    for turn in list(turns)[-limit:]:
        lines.append(f"{turn.role}: {turn.content}")
        if turn.response is not None and turn.response.company_options:
            for option in turn.response.company_options:
                lines.append(f"  option: {option.name} ({option.domain or 'no domain'})")
    return "\n".join(lines)


def _numbered(results: List[SearchResult]) -> str:
    return "\n".join(f"[{i}] {r.title}\n{r.snippet}\n{r.url}" for i, r in enumerate(results))


class GroqIntentClassifier:
    def classify(self, turns: Sequence[ConversationTurn], awaiting_confirmation: bool) -> TriageDecision:
        from linkd.llm import invoke_structured

        user_prompt = (
            f"awaiting_confirmation: {'yes' if awaiting_confirmation else 'no'}\n\n"
            f"Conversation:\n{_transcript(turns)}"
        )
        return invoke_structured(TriageDecision, TRIAGE_SYSTEM_PROMPT, user_prompt)


class GroqCompanyResolver:
    def resolve(self, company: str, results: List[SearchResult], context: UserContext) -> List[CompanyOption]:
        from linkd.llm import invoke_structured

        user_prompt = (
            f"Requested company: {company}\n"
            f"Requester location: {context.location or 'unknown'}\n\n"
            f"Results:\n{_numbered(results[:8])}"
        )
        return invoke_structured(CompanyOptions, RESOLVE_SYSTEM_PROMPT, user_prompt).options


class GroqPeopleExtractor:
    def extract(self, results: List[SearchResult], target: SearchTarget) -> List[Candidate]:
        from linkd.llm import invoke_structured

        if not results:
            return []
        user_prompt = (
            f"Target company: {target.company}\n"
            f"Wanted role: {target.role or 'any'}\n\n"
            f"Results:\n{_numbered(results)}"
        )
        return invoke_structured(ExtractionBatch, EXTRACT_SYSTEM_PROMPT, user_prompt).candidates


def default_capabilities() -> Capabilities:
    if resolve_reasoner() == "groq":
        return Capabilities(GroqIntentClassifier(), GroqCompanyResolver(), GroqPeopleExtractor())
    return Capabilities(RuleIntentClassifier(), RuleCompanyResolver(), RulePeopleExtractor())
