"""
LangGraph state definition for the people-search agent.

Defines the typed state dictionary that flows through each node
(GATHER_CONTEXT → PLAN_QUERIES → SEARCH → EXTRACT → PRESENT, or
RESOLVE_EMAILS on a confirmed turn).
"""

from typing import Any, List, Optional, TypedDict

from linkd.schemas import (
    Candidate,
    CompanyOption,
    EmailResult,
    Person,
    SearchResponse,
    SearchResult,
    SearchTarget,
    UserContext,
)


class AgentState(TypedDict, total=False):
    """Full state flowing through the LangGraph workflow."""

    # --- Inputs ---
    mode: str  # "search" | "resolve_emails"
    user_identity: Any
    target: Optional[SearchTarget]
    pending_people: List[Person]
    company_domain: Optional[str]

    # --- GATHER_CONTEXT ---
    context: UserContext
    company_options: List[CompanyOption]

    # --- PLAN_QUERIES / SEARCH ---
    queries: List[str]
    results: List[SearchResult]

    # --- EXTRACT ---
    candidates: List[Candidate]
    people: List[Person]

    # --- RESOLVE_EMAILS ---
    emails: List[EmailResult]

    # --- Output ---
    response: Optional[SearchResponse]

    # --- Control flow ---
    error: Optional[str]
    trace: List[str]
