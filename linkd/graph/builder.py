"""
LangGraph workflow builder for the people-search agent.

Search turn:
    gather_context → [clarify | plan_queries →] search → extract → present
Confirmed email turn:
    resolve_emails

Any node that records an ``error`` routes to ``fail``. The two entry points
are disjoint, so one invocation can never both present people and resolve
their emails.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from langgraph.graph import END, START, StateGraph

from linkd.agents.capabilities import Capabilities, default_capabilities
from linkd.agents.emailer import run_email_resolver
from linkd.agents.reporter import FAILURE_MESSAGE, run_clarifier, run_failure, run_reporter
from linkd.agents.researcher import needs_planning, run_gather_context, run_plan_queries, run_search
from linkd.agents.validator import run_validator
from linkd.graph.state import AgentState
from linkd.schemas import Person, SearchResponse, SearchTarget
from linkd.tools.toolbox import Toolbox, default_toolbox
from linkd.utils.logger import logger


# ---------------------------------------------------------------------------
# Conditional edges
# ---------------------------------------------------------------------------

def route_entry(state: Dict[str, Any]) -> str:
    return "resolve_emails" if state.get("mode") == "resolve_emails" else "gather_context"


def after_context(state: Dict[str, Any]) -> str:
    if state.get("error"):
        return "fail"
    if state.get("company_options"):
        return "clarify"
    return "plan" if needs_planning(state) else "search"


def ok_or_fail(state: Dict[str, Any]) -> str:
    return "fail" if state.get("error") else "next"


# ---------------------------------------------------------------------------
# Build the graph
# ---------------------------------------------------------------------------

def build_people_search_graph(toolbox: Optional[Toolbox] = None, capabilities: Optional[Capabilities] = None):
    """Construct and compile the LangGraph workflow.

    Args:
        toolbox: Tool adapters; real adapters when omitted.
        capabilities: Reasoning capabilities; chosen by ``REASONER`` when omitted.

    Returns:
        Compiled LangGraph StateGraph.
    """
    toolbox = toolbox or default_toolbox()
    capabilities = capabilities or default_capabilities()

    def gather_context_node(state: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("=== Gather-context node started ===")
        return run_gather_context(state, toolbox, capabilities.resolver)

    def plan_queries_node(state: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("=== Plan-queries node started ===")
        return run_plan_queries(state, toolbox)

    def search_node(state: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("=== Search node started ===")
        return run_search(state, toolbox)

    def extract_node(state: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("=== Extract node started ===")
        return run_validator(state, capabilities.extractor)

    def present_node(state: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("=== Present node started ===")
        return run_reporter(state)

    def clarify_node(state: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("=== Clarify node started ===")
        return run_clarifier(state)

    def fail_node(state: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("=== Fail node started ===")
        return run_failure(state)

    def resolve_emails_node(state: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("=== Resolve-emails node started ===")
        return run_email_resolver(state, toolbox)

    workflow = StateGraph(AgentState)

    # Add nodes
    workflow.add_node("gather_context", gather_context_node)
    workflow.add_node("plan_queries", plan_queries_node)
    workflow.add_node("search", search_node)
    workflow.add_node("extract", extract_node)
    workflow.add_node("present", present_node)
    workflow.add_node("clarify", clarify_node)
    workflow.add_node("fail", fail_node)
    workflow.add_node("resolve_emails", resolve_emails_node)

    # Define edges
    workflow.add_conditional_edges(
        START,
        route_entry,
        {"gather_context": "gather_context", "resolve_emails": "resolve_emails"},
    )
    workflow.add_conditional_edges(
        "gather_context",
        after_context,
        {"clarify": "clarify", "plan": "plan_queries", "search": "search", "fail": "fail"},
    )
    workflow.add_conditional_edges("plan_queries", ok_or_fail, {"next": "search", "fail": "fail"})
    workflow.add_conditional_edges("search", ok_or_fail, {"next": "extract", "fail": "fail"})
    workflow.add_conditional_edges("extract", ok_or_fail, {"next": "present", "fail": "fail"})
    workflow.add_conditional_edges("resolve_emails", ok_or_fail, {"next": END, "fail": "fail"})
    workflow.add_edge("present", END)
    workflow.add_edge("clarify", END)
    workflow.add_edge("fail", END)

    compiled = workflow.compile()
    logger.info("People-search graph compiled successfully")
    return compiled


# ---------------------------------------------------------------------------
# Agent facade
# ---------------------------------------------------------------------------

@dataclass
class AgentRun:
    """What one agent invocation produced."""

    response: SearchResponse
    trace: List[str] = field(default_factory=list)
    company_domain: Optional[str] = None


class PeopleSearchAgent:
    """Runs the compiled graph for a search turn or a confirmed email turn."""

    def __init__(self, toolbox: Optional[Toolbox] = None, capabilities: Optional[Capabilities] = None) -> None:
        self.graph = build_people_search_graph(toolbox, capabilities)

    def _invoke(self, initial_state: Dict[str, Any]) -> AgentRun:
        try:
            final_state = self.graph.invoke(initial_state)
        except Exception as exc:
            logger.exception("People-search pipeline error: %s", exc)
            return AgentRun(
                response=SearchResponse(status="cant_find", message=FAILURE_MESSAGE),
                trace=["FAIL"],
            )

        response = final_state.get("response")
        if response is None:
            response = SearchResponse(status="cant_find", message=FAILURE_MESSAGE)
        return AgentRun(
            response=response,
            trace=final_state.get("trace", []),
            company_domain=final_state.get("company_domain"),
        )

    def search(self, target: SearchTarget, user_identity: Any = None) -> AgentRun:
        """Find people for ``target``. Never resolves emails."""
        logger.info("=" * 60)
        logger.info("People search started: company=%s, role=%s", target.company, target.role)
        logger.info("=" * 60)
        return self._invoke({
            "mode": "search",
            "user_identity": user_identity,
            "target": target,
            "company_domain": target.company_domain,
            "queries": [],
            "results": [],
            "candidates": [],
            "people": [],
            "company_options": [],
            "error": None,
            "trace": [],
        })

    def resolve_emails(self, people: List[Person], company_domain: Optional[str] = None) -> AgentRun:
        """Resolve emails for people presented on an earlier, confirmed turn."""
        logger.info("Email resolution started for %d people", len(people))
        return self._invoke({
            "mode": "resolve_emails",
            "target": None,
            "pending_people": list(people),
            "company_domain": company_domain,
            "emails": [],
            "error": None,
            "trace": [],
        })
