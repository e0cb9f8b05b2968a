"""linkd agents package."""

from linkd.agents.capabilities import Capabilities, default_capabilities
from linkd.agents.emailer import run_email_resolver
from linkd.agents.reporter import run_clarifier, run_failure, run_reporter
from linkd.agents.researcher import run_gather_context, run_plan_queries, run_search
from linkd.agents.triage import TriageRouter
from linkd.agents.validator import run_validator

__all__ = [
    "Capabilities",
    "default_capabilities",
    "run_email_resolver",
    "run_clarifier",
    "run_failure",
    "run_reporter",
    "run_gather_context",
    "run_plan_queries",
    "run_search",
    "TriageRouter",
    "run_validator",
]
