"""
Error kinds raised by linkd tool adapters and reasoning capabilities.

Every error is absorbed by the people-search agent or the conversation
orchestrator and translated into a ``SearchResponse`` status; none of them
reach the presentation layer.
"""

from typing import Optional


class LinkdError(Exception):
    """Base class for all linkd errors."""

    code = "linkd_error"


class ValidationFailure(LinkdError):
    """Structured output failed its schema check. Fatal to the turn."""

    code = "validation_failed"

    def __init__(self, what: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"{what} failed validation: {cause}" if cause else f"{what} failed validation")
        self.what = what
        self.cause = cause


class ContextUnavailable(LinkdError):
    """The user profile store could not be reached."""

    code = "context_unavailable"


class QueryGenerationFailed(LinkdError):
    """No usable search query could be formed."""

    code = "query_generation_failed"


class ToolTimeout(LinkdError):
    """A tool call exceeded its deadline."""

    code = "tool_timeout"


class PerPersonEmailFailure(LinkdError):
    """Email discovery failed for a single person."""

    code = "email_lookup_failed"

    def __init__(self, name: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"email lookup failed for {name}: {cause}")
        self.name = name
        self.cause = cause


class ReasonerUnavailable(LinkdError):
    """The language-model backend failed or returned an unusable reply."""

    code = "reasoner_unavailable"
