"""
Triage Router.

Classifies the latest user turn before any tool runs. The router itself
never calls search or email tools; it only decides between handing the turn
to the people-search agent and answering directly.
"""

from typing import Optional, Sequence

from linkd.agents.capabilities import IntentClassifier, default_capabilities
from linkd.schemas import ConversationTurn, TriageDecision, validate_model
from linkd.utils.logger import logger

NOTHING_PENDING_REPLY = (
    "I don't have a list of people to look up emails for yet. "
    "Which company and role should I search first?"
)


class TriageRouter:
    """Routes each user turn to ``people_search`` or ``direct_reply``."""

    def __init__(self, classifier: Optional[IntentClassifier] = None) -> None:
        self.classifier = classifier or default_capabilities().classifier

    def route(self, turns: Sequence[ConversationTurn], awaiting_confirmation: bool = False) -> TriageDecision:
        """Classify the latest user turn.

        Args:
            turns: Transcript ending with the new user turn.
            awaiting_confirmation: Whether people were presented and are
                waiting for an email-lookup confirmation.

        Returns:
            Validated TriageDecision.

        Raises:
            ValidationFailure: The classifier returned a malformed decision.
            ReasonerUnavailable: The classifier backend failed.
        """
        decision = validate_model(
            TriageDecision,
            self.classifier.classify(turns, awaiting_confirmation),
            "triage",
        )

        # Email lookups need a presentation still awaiting confirmation.
        if decision.intent == "confirm_emails" and not awaiting_confirmation:
            decision = TriageDecision(route="direct_reply", intent="clarify_company", reply=NOTHING_PENDING_REPLY)

        logger.info("Triage → route=%s intent=%s", decision.route, decision.intent)
        return decision
