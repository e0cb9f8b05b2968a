"""
Conversation Orchestrator.

Owns the per-conversation state the core needs between turns: a turn
sequence number (for superseded-turn detection) and the pending
confirmation left by a ``people_found`` presentation. For each user turn it
runs the triage router, dispatches to the people-search agent (a search,
a confirmed email lookup, or an email request for one named person) or
answers directly, and returns the assistant turn to append. Transcript storage
belongs to the caller.
"""

import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from linkd.agents.capabilities import Capabilities, default_capabilities
from linkd.agents.triage import TriageRouter
from linkd.config import get_settings
from linkd.errors import LinkdError
from linkd.graph.builder import AgentRun, PeopleSearchAgent
from linkd.schemas import ConversationTurn, Person, SearchResponse, SearchTarget, TriageDecision, validate_model
from linkd.tools.toolbox import Toolbox
from linkd.utils.logger import logger

GENERIC_FAILURE = "Sorry, something went wrong on my side. Please try again."
UNSPECIFIED_ROLE = "Role not given"


class TurnInput(BaseModel):
    """One request from the presentation layer."""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(..., alias="conversationId")
    prior_turns: List[ConversationTurn] = Field(default_factory=list, alias="priorTurns")
    new_user_message: str = Field(..., alias="newUserMessage")
    user_identity: Any = Field(default=None, alias="userIdentity")


@dataclass
class TurnResult:
    """Outcome of ``handle_turn``.

    ``turns`` is the transcript to store: the prior turns plus the new user
    and assistant turns. A superseded result carries no response and must not
    be stored.
    """

    response: Optional[SearchResponse]
    turns: List[ConversationTurn]
    superseded: bool = False
    decision: Optional[TriageDecision] = None
    trace: List[str] = field(default_factory=list)


@dataclass
class PendingConfirmation:
    """People presented on an earlier turn, awaiting an email-lookup yes."""

    people: List[Person]
    company_domain: Optional[str]
    presented_at_turn: int


@dataclass
class ConversationState:
    conversation_id: str
    turn_seq: int = 0
    pending: Optional[PendingConfirmation] = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class InMemoryConversationStore:
    """Conversation state keyed by conversation id.

    Holds at most ``max_conversations`` entries; the least recently used one
    is evicted first.
    """

    def __init__(self, max_conversations: Optional[int] = None) -> None:
        self._states: "OrderedDict[str, ConversationState]" = OrderedDict()
        self._lock = threading.Lock()
        self.max_conversations = max_conversations or get_settings().max_conversations

    def get(self, conversation_id: str) -> ConversationState:
        with self._lock:
            state = self._states.get(conversation_id)
            if state is None:
                state = ConversationState(conversation_id=conversation_id)
                self._states[conversation_id] = state
                while len(self._states) > self.max_conversations:
                    evicted, _ = self._states.popitem(last=False)
                    logger.info("Evicted conversation %s", evicted)
            else:
                self._states.move_to_end(conversation_id)
            return state

    def discard(self, conversation_id: str) -> None:
        with self._lock:
            self._states.pop(conversation_id, None)

    def __len__(self) -> int:
        return len(self._states)


class ConversationOrchestrator:
    """Routes user turns and enforces search-then-confirm-then-emails."""

    def __init__(
        self,
        toolbox: Optional[Toolbox] = None,
        capabilities: Optional[Capabilities] = None,
        store: Optional[InMemoryConversationStore] = None,
        confirmation_ttl_turns: Optional[int] = None,
    ) -> None:
        capabilities = capabilities or default_capabilities()
        self.router = TriageRouter(capabilities.classifier)
        self.agent = PeopleSearchAgent(toolbox, capabilities)
        self.store = store or InMemoryConversationStore()
        self.ttl = confirmation_ttl_turns or get_settings().confirmation_ttl_turns

    # ------------------------------------------------------------------

    def _begin(self, state: ConversationState) -> Tuple[int, Optional[PendingConfirmation]]:
        """Take the next sequence number and the still-fresh pending confirmation."""
        with state.lock:
            state.turn_seq += 1
            seq = state.turn_seq
            pending = state.pending
            if pending is not None and seq - pending.presented_at_turn > self.ttl:
                logger.info("Pending confirmation in %s expired", state.conversation_id)
                state.pending = None
                pending = None
            return seq, pending

    def _dispatch(
        self,
        decision: TriageDecision,
        goal: str,
        pending: Optional[PendingConfirmation],
        user_identity: Any,
    ) -> AgentRun:
        if decision.route == "direct_reply":
            return AgentRun(response=SearchResponse(status="greeting", message=decision.reply))

        if decision.intent == "confirm_emails":
            # Router only emits confirm_emails when a presentation is pending.
            return self.agent.resolve_emails(pending.people, pending.company_domain)

        if decision.intent == "email_lookup":
            # Naming the person is the confirmation.
            person = validate_model(Person, {
                "name": decision.person_name,
                "role": decision.role or UNSPECIFIED_ROLE,
                "company": decision.company,
                "location": decision.location,
                "source": "request",
            }, "email_lookup")
            return self.agent.resolve_emails([person], decision.company_domain)

        target = SearchTarget(
            company=decision.company,
            role=decision.role,
            company_domain=decision.company_domain,
            location=decision.location,
            goal=goal,
        )
        return self.agent.search(target, user_identity)

    def _next_pending(
        self,
        decision: Optional[TriageDecision],
        run: Optional[AgentRun],
        seq: int,
        pending: Optional[PendingConfirmation],
    ) -> Optional[PendingConfirmation]:
        if decision is None or run is None:
            return pending
        if decision.intent in ("confirm_emails", "decline_emails"):
            return None
        if decision.intent == "search":
            if run.response.status == "people_found":
                return PendingConfirmation(
                    people=list(run.response.people or []),
                    company_domain=run.company_domain,
                    presented_at_turn=seq,
                )
            return None
        return pending

    # ------------------------------------------------------------------

    def handle_turn(self, turn: TurnInput) -> TurnResult:
        """Process one user turn.

        Args:
            turn: Conversation id, prior transcript, new message and identity.

        Returns:
            TurnResult with the assistant response, or ``superseded=True``
            when a newer turn on the same conversation started meanwhile.
        """
        state = self.store.get(turn.conversation_id)
        seq, pending = self._begin(state)
        logger.info("Turn %d on %s (awaiting confirmation: %s)", seq, turn.conversation_id, pending is not None)

        user_turn = ConversationTurn(role="user", content=turn.new_user_message)
        turns = list(turn.prior_turns) + [user_turn]

        decision: Optional[TriageDecision] = None
        run: Optional[AgentRun] = None
        try:
            decision = self.router.route(turns, awaiting_confirmation=pending is not None)
            run = self._dispatch(decision, turn.new_user_message, pending, turn.user_identity)
            response = run.response
        except LinkdError as exc:
            logger.error("Turn %d failed: %s", seq, exc)
            response = SearchResponse(status="cant_find", message=GENERIC_FAILURE)
        except Exception as exc:
            logger.exception("Unexpected error in turn %d: %s", seq, exc)
            response = SearchResponse(status="cant_find", message=GENERIC_FAILURE)

        with state.lock:
            if state.turn_seq != seq:
                logger.info("Turn %d on %s superseded by turn %d", seq, turn.conversation_id, state.turn_seq)
                return TurnResult(response=None, turns=list(turn.prior_turns), superseded=True, decision=decision)
            state.pending = self._next_pending(decision, run, seq, pending)

        assistant_turn = ConversationTurn(role="assistant", content=response.message, response=response)
        return TurnResult(
            response=response,
            turns=turns + [assistant_turn],
            decision=decision,
            trace=run.trace if run else [],
        )

    def awaiting_confirmation(self, conversation_id: str) -> bool:
        return self.store.get(conversation_id).pending is not None

    def end_conversation(self, conversation_id: str) -> None:
        """Forget the conversation's sequence number and pending confirmation."""
        self.store.discard(conversation_id)
