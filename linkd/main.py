"""
linkd main entry point.

Provides a high-level ``handle_turn()`` function that runs one user turn
through the conversation orchestrator and returns the structured response
as a JSON-ready dict.
"""

import uuid
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from linkd.conversation import ConversationOrchestrator, TurnInput
from linkd.schemas import ConversationTurn
from linkd.utils.logger import logger

load_dotenv()

_orchestrator: Optional[ConversationOrchestrator] = None


def get_orchestrator() -> ConversationOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = ConversationOrchestrator()
    return _orchestrator


def handle_turn(
    conversation_id: str,
    message: str,
    prior_turns: Optional[List[ConversationTurn]] = None,
    user_identity: Any = None,
) -> Dict[str, Any]:
    """Run one user turn and return the wire-format response.

    Args:
        conversation_id: Stable id of the chat session.
        message: The new user message.
        prior_turns: Transcript so far.
        user_identity: Opaque identity from the auth provider.

    Returns:
        ``SearchResponse`` as a camelCase dict, or ``{"superseded": True}``.
    """
    if not message.strip():
        return {"status": "greeting", "message": "What can I help you find?"}

    result = get_orchestrator().handle_turn(TurnInput(
        conversation_id=conversation_id,
        prior_turns=prior_turns or [],
        new_user_message=message.strip(),
        user_identity=user_identity,
    ))
    if result.superseded:
        return {"superseded": True}
    return result.response.to_wire()


if __name__ == "__main__":
    import json

    orchestrator = get_orchestrator()
    conversation_id = str(uuid.uuid4())
    transcript: List[ConversationTurn] = []
    logger.info("Console session %s started", conversation_id)

    while True:
        try:
            text = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            break
        if text.lower() in ("quit", "exit"):
            break
        if not text:
            continue

        outcome = orchestrator.handle_turn(TurnInput(
            conversation_id=conversation_id,
            prior_turns=transcript,
            new_user_message=text,
        ))
        transcript = outcome.turns
        print("\n" + json.dumps(outcome.response.to_wire(), indent=2) + "\n")
