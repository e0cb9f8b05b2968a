from __future__ import annotations

import pytest

from linkd.agents.capabilities import RuleIntentClassifier, default_capabilities
from linkd.config import resolve_reasoner
from linkd.errors import ReasonerUnavailable
from linkd.tools.query_tools import RuleQueryPlanner, default_planner
from linkd.utils.logger import setup_logger


def test_groq_without_key_only_fails_when_capabilities_are_built(settings_env):
    settings = settings_env(REASONER="groq", GROQ_API_KEY="", GROQ_API_KEY_1="")

    assert settings.reasoner == "groq"
    assert setup_logger().name == "linkd"
    with pytest.raises(ReasonerUnavailable):
        default_capabilities()
    with pytest.raises(ReasonerUnavailable):
        default_planner()


def test_unknown_reasoner_is_reported_on_use(settings_env):
    settings = settings_env(REASONER="oracle")
    with pytest.raises(ReasonerUnavailable):
        resolve_reasoner(settings)


def test_rules_reasoner_needs_no_key(settings_env):
    settings_env(REASONER="rules", GROQ_API_KEY="", GROQ_API_KEY_1="")

    assert isinstance(default_capabilities().classifier, RuleIntentClassifier)
    assert isinstance(default_planner(), RuleQueryPlanner)


def test_conversation_store_size_comes_from_settings(settings_env):
    from linkd.conversation import InMemoryConversationStore

    settings_env(MAX_CONVERSATIONS=7)
    assert InMemoryConversationStore().max_conversations == 7
