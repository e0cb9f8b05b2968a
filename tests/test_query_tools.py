from __future__ import annotations

import pytest

from linkd.errors import QueryGenerationFailed
from linkd.schemas import QuerySet, SearchTarget, UserContext
from linkd.tools.query_tools import RuleQueryPlanner, build_queries, generate_search_queries


def test_build_queries_cover_linkedin_and_synonyms():
    queries = build_queries(SearchTarget(company="Acme Corp", role="recruiter", location="Austin"))

    assert queries[0] == '"Acme Corp" recruiter Austin'
    assert 'site:linkedin.com/in "Acme Corp" recruiter' in queries
    assert any("talent acquisition" in q for q in queries)
    assert len(queries) == len({q.lower() for q in queries})


def test_build_queries_respects_limit():
    assert len(build_queries(SearchTarget(company="Acme Corp", role="recruiter"), limit=2)) == 2


def test_rule_planner_uses_requester_location():
    query_set = RuleQueryPlanner().plan("data people at Acme Corp", UserContext(location="Denver"))
    assert query_set.queries[0] == "data people at Acme Corp Denver"
    assert "data people at Acme Corp site:linkedin.com/in" in query_set.queries


def test_empty_goal_fails():
    with pytest.raises(QueryGenerationFailed):
        generate_search_queries("   ", UserContext(), planner=RuleQueryPlanner())


def test_blank_planner_output_fails():
    class BlankPlanner:
        def plan(self, goal, context):
            return {"queries": ["  ", ""]}

    with pytest.raises(QueryGenerationFailed):
        generate_search_queries("people at Acme Corp", UserContext(), planner=BlankPlanner())


def test_planned_queries_are_capped(settings_env):
    settings_env(MAX_QUERIES=2)

    class ChattyPlanner:
        def plan(self, goal, context):
            return QuerySet(queries=[f"q{i}" for i in range(8)], reasoning="many")

    query_set = generate_search_queries("people at Acme Corp", UserContext(), planner=ChattyPlanner())
    assert query_set.queries == ["q0", "q1"]
    assert query_set.reasoning == "many"


def test_requester_location_narrows_first_then_broadens():
    queries = build_queries(SearchTarget(company="Acme Corp", role="recruiter"), UserContext(location="Ottawa"))

    located = [q for q in queries if "Ottawa" in q]
    assert queries[0] == '"Acme Corp" recruiter Ottawa'
    assert queries[: len(located)] == located
    assert 'site:linkedin.com/in "Acme Corp" recruiter' in queries[len(located):]


def test_requested_location_wins_over_profile_location():
    target = SearchTarget(company="Acme Corp", role="recruiter", location="Austin")
    queries = build_queries(target, UserContext(location="Ottawa"))

    assert queries[0] == '"Acme Corp" recruiter Austin'
    assert not any("Ottawa" in q for q in queries)
