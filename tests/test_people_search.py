from __future__ import annotations

import time

from conftest import APEX_IDENTITY, JANE, JANE_TEAM_PAGE, JOHN, STRIPE_IDENTITY, UNRELATED, FakeTools

from linkd.agents.reporter import FAILURE_MESSAGE
from linkd.errors import ContextUnavailable, QueryGenerationFailed
from linkd.graph.builder import PeopleSearchAgent
from linkd.schemas import Person, SearchTarget

ACME_RECRUITERS = SearchTarget(company="Acme Corp", role="recruiter", goal="find recruiters at Acme Corp")


def _agent(fake, rule_capabilities):
    return PeopleSearchAgent(fake.toolbox(), rule_capabilities)


def test_scenario_a_one_recruiter_with_broaden_offer(rule_capabilities):
    fake = FakeTools(profile={"field": "CS", "location": "SF"}, results=[JANE, JANE_TEAM_PAGE, UNRELATED])

    run = _agent(fake, rule_capabilities).search(ACME_RECRUITERS, user_identity="user-1")

    assert run.response.status == "people_found"
    assert [p.name for p in run.response.people] == ["Jane Doe"]
    assert "broaden" in run.response.message
    assert "Jane Doe" not in run.response.message
    assert run.trace == ["GATHER_CONTEXT", "SEARCH", "EXTRACT", "PRESENT"]


def test_user_context_is_gathered_before_any_search(rule_capabilities):
    fake = FakeTools(profile={"field": "CS"}, results=[JANE])
    _agent(fake, rule_capabilities).search(ACME_RECRUITERS, user_identity="user-1")

    assert fake.names()[0] == "get_user_info"
    assert fake.calls[0] == ("get_user_info", "user-1")
    assert "web_search" in fake.names()[1:]


def test_specific_role_searches_without_planning(rule_capabilities, settings_env):
    settings_env(MAX_QUERIES=4)
    fake = FakeTools(results=[JANE])
    _agent(fake, rule_capabilities).search(ACME_RECRUITERS)

    assert "generate_search_queries" not in fake.names()
    searches = [q for name, q in fake.calls if name == "web_search" and "official site" not in q]
    assert 1 <= len(searches) <= 4
    assert any("site:linkedin.com/in" in q for q in searches)


def test_profile_location_reaches_the_search_queries(rule_capabilities):
    fake = FakeTools(profile={"location": "Ottawa"}, results=[JANE])
    _agent(fake, rule_capabilities).search(ACME_RECRUITERS, user_identity="user-1")

    searches = [q for name, q in fake.calls if name == "web_search" and "official site" not in q]
    assert '"Acme Corp" recruiter Ottawa' in searches
    assert any("Ottawa" not in q for q in searches)


def test_vague_role_plans_queries_first(rule_capabilities):
    fake = FakeTools(results=[JANE, JOHN], queries=["acme corp staff", "acme corp team linkedin"])
    target = SearchTarget(company="Acme Corp", role="people", goal="who should I reach out to at Acme Corp")

    run = _agent(fake, rule_capabilities).search(target)

    assert run.trace == ["GATHER_CONTEXT", "PLAN_QUERIES", "SEARCH", "EXTRACT", "PRESENT"]
    searches = [q for name, q in fake.calls if name == "web_search" and "official site" not in q]
    assert searches == ["acme corp staff", "acme corp team linkedin"]
    assert run.response.status == "people_found"
    assert len(run.response.people) == 2


def test_three_or_more_people_offer_emails_without_broadening(rule_capabilities):
    extra = {
        "title": "Ada Park - Recruiting Lead - Acme Corp | LinkedIn",
        "snippet": "Ada Park, Recruiting Lead, Acme Corp.",
        "url": "https://www.linkedin.com/in/adapark",
        "source_engine": "duckduckgo",
    }
    fake = FakeTools(results=[JANE, JOHN, extra])
    run = _agent(fake, rule_capabilities).search(ACME_RECRUITERS)

    assert len(run.response.people) == 3
    assert "broaden" not in run.response.message
    assert "emails" in run.response.message


def test_scenario_d_ambiguous_company_stops_at_clarification(rule_capabilities):
    fake = FakeTools(identity_results=APEX_IDENTITY, results=[JANE])
    target = SearchTarget(company="Apex", role="people", goal="find people at Apex")

    run = _agent(fake, rule_capabilities).search(target)

    assert run.response.status == "clarification_needed"
    assert len(run.response.company_options) >= 2
    assert run.trace == ["GATHER_CONTEXT", "CLARIFY"]
    assert fake.names() == ["get_user_info", "web_search"]


def test_company_with_a_second_domain_is_not_ambiguous(rule_capabilities):
    fake = FakeTools(identity_results=STRIPE_IDENTITY, results=[])
    target = SearchTarget(company="Stripe", role="recruiter", goal="find recruiters at Stripe")

    run = _agent(fake, rule_capabilities).search(target)

    assert run.response.status == "cant_find"
    assert run.company_domain == "stripe.com"
    assert "CLARIFY" not in run.trace


def test_known_domain_skips_disambiguation(rule_capabilities):
    fake = FakeTools(identity_results=APEX_IDENTITY, results=[])
    target = SearchTarget(company="Apex Systems", role="recruiter", company_domain="apexsystems.com")

    run = _agent(fake, rule_capabilities).search(target)

    assert not any("official site" in q for name, q in fake.calls if name == "web_search")
    assert run.company_domain == "apexsystems.com"
    assert run.response.status == "cant_find"


def test_nobody_found_is_cant_find(rule_capabilities):
    fake = FakeTools(results=[UNRELATED])
    run = _agent(fake, rule_capabilities).search(ACME_RECRUITERS)

    assert run.response.status == "cant_find"
    assert run.response.people is None
    assert run.trace[-1] == "PRESENT"


def test_context_unavailable_proceeds_with_empty_context(rule_capabilities):
    fake = FakeTools(results=[JANE], profile_error=ContextUnavailable("profile store down"))
    run = _agent(fake, rule_capabilities).search(ACME_RECRUITERS)

    assert run.response.status == "people_found"


def test_unexpected_profile_store_error_is_treated_as_unavailable(rule_capabilities):
    fake = FakeTools(results=[JANE], profile_error=RuntimeError("boom"))
    run = _agent(fake, rule_capabilities).search(ACME_RECRUITERS)

    assert run.response.status == "people_found"


def test_query_generation_failure_is_fatal_and_generic(rule_capabilities):
    fake = FakeTools(results=[JANE], planner_error=QueryGenerationFailed("no queries for 'secret goal'"))
    target = SearchTarget(company="Acme Corp", role="people", goal="secret goal at Acme Corp")

    run = _agent(fake, rule_capabilities).search(target)

    assert run.response.status == "cant_find"
    assert run.response.message == FAILURE_MESSAGE
    assert "secret" not in run.response.message
    assert run.trace[-1] == "FAIL"
    assert fake.names() == ["get_user_info", "web_search", "generate_search_queries"]
    assert all("secret" not in q for name, q in fake.calls if name == "web_search")


def test_malformed_search_output_fails_the_turn(rule_capabilities):
    fake = FakeTools(results=[dict(JANE, rank=1)])
    run = _agent(fake, rule_capabilities).search(ACME_RECRUITERS)

    assert run.response.status == "cant_find"
    assert run.trace[-1] == "FAIL"


def test_slow_search_is_treated_as_empty(rule_capabilities, settings_env):
    settings_env(TOOL_TIMEOUT_SECONDS=0.3, MAX_QUERIES=2, SEARCH_CONCURRENCY=2)

    class SlowOnce(FakeTools):
        def search(self, query):
            if "site:linkedin.com/in" in query:
                time.sleep(1.0)
                return [JOHN]
            return super().search(query)

    fake = SlowOnce(results=[JANE])
    run = _agent(fake, rule_capabilities).search(ACME_RECRUITERS)

    assert run.response.status == "people_found"
    assert [p.name for p in run.response.people] == ["Jane Doe"]


def test_search_turn_never_resolves_emails(rule_capabilities):
    fake = FakeTools(results=[JANE, JOHN], emails={"Jane Doe": "jane.doe@acme.com"})
    run = _agent(fake, rule_capabilities).search(ACME_RECRUITERS)

    assert "find_and_verify_email" not in fake.names()
    assert "RESOLVE_EMAILS" not in run.trace
    assert run.response.emails is None


def _people():
    return [
        Person(name="Jane Doe", role="Technical Recruiter", company="Acme Corp", source="linkedin",
               linkedin_url="https://www.linkedin.com/in/janedoe"),
        Person(name="John Smith", role="Talent Acquisition Partner", company="Acme Corp", source="web",
               web_url="https://acme.com/team"),
    ]


def test_scenario_c_one_miss_does_not_affect_the_other(rule_capabilities):
    fake = FakeTools(emails={"Jane Doe": "jane.doe@acme.com", "John Smith": None})
    run = _agent(fake, rule_capabilities).resolve_emails(_people(), "acme.com")

    assert run.response.status == "emails_found"
    assert run.trace == ["RESOLVE_EMAILS"]
    by_name = {e.name: e for e in run.response.emails}
    assert by_name["Jane Doe"].email == "jane.doe@acme.com"
    assert by_name["John Smith"].email is None
    assert by_name["John Smith"].email_source == "none"
    assert fake.names() == ["find_and_verify_email", "find_and_verify_email"]


def test_failed_or_slow_lookups_become_none(rule_capabilities, settings_env):
    settings_env(TOOL_TIMEOUT_SECONDS=0.3)
    fake = FakeTools(emails={"Jane Doe": RuntimeError("provider down"), "John Smith": 1.0})
    run = _agent(fake, rule_capabilities).resolve_emails(_people())

    assert run.response.status == "emails_found"
    assert [e.email_source for e in run.response.emails] == ["none", "none"]
    assert "again" not in run.response.message.lower()


def test_email_turn_makes_no_search_calls(rule_capabilities):
    fake = FakeTools(results=[JANE], emails={"Jane Doe": "jane.doe@acme.com"})
    _agent(fake, rule_capabilities).resolve_emails(_people()[:1])

    assert set(fake.names()) == {"find_and_verify_email"}


def test_interns_are_not_presented_as_recruiters(rule_capabilities):
    intern = {
        "title": "John Smith - Acme Corp | LinkedIn",
        "snippet": "John Smith, Software Engineering Intern, Acme Corp.",
        "url": "https://www.linkedin.com/in/johnsmith",
        "source_engine": "duckduckgo",
    }
    fake = FakeTools(results=[intern])
    run = _agent(fake, rule_capabilities).search(ACME_RECRUITERS)

    assert run.response.status == "cant_find"
