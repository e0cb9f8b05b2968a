from __future__ import annotations

from linkd.agents.capabilities import RuleIntentClassifier, extract_company, extract_location
from linkd.agents.triage import NOTHING_PENDING_REPLY, TriageRouter
from linkd.schemas import CompanyOption, ConversationTurn, SearchResponse, TriageDecision


def _user(text):
    return ConversationTurn(role="user", content=text)


def _assistant(text, response=None):
    return ConversationTurn(role="assistant", content=text, response=response)


def _route(*turns, awaiting=False):
    return TriageRouter(RuleIntentClassifier()).route(list(turns), awaiting_confirmation=awaiting)


def test_greeting_gets_direct_reply():
    decision = _route(_user("hey"))
    assert decision.route == "direct_reply"
    assert decision.intent == "greeting"
    assert decision.reply


def test_company_and_role_route_to_search():
    decision = _route(_user("find recruiters at Acme Corp in SF"))
    assert decision.route == "people_search"
    assert decision.intent == "search"
    assert decision.company == "Acme Corp"
    assert decision.role == "recruiter"
    assert decision.location == "SF"


def test_missing_company_asks_for_it():
    decision = _route(_user("find me some recruiters"))
    assert decision.route == "direct_reply"
    assert decision.intent == "clarify_company"
    assert "company" in decision.reply.lower()


def test_missing_role_asks_for_it():
    decision = _route(_user("who works at Stripe?"))
    assert decision.intent == "clarify_role"
    assert decision.company == "Stripe"
    assert "Stripe" in decision.reply


def test_company_and_role_may_come_from_different_turns():
    decision = _route(
        _user("who works at Stripe?"),
        _assistant("Who at Stripe should I look for?"),
        _user("recruiters please"),
    )
    assert decision.intent == "search"
    assert (decision.company, decision.role) == ("Stripe", "recruiter")

    decision = _route(
        _user("find me some engineers"),
        _assistant("Which company should I look for engineers at?"),
        _user("Datadog"),
    )
    assert decision.intent == "search"
    assert (decision.company, decision.role) == ("Datadog", "engineer")


def test_ambiguous_turn_asks_instead_of_searching():
    decision = _route(_user("can you help me out"))
    assert decision.route == "direct_reply"
    assert decision.intent == "clarify_company"


def test_affirmative_with_pending_presentation_confirms_emails():
    decision = _route(
        _user("find recruiters at Acme Corp"),
        _assistant("Found 2 recruiters at Acme Corp. Want me to find their emails?"),
        _user("yes find their emails"),
        awaiting=True,
    )
    assert decision.route == "people_search"
    assert decision.intent == "confirm_emails"


def test_decline_with_pending_presentation():
    decision = _route(_user("no thanks"), awaiting=True)
    assert decision.route == "direct_reply"
    assert decision.intent == "decline_emails"


def test_email_request_without_presentation_gets_direct_reply():
    decision = _route(_user("get their emails"), awaiting=False)
    assert decision.route == "direct_reply"
    assert decision.reply == NOTHING_PENDING_REPLY


def test_router_downgrades_unbacked_confirmation_from_any_classifier():
    class AlwaysConfirm:
        def classify(self, turns, awaiting_confirmation):
            return TriageDecision(route="people_search", intent="confirm_emails")

    decision = TriageRouter(AlwaysConfirm()).route([_user("sure")], awaiting_confirmation=False)
    assert decision.route == "direct_reply"


def test_new_search_while_awaiting_is_a_search():
    decision = _route(_user("actually find engineers at Stripe"), awaiting=True)
    assert decision.intent == "search"
    assert decision.company == "Stripe"


def test_picking_an_offered_company_resumes_the_search():
    options = [
        CompanyOption(name="Apex Systems", domain="apexsystems.com"),
        CompanyOption(name="Apex Logistics", domain="apexlogistics.com"),
    ]
    clarification = SearchResponse(
        status="clarification_needed",
        message="There's more than one company called Apex. Which one do you mean?",
        company_options=options,
    )
    turns = [
        _user("find people at Apex"),
        _assistant(clarification.message, clarification),
    ]

    decision = _route(*turns, _user("the second one"))
    assert decision.intent == "search"
    assert (decision.company, decision.company_domain) == ("Apex Logistics", "apexlogistics.com")
    assert decision.role == "people"

    decision = _route(*turns, _user("Apex Systems"))
    assert decision.company_domain == "apexsystems.com"


def test_company_and_location_extraction():
    assert extract_company("recruiters at Bank of America in Charlotte") == "Bank of America"
    assert extract_company("engineers at acme corp") == "acme corp"
    assert extract_company("find recruiters") is None
    assert extract_location("recruiters at Acme in San Francisco", "Acme") == "San Francisco"


def test_named_person_email_request_is_an_email_lookup():
    decision = _route(_user("what's Sarah Johnson's email at Uber?"))
    assert decision.route == "people_search"
    assert decision.intent == "email_lookup"
    assert (decision.person_name, decision.company, decision.role) == ("Sarah Johnson", "Uber", None)

    decision = _route(_user("Find the email for Sarah Johnson from Acme Corp"))
    assert (decision.intent, decision.person_name, decision.company) == ("email_lookup", "Sarah Johnson", "Acme Corp")


def test_email_lookup_needs_no_pending_presentation():
    class NamedLookup:
        def classify(self, turns, awaiting_confirmation):
            return TriageDecision(route="people_search", intent="email_lookup",
                                  person_name="Sarah Johnson", company="Uber")

    decision = TriageRouter(NamedLookup()).route([_user("Sarah Johnson's email at Uber")], awaiting_confirmation=False)
    assert decision.intent == "email_lookup"


def test_named_person_without_company_is_asked_for_it():
    decision = _route(_user("can you get the email for Sarah Johnson"))
    assert decision.route == "direct_reply"
    assert decision.intent == "clarify_company"
    assert decision.reply == "Which company does Sarah Johnson work at?"

    decision = _route(
        _user("can you get the email for Sarah Johnson"),
        _assistant(decision.reply),
        _user("Uber"),
    )
    assert (decision.intent, decision.person_name, decision.company) == ("email_lookup", "Sarah Johnson", "Uber")


def test_email_alone_is_not_a_role_request():
    decision = _route(_user("find emails at Uber"))
    assert decision.intent != "search"
