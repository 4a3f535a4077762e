import pytest

from smartbudget.repositories import store
from smartbudget.services import chat
from smartbudget.utils import llm as llm_mod

USER = "demoUser"


def _say(text):
    return [{"role": "user", "content": text}]


@pytest.fixture
def thailand(db_session):
    store.get_or_create_user(db_session, USER)
    return store.create_goal(
        db_session,
        USER,
        {
            "title": "Thailand trip",
            "target_amount": 2000.0,
            "target_date": "2099-01-01",
            "rules": ["Transfer 20.00 CHF to savings each month", "Cook at home"],
        },
    )


def test_deposit_raises_saved_amount(db_session, thailand):
    res = chat.process_chat(db_session, USER, _say("I saved 200 at Thailand trip"))
    assert res.intent == "deposit"
    assert [g.current_saved_amount for g in res.updated_goals] == [200.0]
    assert "200.00 CHF" in res.assistant_message

    res = chat.process_chat(db_session, USER, _say("I saved 50.5 at Thailand trip"))
    assert res.updated_goals[0].current_saved_amount == pytest.approx(250.5)


def test_complete_sets_saved_to_target_and_rereads_identically(db_session, thailand):
    res = chat.process_chat(db_session, USER, _say("Thailand trip reached!"))
    assert res.intent == "complete"
    db_session.expire_all()
    again = store.get_goal(db_session, USER, thailand.id)
    assert again.current_saved_amount == again.target_amount == 2000.0
    assert again.progress_pct == 100


def test_rule_add_and_remove(db_session, thailand):
    res = chat.process_chat(db_session, USER, _say("Add rule to Thailand trip: No takeaway"))
    assert res.intent == "rule_add"
    assert res.updated_goals[0].rules[-1] == "No takeaway"
    # translations fall back to the source text but stay aligned
    assert len(res.updated_goals[0].rules_translated) == 3

    res = chat.process_chat(db_session, USER, _say("remove rule 2 from Thailand trip"))
    assert res.intent == "rule_remove"
    assert res.updated_goals[0].rules == ["Transfer 20.00 CHF to savings each month", "No takeaway"]
    assert res.updated_goals[0].rules_translated == res.updated_goals[0].rules


def test_contribution_rule_is_never_removed(db_session, thailand):
    res = chat.process_chat(db_session, USER, _say("remove rule 1"))
    assert res.intent == "rule_remove"
    assert len(res.updated_goals[0].rules) == 2

    res = chat.process_chat(db_session, USER, _say('delete rule "savings"'))
    assert res.updated_goals[0].rules[0].startswith("Transfer")


def test_delete_goal(db_session, thailand):
    res = chat.process_chat(db_session, USER, _say("please delete Thailand trip"))
    assert res.intent == "delete"
    assert res.updated_goals == []


def test_create_goal_uses_default_when_model_unavailable(db_session):
    store.get_or_create_user(db_session, USER)
    res = chat.process_chat(db_session, USER, _say("I want to save 3000 CHF for a new laptop"))
    assert res.intent == "create_goal"
    assert len(res.updated_goals) == 1
    goal = res.updated_goals[0]
    assert goal.title == "new goal"
    assert goal.current_saved_amount == 0
    assert goal.rules[0].startswith("Transfer ")
    assert "new goal" in res.assistant_message
    assert "so I used defaults" in res.assistant_message


def test_update_goal_from_model_reply(db_session, thailand, monkeypatch):
    monkeypatch.setattr(
        llm_mod,
        "complete",
        lambda s, u, t=0.7: '{"targetAmount": 3000, "targetDate": "2098-01-01"}',
    )
    res = chat.process_chat(db_session, USER, _say("change Thailand trip to 3000"))
    assert res.intent == "update"
    goal = res.updated_goals[0]
    assert goal.title == "Thailand trip"
    assert goal.target_amount == 3000
    assert goal.target_date == "2098-01-01"
    assert goal.rules[1:] == ["Cook at home"]


def test_update_without_model_only_recomputes_transfer(db_session, thailand):
    res = chat.process_chat(db_session, USER, _say("change Thailand trip please"))
    assert res.intent == "update"
    goal = res.updated_goals[0]
    assert (goal.title, goal.target_amount, goal.target_date) == ("Thailand trip", 2000.0, "2099-01-01")
    assert goal.rules[1:] == ["Cook at home"]
    assert "only recalculated the monthly transfer" in res.assistant_message


def test_remove_rule_by_name_keeps_the_goal(db_session, thailand):
    res = chat.process_chat(db_session, USER, _say("Please remove the cook at home rule from Thailand trip"))
    assert res.intent == "rule_remove"
    assert len(res.updated_goals) == 1
    assert res.updated_goals[0].rules == ["Transfer 20.00 CHF to savings each month"]


def test_handler_failure_becomes_friendly_message(db_session, thailand, monkeypatch):
    def broken(*a, **k):
        raise RuntimeError("db gone")

    monkeypatch.setattr(store, "update_goal_amount", broken)
    res = chat.process_chat(db_session, USER, _say("I saved 200 at Thailand trip"))
    assert res.intent == "deposit"
    assert res.updated_goals is None
    assert res.assistant_message.startswith("I could not save the deposit")


def test_general_uses_mock_reply_without_model(db_session):
    res = chat.process_chat(db_session, USER, _say("Any tips on impulse buying?"))
    assert res.intent == "general"
    assert res.updated_goals is None
    assert "24-hour rule" in res.assistant_message


def test_general_forwards_conversation_with_context(db_session, thailand, monkeypatch):
    seen = {}

    def fake_chat(messages, temperature=0.7):
        seen["messages"] = messages
        return "Keep going!"

    monkeypatch.setattr(llm_mod, "complete_chat", fake_chat)
    conv = [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
        {"role": "user", "content": "how am I doing?"},
    ]
    res = chat.process_chat(db_session, USER, conv)
    assert res.assistant_message == "Keep going!"
    system = seen["messages"][0]
    assert system["role"] == "system"
    assert "Monthly net income: 5000.00 CHF" in system["content"]
    assert "Thailand trip: 2000.00 CHF by 2099-01-01" in system["content"]
    assert seen["messages"][1:] == conv
