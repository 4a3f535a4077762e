import pytest

from smartbudget.utils import llm as llm_mod


def _post(client, **body):
    r = client.post("/transactions", json=body)
    assert r.status_code == 201, r.text
    return r.json()


def test_month_analysis_end_to_end(client):
    _post(client, date="2025-03-10", merchant="Migros", amount=45.20)
    _post(client, date="2025-03-10", merchant="Zalando", amount=89.50)

    r = client.get("/analysis", params={"mode": "auto", "timeframe": "month", "month": "2025-03"})
    assert r.status_code == 200
    j = r.json()
    assert j["budget_ceiling"] == pytest.approx(3000.0)
    assert j["used"] == pytest.approx(134.70)
    assert j["by_category"] == [
        {"category": "shopping", "amount": pytest.approx(89.5)},
        {"category": "groceries", "amount": pytest.approx(45.2)},
    ]
    assert [t["merchant"] for t in j["impulse_transactions"]] == ["Zalando"]
    assert j["goals"] == []


def test_create_transaction_is_always_classified(client):
    t = _post(client, date="2025-03-11", merchant="Bäckerei Müller", amount=8.4)
    assert t["category"] == "general"
    assert t["decision_label"] == "useful"
    assert t["decision_explanation"]
    assert t["decision_explanation_translated"] == t["decision_explanation"]


def test_merchant_history_hint_reaches_classifier(client, monkeypatch):
    _post(client, date="2025-03-01", merchant="Kiosk 12", amount=5, raw_category="snacks")
    prompts = []

    def fake_complete(system, user, temperature=0.7):
        prompts.append(user)
        return '{"category": "snacks"}'

    monkeypatch.setattr(llm_mod, "complete", fake_complete)
    t = _post(client, date="2025-03-02", merchant="Kiosk 12", amount=4)
    assert t["category"] == "snacks"
    assert "Category (from user): general" in prompts[0]


@pytest.mark.parametrize(
    "body",
    [
        {"date": "2025-13-01", "merchant": "x", "amount": 1},
        {"date": "2025-03-01", "merchant": "", "amount": 1},
        {"date": "2025-03-01", "merchant": "x", "amount": "lots"},
        {"date": "2025-03-01", "amount": 1},
    ],
)
def test_invalid_transactions_rejected(client, body):
    assert client.post("/transactions", json=body).status_code == 422


def test_bulk_ingest(client):
    r = client.post(
        "/transactions/bulk",
        json={
            "transactions": [
                {"date": "2025-03-01", "merchant": "SBB", "amount": 85},
                {"date": "2025-03-02", "merchant": "Netflix", "amount": 15.9},
            ]
        },
    )
    assert r.status_code == 200
    j = r.json()
    assert [t["category"] for t in j["created"]] == ["transport", "entertainment"]
    assert j["errors"] == []
    assert len(client.get("/transactions").json()) == 2


def test_bulk_ingest_reports_bad_rows_and_keeps_good_ones(client):
    r = client.post(
        "/transactions/bulk",
        json={
            "transactions": [
                {"date": "2025-03-01", "merchant": "SBB", "amount": 85},
                {"date": "2025-03-02", "merchant": "", "amount": 15.9},
                {"date": "03/04/2025", "merchant": "Coop", "amount": 45.2},
            ]
        },
    )
    assert r.status_code == 200
    j = r.json()
    assert [t["merchant"] for t in j["created"]] == ["SBB"]
    assert [e["row"] for e in j["errors"]] == [1, 2]
    assert j["errors"][0]["error"].startswith("merchant:")
    assert j["errors"][1]["error"].startswith("date:")
    assert len(client.get("/transactions").json()) == 1


def test_correction_and_justification(client):
    t = _post(client, date="2025-03-10", merchant="Zalando", amount=89.5)
    r = client.patch(f"/transactions/{t['id']}", json={"category": "clothing", "decision_label": "useful"})
    assert r.status_code == 200
    assert r.json()["category"] == "clothing"
    assert r.json()["is_impulse"] is True

    r = client.post(f"/transactions/{t['id']}/impulse", json={"justification": "Old jacket broke"})
    assert r.status_code == 200
    j = r.json()
    assert j["decision_explanation"] == "Old jacket broke"
    assert j["justification"] == "Old jacket broke"
    assert j["category"] == "clothing"

    assert client.patch("/transactions/nope", json={"category": "x"}).status_code == 404
    assert client.post("/transactions/nope/impulse", json={}).status_code == 404


@pytest.mark.parametrize(
    "params",
    [
        {"timeframe": "custom", "start": "2025-03-10", "end": "2025-03-01"},
        {"timeframe": "custom", "start": "2025-03-10"},
        {"timeframe": "custom", "start": "yesterday", "end": "2025-03-01"},
    ],
)
def test_invalid_custom_range_is_400(client, params):
    assert client.get("/analysis", params=params).status_code == 400


def test_manual_mode_uses_user_allowance(client):
    r = client.patch("/user", json={"monthly_budget": 2500})
    assert r.status_code == 200
    assert r.json()["flexible_budget"] == 2500
    j = client.get("/analysis", params={"mode": "manual", "timeframe": "year", "month": "2025-02"}).json()
    assert j["budget_ceiling"] == pytest.approx(5000)
    assert j["months_in_period"] == 2


def test_users_are_isolated_by_header(client):
    _post(client, date="2025-03-10", merchant="Migros", amount=45.2)
    r = client.get("/transactions", headers={"X-User-Id": "someone-else"})
    assert r.json() == []
    assert client.get("/user", headers={"X-User-Id": "someone-else"}).json()["id"] == "someone-else"


def test_chat_and_goal_endpoints(client):
    r = client.post(
        "/chat",
        json={"conversation": [{"role": "user", "content": "I want to save 3000 CHF for a car"}]},
    )
    assert r.status_code == 200
    j = r.json()
    assert j["intent"] == "create_goal"
    goal = j["updated_goals"][0]

    r = client.post(
        "/chat",
        json={"conversation": [{"role": "user", "content": f"I saved 200 at {goal['title']}"}]},
    )
    assert r.json()["updated_goals"][0]["current_saved_amount"] == 200

    r = client.patch(f"/goals/{goal['id']}", json={"amount": -500})
    assert r.status_code == 200
    assert r.json()["current_saved_amount"] == 0

    assert client.patch("/goals/missing", json={"amount": 1}).status_code == 404
    assert client.delete(f"/goals/{goal['id']}").status_code == 204
    assert client.get("/goals").json() == []
    assert client.delete(f"/goals/{goal['id']}").status_code == 404


def test_chat_rejects_empty_conversation(client):
    assert client.post("/chat", json={"conversation": []}).status_code == 422
