import pytest

from smartbudget.services.heuristics import classify_fallback, match_rule


@pytest.mark.parametrize(
    "merchant,amount,category,impulse,label",
    [
        ("Migros Bern", 45.20, "groceries", False, "useful"),
        ("COOP CITY", 120.0, "groceries", False, "useful"),
        ("Zalando", 89.50, "shopping", True, "unnecessary"),
        ("Zalando", 30.0, "shopping", False, "useful"),
        ("Uber Eats", 35.0, "food delivery", True, "useful"),
        ("Uber Eats", 45.0, "food delivery", True, "unnecessary"),
        ("Uber", 22.0, "transport", False, "useful"),
        ("Netflix", 15.9, "entertainment", False, "useful"),
        ("Bäckerei Müller", 8.0, "general", False, "useful"),
    ],
)
def test_fallback_table(merchant, amount, category, impulse, label):
    out = classify_fallback(merchant, amount)
    assert out["category"] == category
    assert out["is_impulse"] is impulse
    assert out["decision_label"] == label
    assert merchant in out["decision_explanation"]


def test_longest_keyword_wins():
    rule, kw = match_rule("UBER EATS *ORDER")
    assert rule.category == "food delivery"
    assert kw == "uber eats"


def test_fallback_is_pure():
    a = classify_fallback("H&M Zürich", 75.0)
    b = classify_fallback("H&M Zürich", 75.0)
    assert a == b
    assert a["category"] == "shopping"


def test_explanation_templates_follow_impulse_flag():
    assert classify_fallback("Zalando", 200)["decision_explanation"].startswith("Spontaneous purchase")
    assert classify_fallback("Migros", 20)["decision_explanation"].startswith("Regular purchase")
