import pytest

from smartbudget.services.budget import (
    InvalidPeriodError,
    PeriodSpec,
    compute_budget,
    is_income,
    is_salary,
)
from tests.factories.txns import create_txn


def test_month_scenario_without_salary_uses_baseline():
    txns = [
        create_txn(date_="2025-03-10", merchant="Migros", amount=45.20, category="groceries"),
        create_txn(date_="2025-03-10", merchant="Zalando", amount=89.50, category="shopping", is_impulse=True),
    ]
    s = compute_budget(txns, PeriodSpec.for_month("2025-03"), "auto", baseline_income=5000)
    assert s.budget_ceiling == pytest.approx(3000.00)
    assert s.ceiling_source == "baseline"
    assert s.used == pytest.approx(134.70)
    assert s.by_category == [
        {"category": "shopping", "amount": pytest.approx(89.50)},
        {"category": "groceries", "amount": pytest.approx(45.20)},
    ]
    assert s.timeframe == "month"
    assert [t.merchant for t in s.impulse_transactions] == ["Zalando"]
    assert 1 <= len(s.patterns) <= 3


def test_scoping_ignores_other_months():
    txns = [
        create_txn(date_="2025-02-28", merchant="Coop", amount=50, category="groceries"),
        create_txn(date_="2025-03-01", merchant="Coop", amount=20, category="groceries"),
        create_txn(date_="2025-04-01", merchant="Coop", amount=70, category="groceries"),
    ]
    s = compute_budget(txns, PeriodSpec.for_month("2025-03"), baseline_income=5000)
    assert s.used == pytest.approx(20)


@pytest.mark.parametrize(
    "period,months",
    [
        (PeriodSpec.for_month("2025-07"), 1),
        (PeriodSpec.for_year("2025-04"), 4),
        (PeriodSpec.for_year("2025-12"), 12),
        (PeriodSpec.for_range("2025-01-15", "2025-03-02"), 3),
        (PeriodSpec.for_range("2025-05-01", "2025-05-31"), 1),
        (PeriodSpec.for_range("2024-11-20", "2025-02-10"), 4),
    ],
)
def test_months_in_period(period, months):
    assert period.months() == months


def test_auto_without_any_salary_is_baseline_share_times_months():
    txns = [create_txn(date_="2025-02-03", merchant="Coop", amount=10, category="groceries")]
    s = compute_budget(txns, PeriodSpec.for_year("2025-04"), "auto", baseline_income=4200)
    assert s.budget_ceiling == pytest.approx(4200 * 0.6 * 4)
    assert s.months_in_period == 4


def test_observed_salary_in_scope_is_the_ceiling():
    txns = [
        create_txn(date_="2025-03-25", merchant="ACME AG", amount=6100, category="salary"),
        create_txn(date_="2025-03-26", merchant="Coop", amount=80, category="groceries"),
    ]
    s = compute_budget(txns, PeriodSpec.for_month("2025-03"), baseline_income=5000)
    assert s.budget_ceiling == pytest.approx(6100)
    assert s.ceiling_source == "salary"
    # income never counts as spending
    assert s.used == pytest.approx(80)
    assert [c["category"] for c in s.by_category] == ["groceries"]


def test_salary_history_average_when_period_has_none():
    txns = [
        create_txn(date_="2025-01-25", merchant="Lohn ACME", amount=5000, category="other income"),
        create_txn(date_="2025-02-25", merchant="ACME payroll", amount=6000, category="general"),
        # outside the trailing 12 months ending 2025-03
        create_txn(date_="2024-01-25", merchant="Lohn ACME", amount=90000, category="salary"),
    ]
    s = compute_budget(txns, PeriodSpec.for_month("2025-03"), baseline_income=1000)
    assert s.budget_ceiling == pytest.approx(5500 * 0.6)
    assert s.ceiling_source == "salary_history"


def test_custom_range_history_window_ends_at_range_end():
    txns = [create_txn(date_="2025-06-25", merchant="Gehalt", amount=4000, category="salary")]
    s = compute_budget(txns, PeriodSpec.for_range("2025-07-01", "2025-08-31"), baseline_income=1000)
    assert s.budget_ceiling == pytest.approx(4000 * 0.6 * 2)


def test_manual_mode_uses_flexible_budget():
    s = compute_budget([], PeriodSpec.for_year("2025-06"), "manual", baseline_income=5000, flexible_budget=2000)
    assert s.budget_ceiling == pytest.approx(12000)
    assert s.ceiling_source == "manual"


def test_manual_mode_without_allowance_derives_from_income():
    s = compute_budget([], PeriodSpec.for_month("2025-06"), "manual", baseline_income=5000)
    assert s.budget_ceiling == pytest.approx(3000)


def test_empty_period_still_reports():
    s = compute_budget([], PeriodSpec.for_month("2025-06"), baseline_income=5000)
    assert s.used == 0
    assert s.by_category == []
    assert s.patterns == ["No spending recorded for this period yet."]


def test_category_ties_keep_first_seen_order():
    txns = [
        create_txn(date_="2025-03-01", merchant="A", amount=10, category="transport"),
        create_txn(date_="2025-03-02", merchant="B", amount=10, category="health"),
        create_txn(date_="2025-03-03", merchant="C", amount=-25, category="shopping"),
    ]
    s = compute_budget(txns, PeriodSpec.for_month("2025-03"), baseline_income=5000)
    assert [c["category"] for c in s.by_category] == ["shopping", "transport", "health"]


def test_income_keywords_and_tags():
    assert is_income(create_txn(merchant="Zalando Rückerstattung", category="shopping"))
    assert is_income(create_txn(merchant="Anything", category="Other Income"))
    assert is_salary(create_txn(merchant="Monthly Gehalt", category="general"))
    assert not is_salary(create_txn(merchant="Refund", category="general"))
    assert not is_income(create_txn(merchant="Migros", category="groceries"))


@pytest.mark.parametrize(
    "start,end",
    [("2025-03-10", "2025-03-01"), ("2025-03-10", ""), ("03/10/2025", "2025-04-01")],
)
def test_invalid_custom_range(start, end):
    with pytest.raises(InvalidPeriodError):
        PeriodSpec.for_range(start, end)


def test_period_bounds():
    assert [d.isoformat() for d in PeriodSpec.for_month("2024-02").bounds()] == ["2024-02-01", "2024-02-29"]
    assert [d.isoformat() for d in PeriodSpec.for_year("2025-04").bounds()] == ["2025-01-01", "2025-12-31"]
