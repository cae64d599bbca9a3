from datetime import date

import pytest

from finance_tracker.dashboard import Window, build_insight, resolve_window, shift_month

from .conftest import FOOD_CATEGORY_ID, SALARY_CATEGORY_ID, TRANSPORT_CATEGORY_ID

MARCH = {"date_from": "2025-03-01", "date_to": "2025-03-31"}


def add(client, headers, category_id, amount, day):
    response = client.post("/api/transactions", json={
        "category_id": category_id, "amount": amount, "date": day
    }, headers=headers)
    assert response.status_code == 201


def dashboard(client, headers, endpoint, **params):
    response = client.get("/api/dashboard", params={"endpoint": endpoint, **params}, headers=headers)
    assert response.status_code == 200, response.json()
    return response.json()["data"]


# ============================================
# Window helpers
# ============================================

def test_resolve_window_defaults_to_month():
    window = resolve_window(None, None, today=date(2024, 2, 10))
    assert window == Window(date(2024, 2, 1), date(2024, 2, 29))
    assert window.label == "February 2024"


def test_resolve_window_rejects_inverted_range():
    with pytest.raises(ValueError):
        resolve_window(date(2025, 3, 10), date(2025, 3, 1))


def test_resolve_window_rejects_dates_before_2000():
    with pytest.raises(ValueError):
        resolve_window(date(1, 1, 1), date(1, 1, 31))
    with pytest.raises(ValueError):
        resolve_window(date(1999, 12, 1), None, today=date(2025, 3, 10))


def test_previous_window_has_same_length():
    window = Window(date(2025, 3, 1), date(2025, 3, 31))
    previous = window.previous()
    assert previous.date_to == date(2025, 2, 28)
    assert previous.days == 31


def test_shift_month_crosses_years():
    assert shift_month(2025, 1, -1) == (2024, 12)
    assert shift_month(2024, 11, 3) == (2025, 2)


@pytest.mark.parametrize("income, expense, previous, level", [
    (100, 0, 50, "success"),
    (0, 120, 100, "warning"),
    (0, 80, 100, "success"),
    (0, 105, 100, "neutral"),
    (0, 50, 0, "neutral"),
])
def test_build_insight(income, expense, previous, level):
    _, insight = build_insight(income, expense, previous)
    assert insight["level"] == level


# ============================================
# Endpoints
# ============================================

def test_march_2025_scenario(client, auth_headers):
    add(client, auth_headers, FOOD_CATEGORY_ID, 42.50, "2025-03-01")

    summary = dashboard(client, auth_headers, "summary", **MARCH)
    assert summary["total_expense"] == 42.5
    assert summary["period"]["label"] == "March 2025"

    response = client.post("/api/budgets", json={
        "category_id": FOOD_CATEGORY_ID, "amount": 100, "month": 3, "year": 2025
    }, headers=auth_headers)
    assert response.status_code == 201

    status = dashboard(client, auth_headers, "budget-status", **MARCH)
    assert len(status) == 1
    assert status[0]["spent"] == 42.5
    assert status[0]["percent"] == 42.5
    assert status[0]["remaining"] == 57.5
    assert status[0]["warning"] is False

    add(client, auth_headers, FOOD_CATEGORY_ID, 40, "2025-03-15")
    status = dashboard(client, auth_headers, "budget-status", **MARCH)
    assert status[0]["percent"] == 82.5
    assert status[0]["warning"] is True


def test_summary_totals_and_balance(client, auth_headers, other_headers):
    add(client, auth_headers, SALARY_CATEGORY_ID, 1000, "2025-03-05")
    add(client, auth_headers, FOOD_CATEGORY_ID, 200, "2025-03-06")
    add(client, auth_headers, FOOD_CATEGORY_ID, 150, "2025-02-10")
    add(client, other_headers, FOOD_CATEGORY_ID, 999, "2025-03-06")

    summary = dashboard(client, auth_headers, "summary", **MARCH)
    assert summary["total_income"] == 1000
    assert summary["total_expense"] == 200
    assert summary["net"] == 800
    assert summary["transaction_count"] == 2
    assert summary["all_time_balance"] == 650
    assert summary["previous"]["total_expense"] == 150
    assert summary["expense_change_percent"] == pytest.approx(33.3)
    assert summary["insight"]["level"] == "warning"


def test_summary_without_comparison(client, auth_headers):
    summary = dashboard(client, auth_headers, "summary", compare="false", **MARCH)
    assert "insight" not in summary
    assert summary["transaction_count"] == 0
    assert summary["all_time_balance"] == 0


def test_summary_savings_insight(client, auth_headers):
    add(client, auth_headers, SALARY_CATEGORY_ID, 500, "2025-03-05")
    summary = dashboard(client, auth_headers, "summary", **MARCH)
    assert summary["insight"]["level"] == "success"


def test_by_category_percentages(client, auth_headers):
    add(client, auth_headers, FOOD_CATEGORY_ID, 10, "2025-03-01")
    add(client, auth_headers, FOOD_CATEGORY_ID, 20, "2025-03-02")
    add(client, auth_headers, TRANSPORT_CATEGORY_ID, 60, "2025-03-03")
    add(client, auth_headers, SALARY_CATEGORY_ID, 500, "2025-03-03")

    data = dashboard(client, auth_headers, "by-category", **MARCH)
    assert data["grand_total"] == 90
    assert [c["name"] for c in data["categories"]] == ["Transport", "Food & Dining"]
    assert data["categories"][1]["count"] == 2
    assert sum(c["percentage"] for c in data["categories"]) == pytest.approx(100, abs=0.5)

    income = dashboard(client, auth_headers, "by-category", type="Income", **MARCH)
    assert [c["name"] for c in income["categories"]] == ["Salary"]
    assert income["categories"][0]["percentage"] == 100


def test_by_category_empty_window(client, auth_headers):
    data = dashboard(client, auth_headers, "by-category", **MARCH)
    assert data == {"categories": [], "grand_total": 0}


def test_top_expenses_limited_to_five(client, auth_headers):
    for category_id in range(1, 8):
        add(client, auth_headers, category_id, category_id * 10, "2025-03-10")

    top = dashboard(client, auth_headers, "top-expenses", **MARCH)
    assert len(top) == 5
    assert [t["total"] for t in top] == [70, 60, 50, 40, 30]


def test_monthly_trend_six_months(client, auth_headers):
    add(client, auth_headers, SALARY_CATEGORY_ID, 1000, "2025-03-01")
    add(client, auth_headers, FOOD_CATEGORY_ID, 40, "2025-03-20")
    add(client, auth_headers, FOOD_CATEGORY_ID, 25, "2024-12-31")
    add(client, auth_headers, FOOD_CATEGORY_ID, 500, "2024-09-30")

    trend = dashboard(client, auth_headers, "monthly-trend", **MARCH)
    assert [m["month_key"] for m in trend] == [
        "2024-10", "2024-11", "2024-12", "2025-01", "2025-02", "2025-03"
    ]
    assert trend[-1] == {"month_key": "2025-03", "month_label": "Mar 2025", "income": 1000, "expense": 40}
    assert trend[2]["expense"] == 25
    assert trend[0]["expense"] == 0


def test_budget_status_month_override(client, auth_headers):
    client.post("/api/budgets", json={
        "category_id": FOOD_CATEGORY_ID, "amount": 50, "month": 4, "year": 2025
    }, headers=auth_headers)
    add(client, auth_headers, FOOD_CATEGORY_ID, 50, "2025-04-02")

    status = dashboard(client, auth_headers, "budget-status", month=4, year=2025)
    assert status[0]["percent"] == 100
    assert status[0]["remaining"] == 0
    assert status[0]["warning"] is True


def test_default_window_is_current_month(client, auth_headers):
    add(client, auth_headers, FOOD_CATEGORY_ID, 12, date.today().isoformat())
    summary = dashboard(client, auth_headers, "summary")
    assert summary["total_expense"] == 12


def test_unknown_endpoint(client, auth_headers):
    response = client.get("/api/dashboard", params={"endpoint": "nope"}, headers=auth_headers)
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Unknown dashboard endpoint"}


def test_inverted_window_rejected(client, auth_headers):
    response = client.get("/api/dashboard", params={
        "endpoint": "summary", "date_from": "2025-03-31", "date_to": "2025-03-01"
    }, headers=auth_headers)
    assert response.status_code == 400


def test_dashboard_requires_auth(client):
    assert client.get("/api/dashboard").status_code == 401


@pytest.mark.parametrize("endpoint", ["summary", "monthly-trend", "budget-status"])
def test_year_one_window_rejected(client, auth_headers, endpoint):
    response = client.get("/api/dashboard", params={
        "endpoint": endpoint, "date_from": "0001-01-01", "date_to": "0001-01-31"
    }, headers=auth_headers)
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Dates must be in year 2000 or later"}
