"""
Read-only aggregate queries behind the dashboard.

Every query is scoped to one user and, except for the all-time balance, to a
reporting window of calendar dates (inclusive on both ends).
"""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy import and_, case, extract, func
from sqlmodel import Session, select

from .models import Budget, Category, CategoryType, Transaction

TOP_EXPENSES_LIMIT = 5
TREND_MONTHS = 6
BUDGET_WARNING_PERCENT = 80
INSIGHT_THRESHOLD_PERCENT = 10
# Earliest year a window may touch; the comparison period and trend reach back from it.
MIN_YEAR = 2000


@dataclass
class Window:
    date_from: date
    date_to: date

    @property
    def days(self) -> int:
        return (self.date_to - self.date_from).days + 1

    def previous(self) -> "Window":
        """The period of equal length ending the day before this one starts."""
        prev_to = self.date_from - timedelta(days=1)
        return Window(prev_to - timedelta(days=self.days - 1), prev_to)

    @property
    def label(self) -> str:
        first, last = month_bounds(self.date_from.year, self.date_from.month)
        if self.date_from == first and self.date_to == last:
            return self.date_from.strftime("%B %Y")
        return f"{self.date_from.isoformat()} to {self.date_to.isoformat()}"


def month_bounds(year: int, month: int):
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def shift_month(year: int, month: int, delta: int):
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def resolve_window(date_from: Optional[date], date_to: Optional[date], today: Optional[date] = None) -> Window:
    """Explicit bounds win; a missing side falls back to the current month."""
    today = today or date.today()
    first, last = month_bounds(today.year, today.month)
    window = Window(date_from or first, date_to or last)
    if window.date_from.year < MIN_YEAR or window.date_to.year < MIN_YEAR:
        raise ValueError(f"Dates must be in year {MIN_YEAR} or later")
    if window.date_from > window.date_to:
        raise ValueError("date_from must be on or before date_to")
    return window


def _in_window(window: Window):
    return and_(Transaction.date >= window.date_from, Transaction.date <= window.date_to)


def _income_sum():
    return func.coalesce(func.sum(case((Category.type == CategoryType.Income, Transaction.amount), else_=0)), 0)


def _expense_sum():
    return func.coalesce(func.sum(case((Category.type == CategoryType.Expense, Transaction.amount), else_=0)), 0)


def _totals(session: Session, user_id: int, window: Window):
    statement = (
        select(_income_sum(), _expense_sum(), func.count(Transaction.id))
        .select_from(Transaction)
        .join(Category, Transaction.category_id == Category.id)
        .where(Transaction.user_id == user_id, _in_window(window))
    )
    income, expense, count = session.exec(statement).one()
    return round(float(income), 2), round(float(expense), 2), int(count)


def build_insight(income: float, expense: float, previous_expense: float):
    """Classify spending against the previous period."""
    if expense == 0 and income > 0:
        return None, {"level": "success", "message": "No spending this period. Everything you earned was saved."}
    if previous_expense <= 0:
        return None, {"level": "neutral", "message": "Not enough history to compare spending."}

    change = round((expense - previous_expense) / previous_expense * 100, 1)
    if change > INSIGHT_THRESHOLD_PERCENT:
        insight = {"level": "warning", "message": f"Spending is up {change}% compared to the previous period."}
    elif change < -INSIGHT_THRESHOLD_PERCENT:
        insight = {"level": "success", "message": f"Spending is down {abs(change)}% compared to the previous period."}
    else:
        insight = {"level": "neutral", "message": "Spending is steady compared to the previous period."}
    return change, insight


def get_summary(session: Session, user_id: int, window: Window, compare: bool = True) -> dict:
    income, expense, count = _totals(session, user_id, window)

    balance_statement = (
        select(func.coalesce(func.sum(case(
            (Category.type == CategoryType.Income, Transaction.amount),
            else_=-Transaction.amount
        )), 0))
        .select_from(Transaction)
        .join(Category, Transaction.category_id == Category.id)
        .where(Transaction.user_id == user_id)
    )
    balance = session.exec(balance_statement).one()

    summary = {
        "period": {"date_from": window.date_from, "date_to": window.date_to, "label": window.label},
        "total_income": income,
        "total_expense": expense,
        "net": round(income - expense, 2),
        "all_time_balance": round(float(balance), 2),
        "transaction_count": count,
    }

    if compare:
        previous = window.previous()
        prev_income, prev_expense, _ = _totals(session, user_id, previous)
        change, insight = build_insight(income, expense, prev_expense)
        summary["previous"] = {
            "date_from": previous.date_from,
            "date_to": previous.date_to,
            "total_income": prev_income,
            "total_expense": prev_expense,
        }
        summary["expense_change_percent"] = change
        summary["insight"] = insight

    return summary


def _category_totals(session: Session, user_id: int, window: Window, type_: CategoryType, limit: Optional[int] = None):
    total = func.sum(Transaction.amount).label("total")
    statement = (
        select(Category.id, Category.name, Category.icon, Category.color, Category.type,
               total, func.count(Transaction.id))
        .select_from(Transaction)
        .join(Category, Transaction.category_id == Category.id)
        .where(Transaction.user_id == user_id, Category.type == type_, _in_window(window))
        .group_by(Category.id, Category.name, Category.icon, Category.color, Category.type)
        .order_by(total.desc(), Category.name)
    )
    if limit:
        statement = statement.limit(limit)

    return [
        {
            "category_id": cat_id,
            "name": name,
            "icon": icon,
            "color": color,
            "type": cat_type,
            "total": round(float(cat_total or 0), 2),
            "count": int(count),
        }
        for cat_id, name, icon, color, cat_type, cat_total, count in session.exec(statement).all()
    ]


def get_by_category(session: Session, user_id: int, window: Window, type_: CategoryType = CategoryType.Expense) -> dict:
    categories = _category_totals(session, user_id, window, type_)
    grand_total = round(sum(c["total"] for c in categories), 2)
    for cat in categories:
        cat["percentage"] = round(cat["total"] / grand_total * 100, 1) if grand_total > 0 else 0
    return {"categories": categories, "grand_total": grand_total}


def get_top_expenses(session: Session, user_id: int, window: Window) -> List[dict]:
    rows = _category_totals(session, user_id, window, CategoryType.Expense, limit=TOP_EXPENSES_LIMIT)
    for row in rows:
        row.pop("count")
        row.pop("type")
    return rows


def get_monthly_trend(session: Session, user_id: int, end: date) -> List[dict]:
    """Income and expense for the six calendar months ending with ``end``'s month."""
    start_year, start_month = shift_month(end.year, end.month, -(TREND_MONTHS - 1))
    start, _ = month_bounds(start_year, start_month)
    _, stop = month_bounds(end.year, end.month)

    year_col = extract("year", Transaction.date)
    month_col = extract("month", Transaction.date)
    statement = (
        select(year_col, month_col, _income_sum(), _expense_sum())
        .select_from(Transaction)
        .join(Category, Transaction.category_id == Category.id)
        .where(Transaction.user_id == user_id, Transaction.date >= start, Transaction.date <= stop)
        .group_by(year_col, month_col)
    )
    totals = {
        (int(y), int(m)): (round(float(income), 2), round(float(expense), 2))
        for y, m, income, expense in session.exec(statement).all()
    }

    months = []
    for offset in range(TREND_MONTHS):
        year, month = shift_month(start_year, start_month, offset)
        income, expense = totals.get((year, month), (0.0, 0.0))
        months.append({
            "month_key": f"{year}-{month:02d}",
            "month_label": date(year, month, 1).strftime("%b %Y"),
            "income": income,
            "expense": expense,
        })
    return months


def get_budget_status(session: Session, user_id: int, month: int, year: int) -> List[dict]:
    first, last = month_bounds(year, month)
    spent = func.coalesce(func.sum(Transaction.amount), 0)
    statement = (
        select(Budget.id, Budget.category_id, Category.name, Category.icon, Category.color,
               Budget.amount, Budget.month, Budget.year, spent)
        .select_from(Budget)
        .join(Category, Budget.category_id == Category.id)
        .outerjoin(Transaction, and_(
            Transaction.category_id == Budget.category_id,
            Transaction.user_id == Budget.user_id,
            Transaction.date >= first,
            Transaction.date <= last
        ))
        .where(Budget.user_id == user_id, Budget.month == month, Budget.year == year)
        .group_by(Budget.id, Budget.category_id, Category.name, Category.icon, Category.color,
                  Budget.amount, Budget.month, Budget.year)
        .order_by(Category.name)
    )

    status = []
    for budget_id, category_id, name, icon, color, amount, b_month, b_year, spent_total in session.exec(statement).all():
        budget = round(float(amount), 2)
        spent_total = round(float(spent_total), 2)
        percent = round(spent_total / budget * 100, 1) if budget > 0 else 0
        status.append({
            "id": budget_id,
            "category_id": category_id,
            "name": name,
            "icon": icon,
            "color": color,
            "budget": budget,
            "month": b_month,
            "year": b_year,
            "spent": spent_total,
            "remaining": round(budget - spent_total, 2),
            "percent": percent,
            "warning": percent >= BUDGET_WARNING_PERCENT,
        })
    return status
