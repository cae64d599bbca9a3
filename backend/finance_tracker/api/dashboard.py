from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session

from .. import dashboard
from ..auth import get_current_user_id
from ..database import get_session
from ..models import CategoryType
from ..responses import api_response

router = APIRouter()


@router.get("")
def read_dashboard(
    endpoint: str = "summary",
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    type: CategoryType = CategoryType.Expense,
    compare: bool = True,
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000),
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session)
):
    """
    Aggregates over a reporting window (current month unless
    ``date_from``/``date_to`` are given). ``endpoint`` selects the view:
    summary, by-category, monthly-trend, top-expenses or budget-status.
    """
    try:
        window = dashboard.resolve_window(date_from, date_to)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if endpoint == "summary":
        data = dashboard.get_summary(session, user_id, window, compare=compare)
        return api_response(True, "Summary fetched", data)

    if endpoint == "by-category":
        data = dashboard.get_by_category(session, user_id, window, type)
        return api_response(True, "Category breakdown fetched", data)

    if endpoint == "monthly-trend":
        data = dashboard.get_monthly_trend(session, user_id, window.date_to)
        return api_response(True, "Monthly trend fetched", data)

    if endpoint == "top-expenses":
        data = dashboard.get_top_expenses(session, user_id, window)
        return api_response(True, "Top expenses fetched", data)

    if endpoint == "budget-status":
        data = dashboard.get_budget_status(
            session,
            user_id,
            month or window.date_from.month,
            year or window.date_from.year
        )
        return api_response(True, "Budget status fetched", data)

    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown dashboard endpoint")
