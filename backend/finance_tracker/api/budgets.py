import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..auth import get_current_user_id
from ..crud import get_budget_by_id, get_category, upsert_budget
from ..database import get_session
from ..models import Budget, Category
from ..responses import api_response
from ..schemas import BudgetCreate, BudgetUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_id(id: Optional[int]) -> int:
    if not id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Budget ID required")
    return id


def _require_category(session: Session, category_id: int) -> None:
    if not get_category(session, category_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category does not exist")


@router.get("")
def read_budgets(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000),
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session)
):
    """Budgets for one month, the current one unless given."""
    today = date.today()
    month = month or today.month
    year = year or today.year

    statement = (
        select(Budget, Category)
        .join(Category, Budget.category_id == Category.id)
        .where(Budget.user_id == user_id, Budget.month == month, Budget.year == year)
        .order_by(Category.name)
    )
    budgets = [
        {
            "id": b.id,
            "amount": float(b.amount),
            "month": b.month,
            "year": b.year,
            "category_id": c.id,
            "name": c.name,
            "icon": c.icon,
            "color": c.color,
        }
        for b, c in session.exec(statement).all()
    ]
    return api_response(True, "Budgets fetched", budgets)


@router.post("")
def save_budget(
    budget_data: BudgetCreate,
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session)
):
    """Create the budget, or update its amount if one exists for that category and month."""
    _require_category(session, budget_data.category_id)
    budget = upsert_budget(
        session,
        user_id=user_id,
        category_id=budget_data.category_id,
        amount=budget_data.amount,
        month=budget_data.month,
        year=budget_data.year
    )
    return api_response(True, "Budget saved", {"id": budget.id}, status.HTTP_201_CREATED)


@router.put("")
def update_budget(
    budget_data: BudgetUpdate,
    id: Optional[int] = Query(None),
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session)
):
    budget_id = _require_id(id)
    budget = get_budget_by_id(session, budget_id, user_id)
    if not budget:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Budget not found")

    _require_category(session, budget_data.category_id)

    budget.category_id = budget_data.category_id
    budget.amount = budget_data.amount
    budget.month = budget_data.month
    budget.year = budget_data.year
    session.add(budget)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A budget for this category and month already exists"
        )

    return api_response(True, "Budget updated", {"id": budget_id})


@router.delete("")
def delete_budget(
    id: Optional[int] = Query(None),
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session)
):
    budget_id = _require_id(id)
    budget = get_budget_by_id(session, budget_id, user_id)
    if not budget:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Budget not found")

    session.delete(budget)
    session.commit()
    return api_response(True, "Budget deleted", {"id": budget_id})
