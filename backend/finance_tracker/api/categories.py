from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from ..auth import get_current_user_id
from ..database import get_session
from ..models import Category, CategoryType
from ..responses import api_response

router = APIRouter()


@router.get("")
def read_categories(
    type: Optional[CategoryType] = None,
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session)
):
    """All categories, optionally only Income or Expense ones."""
    statement = select(Category)
    if type:
        statement = statement.where(Category.type == type)
    statement = statement.order_by(Category.type, Category.name)

    categories = [c.model_dump() for c in session.exec(statement).all()]
    return api_response(True, "Categories fetched", categories)
