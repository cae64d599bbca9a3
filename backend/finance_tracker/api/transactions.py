import math
from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlmodel import Session, select

from ..auth import get_current_user_id
from ..crud import get_category, get_transaction_by_id, get_transaction_row, transaction_to_dict
from ..database import get_session
from ..models import Category, CategoryType, Transaction
from ..responses import api_response
from ..schemas import TransactionCreate, TransactionUpdate

router = APIRouter()

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
# Keeps the offset inside a 64-bit integer.
MAX_PAGE = 1_000_000


def _require_id(id: Optional[int]) -> int:
    if not id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Transaction ID is required")
    return id


def _require_category(session: Session, category_id: int) -> Category:
    category = get_category(session, category_id)
    if not category:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category does not exist")
    return category


@router.get("")
def read_transactions(
    category_id: Optional[int] = None,
    type: Optional[CategoryType] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = None,
    sort: Literal["amount", "date"] = "date",
    order: Literal["asc", "desc"] = "desc",
    page: int = Query(1, le=MAX_PAGE),
    limit: int = DEFAULT_PAGE_SIZE,
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session)
):
    """List the caller's transactions with filters, sorting and pagination."""
    page = max(1, page)
    limit = min(MAX_PAGE_SIZE, max(1, limit))

    filters = [Transaction.user_id == user_id]
    if category_id:
        filters.append(Transaction.category_id == category_id)
    if type:
        filters.append(Category.type == type)
    if date_from:
        filters.append(Transaction.date >= date_from)
    if date_to:
        filters.append(Transaction.date <= date_to)
    if search:
        filters.append(Transaction.note.contains(search, autoescape=True))

    sort_column = Transaction.amount if sort == "amount" else Transaction.date
    if order == "asc":
        ordering = (sort_column.asc(), Transaction.id.asc())
    else:
        ordering = (sort_column.desc(), Transaction.id.desc())

    statement = (
        select(Transaction, Category)
        .join(Category, Transaction.category_id == Category.id)
        .where(*filters)
        .order_by(*ordering)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    transactions = [transaction_to_dict(t, c) for t, c in session.exec(statement).all()]

    count_statement = (
        select(func.count(Transaction.id))
        .select_from(Transaction)
        .join(Category, Transaction.category_id == Category.id)
        .where(*filters)
    )
    total = session.exec(count_statement).one()

    return api_response(True, "Transactions fetched", {
        "transactions": transactions,
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": math.ceil(total / limit)
        }
    })


@router.post("")
def create_transaction(
    transaction_data: TransactionCreate,
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session)
):
    category = _require_category(session, transaction_data.category_id)

    transaction = Transaction(
        user_id=user_id,
        category_id=category.id,
        amount=transaction_data.amount,
        note=transaction_data.note,
        date=transaction_data.date
    )
    session.add(transaction)
    session.commit()
    session.refresh(transaction)

    return api_response(
        True,
        "Transaction added successfully",
        transaction_to_dict(transaction, category),
        status.HTTP_201_CREATED
    )


@router.put("")
def update_transaction(
    transaction_data: TransactionUpdate,
    id: Optional[int] = Query(None),
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session)
):
    """Replace a transaction's fields. Someone else's transaction is reported as not found."""
    transaction_id = _require_id(id)
    transaction = get_transaction_by_id(session, transaction_id, user_id)
    if not transaction:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")

    _require_category(session, transaction_data.category_id)

    transaction.category_id = transaction_data.category_id
    transaction.amount = transaction_data.amount
    transaction.note = transaction_data.note
    transaction.date = transaction_data.date
    session.add(transaction)
    session.commit()

    transaction, category = get_transaction_row(session, transaction_id, user_id)
    return api_response(True, "Transaction updated successfully", transaction_to_dict(transaction, category))


@router.delete("")
def delete_transaction(
    id: Optional[int] = Query(None),
    user_id: int = Depends(get_current_user_id),
    session: Session = Depends(get_session)
):
    transaction_id = _require_id(id)
    transaction = get_transaction_by_id(session, transaction_id, user_id)
    if not transaction:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")

    session.delete(transaction)
    session.commit()

    return api_response(True, "Transaction deleted successfully", {"id": transaction_id})
