"""
CRUD operations (Create, Read, Update, Delete) shared by the API routers.
"""

from sqlmodel import Session, select
from sqlalchemy.exc import IntegrityError
from typing import Optional, Tuple
from datetime import timedelta

from .models import User, PasswordReset, Category, Transaction, Budget, as_utc, utcnow
from .auth import get_password_hash, verify_password, dummy_verify


# ============================================
# User CRUD Operations
# ============================================

class DuplicateEmailError(Exception):
    """Raised when another account already holds the email."""


def create_user(session: Session, name: str, email: str, password: str) -> User:
    """Create a new user."""
    user = User(
        name=name,
        email=email,
        password_hash=get_password_hash(password)
    )
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        # A concurrent registration took the email after our lookup.
        session.rollback()
        raise DuplicateEmailError(email)
    session.refresh(user)
    return user


def get_user_by_email(session: Session, email: str) -> Optional[User]:
    """Get user by email."""
    statement = select(User).where(User.email == email)
    return session.exec(statement).first()


def authenticate_user(session: Session, email: str, password: str) -> Optional[User]:
    """Return the user when the password matches, else None."""
    user = get_user_by_email(session, email)
    if not user:
        dummy_verify()
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


# ============================================
# Password reset
# ============================================

def store_reset_code(session: Session, user: User, code: str, ttl: timedelta) -> PasswordReset:
    """Put a fresh code in the user's single reset slot."""
    statement = select(PasswordReset).where(PasswordReset.user_id == user.id).with_for_update()
    reset = session.exec(statement).first()
    if reset is None:
        reset = PasswordReset(user_id=user.id, code_hash="", expires_at=utcnow())

    reset.code_hash = get_password_hash(code)
    reset.expires_at = utcnow() + ttl
    reset.consumed = False
    reset.created_at = utcnow()
    session.add(reset)
    session.commit()
    session.refresh(reset)
    return reset


class ResetError(Exception):
    """Raised when a reset code cannot be used."""


class ResetCodeExpired(ResetError):
    pass


def consume_reset_code(session: Session, email: str, code: str, new_password: str) -> User:
    """
    Check the code and set the new password in one transaction.

    The reset row is locked while it is checked and marked consumed, so two
    concurrent attempts cannot both succeed with the same code.
    """
    user = get_user_by_email(session, email)
    if user is None:
        raise ResetError("Invalid or expired OTP")

    statement = select(PasswordReset).where(PasswordReset.user_id == user.id).with_for_update()
    reset = session.exec(statement).first()
    if reset is None or reset.consumed:
        session.rollback()
        raise ResetError("Invalid or expired OTP")
    if not verify_password(code, reset.code_hash):
        session.rollback()
        raise ResetError("Invalid or expired OTP")
    if as_utc(reset.expires_at) <= utcnow():
        session.rollback()
        raise ResetCodeExpired("OTP has expired. Please request a new one.")

    user.password_hash = get_password_hash(new_password)
    reset.consumed = True
    session.add(user)
    session.add(reset)
    session.commit()
    session.refresh(user)
    return user


# ============================================
# Category / Transaction helpers
# ============================================

def get_category(session: Session, category_id: int) -> Optional[Category]:
    return session.get(Category, category_id)


def get_transaction_row(session: Session, transaction_id: int, user_id: int) -> Optional[Tuple[Transaction, Category]]:
    """Get a transaction joined with its category."""
    statement = (
        select(Transaction, Category)
        .join(Category, Transaction.category_id == Category.id)
        .where(Transaction.id == transaction_id, Transaction.user_id == user_id)
    )
    return session.exec(statement).first()


def get_transaction_by_id(session: Session, transaction_id: int, user_id: int) -> Optional[Transaction]:
    """Get a specific transaction owned by the user."""
    statement = select(Transaction).where(
        Transaction.id == transaction_id,
        Transaction.user_id == user_id
    )
    return session.exec(statement).first()


def transaction_to_dict(transaction: Transaction, category: Category) -> dict:
    return {
        "id": transaction.id,
        "amount": float(transaction.amount),
        "note": transaction.note,
        "date": transaction.date,
        "created_at": transaction.created_at,
        "category_id": category.id,
        "category_name": category.name,
        "category_icon": category.icon,
        "type": category.type,
        "category_color": category.color,
    }


# ============================================
# Budget CRUD Operations
# ============================================

def _find_budget(session: Session, user_id: int, category_id: int, month: int, year: int) -> Optional[Budget]:
    statement = select(Budget).where(
        Budget.user_id == user_id,
        Budget.category_id == category_id,
        Budget.month == month,
        Budget.year == year
    ).with_for_update()
    return session.exec(statement).first()


def upsert_budget(session: Session, user_id: int, category_id: int, amount: float, month: int, year: int) -> Budget:
    """One budget per (user, category, month, year); a repeat updates the amount."""
    budget = _find_budget(session, user_id, category_id, month, year)
    if budget is None:
        budget = Budget(user_id=user_id, category_id=category_id, amount=amount, month=month, year=year)
        session.add(budget)
        try:
            session.commit()
        except IntegrityError:
            # Lost the race against a concurrent insert of the same key.
            session.rollback()
            budget = _find_budget(session, user_id, category_id, month, year)
            if budget is None:
                raise
            budget.amount = amount
            session.add(budget)
            session.commit()
    else:
        budget.amount = amount
        session.add(budget)
        session.commit()

    session.refresh(budget)
    return budget


def get_budget_by_id(session: Session, budget_id: int, user_id: int) -> Optional[Budget]:
    statement = select(Budget).where(Budget.id == budget_id, Budget.user_id == user_id)
    return session.exec(statement).first()
