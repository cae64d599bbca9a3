from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from datetime import datetime, date, timezone
from typing import Optional
from enum import Enum

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(value: datetime) -> datetime:
    """SQLite hands timestamps back without tzinfo; they are always stored as UTC."""
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)

class CategoryType(str, Enum):
    Income = "Income"
    Expense = "Expense"

class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(unique=True, index=True)
    password_hash: str
    created_at: datetime = Field(default_factory=utcnow)

class PasswordReset(SQLModel, table=True):
    __tablename__ = "password_resets"

    # One pending code per user; a new request overwrites the slot.
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    code_hash: str
    expires_at: datetime
    consumed: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)

class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    icon: str = ""
    type: CategoryType = Field(index=True)
    color: str = "#6366f1"

class Transaction(SQLModel, table=True):
    __tablename__ = "transactions"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    category_id: int = Field(foreign_key="categories.id")
    amount: float = Field(gt=0)
    note: str = ""
    date: date
    created_at: datetime = Field(default_factory=utcnow)

class Budget(SQLModel, table=True):
    __tablename__ = "budgets"
    __table_args__ = (
        UniqueConstraint("user_id", "category_id", "month", "year", name="uq_budget_user_category_period"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    category_id: int = Field(foreign_key="categories.id")
    amount: float = Field(gt=0)
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000)
