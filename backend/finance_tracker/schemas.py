"""
Pydantic schemas for API request/response validation.
Separate from models to control what data is exposed via API.
"""

import re
from pydantic import BaseModel, EmailStr, Field, validator
from datetime import datetime, date
from typing import Optional


DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _strip(value):
    return value.strip() if isinstance(value, str) else value


def normalize_email(value):
    """Emails are stored and looked up in lower case."""
    return value.strip().lower() if isinstance(value, str) else value


def _money(value):
    """Round to cents before checking, so 0.001 is rejected."""
    value = round(value, 2)
    if value <= 0:
        raise ValueError("Amount must be greater than 0")
    return value


# ============================================
# Auth Schemas
# ============================================

class UserCreate(BaseModel):
    """Schema for user registration."""
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=100)

    @validator("name", "email", pre=True)
    def strip_whitespace(cls, v):
        return _strip(v)

    @validator("email")
    def lower_email(cls, v):
        return normalize_email(v)


class UserLogin(BaseModel):
    """Schema for user login."""
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

    @validator("email", pre=True)
    def normalize(cls, v):
        return normalize_email(v)


class ForgotPasswordRequest(BaseModel):
    """Step 1 of the reset flow: ask for a one-time code."""
    email: EmailStr

    @validator("email", pre=True)
    def strip_email(cls, v):
        return _strip(v)

    @validator("email")
    def lower_email(cls, v):
        return normalize_email(v)


class ResetPasswordRequest(BaseModel):
    """Step 2 of the reset flow: trade the code for a new password."""
    email: str = Field(min_length=1)
    otp: str = Field(min_length=1)
    new_password: str = Field(min_length=6, max_length=100)

    @validator("email", "otp", pre=True)
    def strip_whitespace(cls, v):
        return _strip(v)

    @validator("email")
    def lower_email(cls, v):
        return normalize_email(v)


class ProfileUpdate(BaseModel):
    """Name is always required; the password change is optional."""
    name: str = Field(min_length=1, max_length=100)
    current_password: Optional[str] = None
    new_password: Optional[str] = None

    @validator("name", pre=True)
    def strip_name(cls, v):
        return _strip(v)


class UserSummary(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True


class UserResponse(UserSummary):
    """Schema for user response (no password)."""
    created_at: datetime


class AuthResponse(BaseModel):
    token: str
    user: UserSummary


# ============================================
# Transaction Schemas
# ============================================

class TransactionCreate(BaseModel):
    """Schema for creating or replacing a transaction."""
    category_id: int = Field(gt=0)
    amount: float = Field(strict=True)
    note: str = Field(default="", max_length=500)
    date: date

    @validator("note", pre=True)
    def strip_note(cls, v):
        return _strip(v) if v is not None else ""

    @validator("amount")
    def amount_positive(cls, v):
        return _money(v)

    @validator("date", pre=True)
    def date_format(cls, v):
        if not isinstance(v, str) or not DATE_PATTERN.match(v.strip()):
            raise ValueError("Invalid date format. Use YYYY-MM-DD")
        return v.strip()


class TransactionUpdate(TransactionCreate):
    """Updates replace every editable field."""
    pass


# ============================================
# Budget Schemas
# ============================================

class BudgetCreate(BaseModel):
    category_id: int = Field(gt=0)
    amount: float = Field(strict=True)
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000)

    @validator("amount")
    def amount_positive(cls, v):
        return _money(v)


class BudgetUpdate(BudgetCreate):
    pass
