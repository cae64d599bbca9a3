"""
Default categories. Categories are read-only through the API, so they are
inserted here when the table is empty.
"""

from sqlmodel import Session, select

from .models import Category, CategoryType


DEFAULT_CATEGORIES = [
    ("Food & Dining", "🍔", CategoryType.Expense, "#ef4444"),
    ("Transport", "🚗", CategoryType.Expense, "#f97316"),
    ("Shopping", "🛍️", CategoryType.Expense, "#f59e0b"),
    ("Bills & Utilities", "💡", CategoryType.Expense, "#eab308"),
    ("Rent", "🏠", CategoryType.Expense, "#8b5cf6"),
    ("Entertainment", "🎬", CategoryType.Expense, "#ec4899"),
    ("Health", "💊", CategoryType.Expense, "#f43f5e"),
    ("Education", "📚", CategoryType.Expense, "#3b82f6"),
    ("Travel", "✈️", CategoryType.Expense, "#0ea5e9"),
    ("Other Expense", "📦", CategoryType.Expense, "#64748b"),
    ("Salary", "💼", CategoryType.Income, "#10b981"),
    ("Freelance", "💻", CategoryType.Income, "#22c55e"),
    ("Investments", "📈", CategoryType.Income, "#14b8a6"),
    ("Gifts", "🎁", CategoryType.Income, "#06b6d4"),
    ("Other Income", "💰", CategoryType.Income, "#84cc16"),
]


def seed_categories(session: Session) -> int:
    """Insert the default categories if none exist. Returns the number added."""
    if session.exec(select(Category)).first():
        return 0

    for name, icon, type_, color in DEFAULT_CATEGORIES:
        session.add(Category(name=name, icon=icon, type=type_, color=color))
    session.commit()
    return len(DEFAULT_CATEGORIES)
