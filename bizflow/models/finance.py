"""
Core Data Models for BizFlow

Transactions and budgets. Both are always owned by exactly one user and
every read or delete is scoped to that owner.

Amounts are Decimal with two places, never float, so totals in reports
add up exactly.
"""

from datetime import date as Date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def category_key(category: str) -> str:
    """Form a category is matched and indexed in, ignoring case."""
    return category.strip().lower()


# Twelve integer digits and two decimal places fit a NUMERIC(14, 2) column
MAX_AMOUNT = Decimal("1000000000000")


def to_cents(amount: Decimal) -> Decimal:
    """Round an amount to two places, rejecting anything the database cannot hold."""
    if amount >= MAX_AMOUNT:
        raise ValueError("Amount is too large")
    cents = amount.quantize(Decimal("0.01"))
    if cents >= MAX_AMOUNT:
        raise ValueError("Amount is too large")
    return cents


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a cash movement."""
    INCOME = "income"
    EXPENSE = "expense"


class BudgetPeriod(str, Enum):
    """How often a budget amount applies."""
    MONTHLY = "monthly"
    YEARLY = "yearly"


# =============================================================================
# STORED RECORDS
# =============================================================================

class Transaction(BaseModel):
    """
    A single income or expense entry.

    Transactions are immutable once created; the only change is deletion.
    For expenses the description doubles as the spending category and is
    what budgets are matched against.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    user_id: UUID = Field(
        ...,
        description="Owning user"
    )
    type: TransactionType
    description: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Source for income, category for expense"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Positive amount; the type carries the sign"
    )
    date: Date = Field(
        ...,
        description="Day the transaction happened"
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.type == TransactionType.INCOME else -self.amount


class Budget(BaseModel):
    """
    A spending limit for one category and period.

    At most one budget exists per (user, lower(category), period).
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique budget ID"
    )
    user_id: UUID = Field(
        ...,
        description="Owning user"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Compared case-insensitively with expense descriptions"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Budgeted amount for the period"
    )
    period: BudgetPeriod
    due_date: Optional[Date] = Field(
        default=None,
        description="Optional due date shown on the calendar"
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def category_key(self) -> str:
        return category_key(self.category)


# =============================================================================
# INPUT MODELS
# =============================================================================

class AddTransactionInput(BaseModel):
    """Payload for recording a transaction."""
    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: UUID
    type: TransactionType
    description: str
    amount: Decimal
    date: Date

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: str) -> str:
        if not v:
            raise ValueError("Description is required")
        if len(v) > 255:
            raise ValueError("Description must be at most 255 characters")
        return v

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Amount must be positive")
        return to_cents(v)


class BudgetInput(BaseModel):
    """Payload for adding or updating a budget."""
    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: UUID
    category: str
    amount: Decimal
    period: BudgetPeriod
    due_date: Optional[Date] = None

    @field_validator('category')
    @classmethod
    def validate_category(cls, v: str) -> str:
        if not v:
            raise ValueError("Category is required")
        if len(v) > 100:
            raise ValueError("Category must be at most 100 characters")
        return v

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Budget amount cannot be negative")
        return to_cents(v)
