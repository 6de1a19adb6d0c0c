"""
Report Models

Read-only views computed from one user's transactions and budgets.
Nothing here is persisted.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field

from bizflow.models.finance import BudgetPeriod, Transaction


class SummaryPeriod(str, Enum):
    """Windows available for the cash-flow summary."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class DateRange(BaseModel):
    """Inclusive date range."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


class CashFlowSummary(BaseModel):
    """Income, expenses and net flow inside one window."""

    period: SummaryPeriod
    date_range: DateRange
    total_income: Decimal = Field(default=Decimal("0"))
    total_expenses: Decimal = Field(default=Decimal("0"))
    transaction_count: int = Field(default=0, ge=0)

    @property
    def net_cash_flow(self) -> Decimal:
        return self.total_income - self.total_expenses

    @property
    def has_data(self) -> bool:
        return self.transaction_count > 0


class ExpenseReportLine(BaseModel):
    """Budget versus actual spending for one category."""

    category: str
    budget: Decimal
    actual: Decimal
    percentage: int = Field(
        ...,
        ge=0,
        description="Actual as a rounded percentage of budget; 0 without a budget"
    )
    is_over_budget: bool

    @property
    def has_budget(self) -> bool:
        return self.budget > 0


class ExpenseReport(BaseModel):
    """Budget versus actual spending for every category in a period."""

    period: BudgetPeriod
    date_range: DateRange
    lines: list[ExpenseReportLine] = Field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return len(self.lines) > 0

    def top(self, count: int = 7) -> list[ExpenseReportLine]:
        return self.lines[:count]


class BudgetedExpenseSplit(BaseModel):
    """A month's expenses split by whether a monthly budget covers them."""

    date_range: DateRange
    budgeted: list[Transaction] = Field(default_factory=list)
    non_budgeted: list[Transaction] = Field(default_factory=list)

    @property
    def total_budgeted(self) -> Decimal:
        return sum((t.amount for t in self.budgeted), Decimal("0"))

    @property
    def total_non_budgeted(self) -> Decimal:
        return sum((t.amount for t in self.non_budgeted), Decimal("0"))


class BudgetEvent(BaseModel):
    """A budget due on a given day."""

    budget_id: UUID
    due_date: date
    title: str
    amount: Decimal


class BudgetCalendar(BaseModel):
    """Budget due dates inside one month, grouped by day."""

    month_start: date
    events: dict[date, list[BudgetEvent]] = Field(default_factory=dict)

    def events_on(self, day: date) -> list[BudgetEvent]:
        return self.events.get(day, [])

    @property
    def event_days(self) -> list[date]:
        return sorted(self.events)
