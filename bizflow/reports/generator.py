"""
Report Generation

DESIGN DECISION: Reports are DETERMINISTIC views over one user's stored
transactions and budgets. Nothing is estimated or persisted; every
number can be traced back to the rows it was summed from.

All windows are calendar-aligned and inclusive:
- daily: the reference day
- weekly: Monday through Sunday around the reference day
- monthly / yearly: the calendar month / year of the reference day

Expense categories are an expense's description, compared with budget
categories ignoring case.
"""

import calendar
from collections import defaultdict
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Union

from bizflow.models.finance import (
    Budget,
    BudgetPeriod,
    Transaction,
    TransactionType,
    category_key,
)
from bizflow.models.report import (
    BudgetCalendar,
    BudgetedExpenseSplit,
    BudgetEvent,
    CashFlowSummary,
    DateRange,
    ExpenseReport,
    ExpenseReportLine,
    SummaryPeriod,
)


ZERO = Decimal("0")


def month_range(reference: date) -> DateRange:
    last_day = calendar.monthrange(reference.year, reference.month)[1]
    return DateRange(
        start=reference.replace(day=1),
        end=reference.replace(day=last_day),
    )


def period_range(
    period: Union[SummaryPeriod, BudgetPeriod],
    reference: date,
) -> DateRange:
    """Inclusive calendar window of the given kind containing `reference`."""
    value = period.value
    if value == SummaryPeriod.DAILY.value:
        return DateRange(start=reference, end=reference)
    if value == SummaryPeriod.WEEKLY.value:
        start = reference - timedelta(days=reference.weekday())
        return DateRange(start=start, end=start + timedelta(days=6))
    if value == SummaryPeriod.MONTHLY.value:
        return month_range(reference)
    return DateRange(
        start=reference.replace(month=1, day=1),
        end=reference.replace(month=12, day=31),
    )


def _expenses_in(transactions: Iterable[Transaction], window: DateRange) -> list[Transaction]:
    return [
        t for t in transactions
        if t.type == TransactionType.EXPENSE and window.contains(t.date)
    ]


def _percentage(actual: Decimal, budget: Decimal) -> int:
    if budget <= 0:
        return 0
    return int((actual / budget * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class ReportGenerator:
    """
    Builds report models from a user's transactions and budgets.

    GUARANTEES:
    - Only the rows passed in are used
    - Empty input gives an empty report, never an error
    """

    def __init__(self, today: Optional[date] = None):
        self._today = today

    def _reference(self, reference: Optional[date]) -> date:
        return reference or self._today or date.today()

    def cash_flow_summary(
        self,
        transactions: list[Transaction],
        period: SummaryPeriod = SummaryPeriod.MONTHLY,
        reference: Optional[date] = None,
    ) -> CashFlowSummary:
        """Total income, expenses and net flow inside the window."""
        window = period_range(period, self._reference(reference))
        in_window = [t for t in transactions if window.contains(t.date)]

        return CashFlowSummary(
            period=period,
            date_range=window,
            total_income=sum(
                (t.amount for t in in_window if t.type == TransactionType.INCOME), ZERO
            ),
            total_expenses=sum(
                (t.amount for t in in_window if t.type == TransactionType.EXPENSE), ZERO
            ),
            transaction_count=len(in_window),
        )

    def expense_report(
        self,
        transactions: list[Transaction],
        budgets: list[Budget],
        period: BudgetPeriod = BudgetPeriod.MONTHLY,
        reference: Optional[date] = None,
    ) -> ExpenseReport:
        """
        Budget versus actual spending per category.

        Budgeted categories come first, largest actual spend first. Spending
        with no budget of this period follows, flagged over budget.
        """
        window = period_range(period, self._reference(reference))

        spending: dict[str, Decimal] = defaultdict(lambda: ZERO)
        display_names: dict[str, str] = {}
        for expense in _expenses_in(transactions, window):
            key = category_key(expense.description)
            spending[key] += expense.amount
            display_names.setdefault(key, expense.description)

        relevant = [b for b in budgets if b.period == period]
        lines = []
        for budget in relevant:
            actual = spending.get(budget.category_key, ZERO)
            lines.append(ExpenseReportLine(
                category=budget.category,
                budget=budget.amount,
                actual=actual,
                percentage=_percentage(actual, budget.amount),
                is_over_budget=actual > budget.amount,
            ))
        lines.sort(key=lambda line: line.actual, reverse=True)

        budgeted_keys = {b.category_key for b in relevant}
        for key, actual in spending.items():
            if key not in budgeted_keys:
                lines.append(ExpenseReportLine(
                    category=display_names[key],
                    budget=ZERO,
                    actual=actual,
                    percentage=0,
                    is_over_budget=True,
                ))

        return ExpenseReport(period=period, date_range=window, lines=lines)

    def budgeted_vs_non_budgeted(
        self,
        transactions: list[Transaction],
        budgets: list[Budget],
        reference: Optional[date] = None,
    ) -> BudgetedExpenseSplit:
        """Split the month's expenses by whether a monthly budget covers them."""
        window = month_range(self._reference(reference))
        monthly_keys = {b.category_key for b in budgets if b.period == BudgetPeriod.MONTHLY}

        expenses = sorted(
            _expenses_in(transactions, window),
            key=lambda t: (t.date, t.created_at),
            reverse=True,
        )
        budgeted = [t for t in expenses if category_key(t.description) in monthly_keys]
        non_budgeted = [t for t in expenses if category_key(t.description) not in monthly_keys]

        return BudgetedExpenseSplit(
            date_range=window,
            budgeted=budgeted,
            non_budgeted=non_budgeted,
        )

    def budget_calendar(
        self,
        budgets: list[Budget],
        month: Optional[date] = None,
    ) -> BudgetCalendar:
        """Budgets with a due date in the month, grouped by day."""
        window = month_range(self._reference(month))

        events: dict[date, list[BudgetEvent]] = defaultdict(list)
        for budget in budgets:
            if budget.due_date is None or not window.contains(budget.due_date):
                continue
            events[budget.due_date].append(BudgetEvent(
                budget_id=budget.id,
                due_date=budget.due_date,
                title=f"Budget: {budget.category}",
                amount=budget.amount,
            ))

        return BudgetCalendar(month_start=window.start, events=dict(events))
