"""
Data Models Package

This package contains all Pydantic models used in BizFlow.
All data flowing between storage, services and the UI conforms to these schemas.
"""

from bizflow.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from bizflow.models.finance import (
    AddTransactionInput,
    Budget,
    BudgetInput,
    BudgetPeriod,
    Transaction,
    TransactionType,
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
from bizflow.models.user import (
    AddUserInput,
    LoginInput,
    Role,
    UpdatePermissionsInput,
    UpdateUserInput,
    User,
    UserRecord,
)

__all__ = [
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Finance models
    "AddTransactionInput",
    "Budget",
    "BudgetInput",
    "BudgetPeriod",
    "Transaction",
    "TransactionType",
    # Report models
    "BudgetCalendar",
    "BudgetedExpenseSplit",
    "BudgetEvent",
    "CashFlowSummary",
    "DateRange",
    "ExpenseReport",
    "ExpenseReportLine",
    "SummaryPeriod",
    # User models
    "AddUserInput",
    "LoginInput",
    "Role",
    "UpdatePermissionsInput",
    "UpdateUserInput",
    "User",
    "UserRecord",
]
