"""
Main Orchestrator for BizFlow

This module ties together all the components: one SQL client shared by
every storage class, one audit logger, the action services on top, and
the report generator.

DESIGN DECISION: The orchestrator is the only place that decides which
storage backend is used. Services and the UI only ever see interfaces.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from bizflow.audit import AuditLogger
from bizflow.auth import AuthService, PasswordHasher, Session
from bizflow.config import DatabaseSettings
from bizflow.reports import ReportGenerator
from bizflow.services.budgets import BudgetService
from bizflow.services.storage import (
    SQLAuditStorage,
    SQLBudgetStorage,
    SQLClient,
    SQLTransactionStorage,
    SQLUserStorage,
)
from bizflow.services.transactions import TransactionService
from bizflow.services.users import UserService


logger = structlog.get_logger("bizflow.orchestrator")


@dataclass
class AppComponents:
    """Everything the UI needs, wired to one database."""

    client: SQLClient
    audit_logger: AuditLogger
    auth: AuthService
    users: UserService
    transactions: TransactionService
    budgets: BudgetService
    reports: ReportGenerator
    user_storage: SQLUserStorage

    def new_session(self) -> Session:
        return Session(self.user_storage)


def create_app_components(
    database: Optional[DatabaseSettings] = None,
    hasher: Optional[PasswordHasher] = None,
    persist_audit: bool = True,
    create_tables: bool = True,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        database: Database settings; defaults to the environment's
        hasher: Password hasher; defaults to AUTH_BCRYPT_ROUNDS
        persist_audit: Write audit events to the audit_events table.
                      Set to False to log them locally only.
        create_tables: Create missing tables on startup

    Raises:
        ConnectionError: If the database can't be reached after retries
    """
    client = SQLClient(database)
    client.connect()
    if create_tables:
        client.create_tables()

    audit_logger = AuditLogger(SQLAuditStorage(client) if persist_audit else None)
    hasher = hasher or PasswordHasher()

    user_storage = SQLUserStorage(client)
    components = AppComponents(
        client=client,
        audit_logger=audit_logger,
        auth=AuthService(user_storage, hasher=hasher, audit_logger=audit_logger),
        users=UserService(user_storage, hasher=hasher, audit_logger=audit_logger),
        transactions=TransactionService(SQLTransactionStorage(client), audit_logger=audit_logger),
        budgets=BudgetService(SQLBudgetStorage(client), audit_logger=audit_logger),
        reports=ReportGenerator(),
        user_storage=user_storage,
    )

    logger.info("app_components_created", persist_audit=persist_audit)
    return components
