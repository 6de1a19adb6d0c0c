"""
SQL Storage Implementation

DESIGN DECISION: A relational database is the single source of truth.
SQLite is the zero-setup default; PostgreSQL is supported through the
same SQLAlchemy code by changing DATABASE_URL.

Every method opens its own short-lived session, runs one or a few
statements, commits and closes. Rows are translated into pydantic
records before they leave this module.

TRADEOFFS:
- Concurrent edits are last-write-wins (no row versioning)
- Methods are async to match the interface but run synchronously
"""

import json
from contextlib import contextmanager
from datetime import date
from typing import Generator, Optional
from uuid import UUID

from sqlalchemy import create_engine, delete, event, func, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from bizflow.config import DatabaseSettings, get_settings
from bizflow.models.audit import AuditEvent, AuditEventType, AuditSeverity
from bizflow.models.finance import Budget, BudgetPeriod, Transaction, category_key
from bizflow.models.user import Role, UserRecord, username_key
from bizflow.services.storage.interface import (
    AuditStorageInterface,
    BudgetStorageInterface,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
    UserStorageInterface,
)
from bizflow.services.storage.tables import (
    AuditEventRow,
    Base,
    BudgetRow,
    TransactionRow,
    UserRow,
)


def _is_memory_url(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:", "sqlite+pysqlite:///:memory:")


class SQLClient:
    """
    Low-level database client wrapper.

    Owns the engine and session factory, and provides retry logic for
    establishing the first connection.
    """

    def __init__(self, settings: Optional[DatabaseSettings] = None):
        self._settings = settings or get_settings().database
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def url(self) -> str:
        return self._settings.url

    def _build_engine(self) -> Engine:
        kwargs: dict = {
            "echo": self._settings.echo,
            "future": True,
        }

        if self._settings.is_sqlite:
            # SQLite needs a special flag when used from Streamlit's threads.
            kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_url(self._settings.url):
                # One shared connection, otherwise each session gets an empty database
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = self._settings.pool_pre_ping

        engine = create_engine(self._settings.url, **kwargs)

        if self._settings.is_sqlite:
            @event.listens_for(engine, "connect")
            def _enable_foreign_keys(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        return engine

    @retry(
        retry=retry_if_exception_type(ConnectionError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> Engine:
        """
        Establish the database connection.

        Raises:
            ConnectionError: After three failed attempts
        """
        if self._engine is None:
            try:
                engine = self._build_engine()
                with engine.connect() as connection:
                    connection.execute(text("SELECT 1"))
            except SQLAlchemyError as e:
                raise ConnectionError(f"Failed to connect to database: {e}") from e

            self._engine = engine
            self._session_factory = sessionmaker(
                bind=engine,
                autoflush=False,
                autocommit=False,
                expire_on_commit=False,
                class_=Session,
            )

        return self._engine

    def create_tables(self) -> None:
        """Create every table and index that doesn't exist yet."""
        Base.metadata.create_all(self.connect())

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Yield a session, commit on success and roll back on error.

            with client.session_scope() as db:
                ...
        """
        self.connect()
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None


class SQLUserStorage(UserStorageInterface):
    """SQL implementation of user storage."""

    def __init__(self, client: Optional[SQLClient] = None):
        self._client = client or SQLClient()

    def _row_to_user(self, row: UserRow) -> UserRecord:
        return UserRecord(
            id=row.id,
            username=row.username,
            password_hash=row.password_hash,
            role=row.role,
            permissions=list(row.permissions or []),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    async def create_user(self, user: UserRecord) -> UserRecord:
        """Insert a user; the unique index rejects case-insensitive duplicates."""
        try:
            with self._client.session_scope() as db:
                row = UserRow(
                    id=user.id,
                    username=user.username,
                    username_key=user.username_key,
                    password_hash=user.password_hash,
                    role=user.role,
                    permissions=list(user.permissions),
                    created_at=user.created_at,
                    updated_at=user.updated_at,
                )
                db.add(row)
                db.flush()
                return self._row_to_user(row)
        except IntegrityError as e:
            raise DuplicateError(f"Username already exists: {user.username}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to create user: {e}") from e

    async def get_user_by_id(self, user_id: UUID) -> Optional[UserRecord]:
        try:
            with self._client.session_scope() as db:
                row = db.get(UserRow, user_id)
                return self._row_to_user(row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to fetch user: {e}") from e

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        try:
            with self._client.session_scope() as db:
                row = db.scalars(
                    select(UserRow).where(
                        UserRow.username_key == username_key(username)
                    )
                ).first()
                return self._row_to_user(row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to fetch user: {e}") from e

    async def username_exists(
        self,
        username: str,
        exclude_user_id: Optional[UUID] = None,
    ) -> bool:
        query = select(func.count()).select_from(UserRow).where(
            UserRow.username_key == username_key(username)
        )
        if exclude_user_id is not None:
            query = query.where(UserRow.id != exclude_user_id)

        try:
            with self._client.session_scope() as db:
                return db.scalar(query) > 0
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to check username: {e}") from e

    async def list_users(self) -> list[UserRecord]:
        try:
            with self._client.session_scope() as db:
                rows = db.scalars(
                    select(UserRow).order_by(UserRow.username_key)
                ).all()
                return [self._row_to_user(row) for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list users: {e}") from e

    async def update_user(self, user: UserRecord) -> UserRecord:
        try:
            with self._client.session_scope() as db:
                row = db.get(UserRow, user.id)
                if row is None:
                    raise NotFoundError(f"User not found: {user.id}")

                row.username = user.username
                row.username_key = user.username_key
                row.password_hash = user.password_hash
                row.role = user.role
                row.permissions = list(user.permissions)
                db.flush()
                return self._row_to_user(row)
        except IntegrityError as e:
            raise DuplicateError(f"Username already exists: {user.username}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to update user: {e}") from e

    async def delete_user(self, user_id: UUID) -> bool:
        """
        Delete the user and everything they own.

        Child rows are removed explicitly so the cascade holds even where
        the database doesn't enforce foreign keys.
        """
        try:
            with self._client.session_scope() as db:
                row = db.get(UserRow, user_id)
                if row is None:
                    raise NotFoundError(f"User not found: {user_id}")

                db.execute(delete(TransactionRow).where(TransactionRow.user_id == user_id))
                db.execute(delete(BudgetRow).where(BudgetRow.user_id == user_id))
                db.delete(row)
                return True
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete user: {e}") from e

    async def count_users(self) -> int:
        try:
            with self._client.session_scope() as db:
                return db.scalar(select(func.count()).select_from(UserRow))
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to count users: {e}") from e

    async def count_superadmins(self) -> int:
        try:
            with self._client.session_scope() as db:
                return db.scalar(
                    select(func.count())
                    .select_from(UserRow)
                    .where(UserRow.role == Role.SUPERADMIN)
                )
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to count superadmins: {e}") from e


class SQLTransactionStorage(TransactionStorageInterface):
    """SQL implementation of transaction storage."""

    def __init__(self, client: Optional[SQLClient] = None):
        self._client = client or SQLClient()

    def _row_to_transaction(self, row: TransactionRow) -> Transaction:
        return Transaction(
            id=row.id,
            user_id=row.user_id,
            type=row.type,
            description=row.description,
            amount=row.amount,
            date=row.date,
            created_at=row.created_at,
        )

    async def add_transaction(self, transaction: Transaction) -> Transaction:
        try:
            with self._client.session_scope() as db:
                if db.get(UserRow, transaction.user_id) is None:
                    raise NotFoundError(f"User not found: {transaction.user_id}")
                row = TransactionRow(
                    id=transaction.id,
                    user_id=transaction.user_id,
                    type=transaction.type,
                    description=transaction.description,
                    amount=transaction.amount,
                    date=transaction.date,
                    created_at=transaction.created_at,
                )
                db.add(row)
                db.flush()
                return self._row_to_transaction(row)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to add transaction: {e}") from e

    async def get_transaction_by_id(
        self,
        transaction_id: UUID,
    ) -> Optional[Transaction]:
        try:
            with self._client.session_scope() as db:
                row = db.get(TransactionRow, transaction_id)
                return self._row_to_transaction(row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to fetch transaction: {e}") from e

    async def list_transactions(
        self,
        user_id: UUID,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transaction]:
        query = select(TransactionRow).where(TransactionRow.user_id == user_id)
        if date_from:
            query = query.where(TransactionRow.date >= date_from)
        if date_to:
            query = query.where(TransactionRow.date <= date_to)
        query = query.order_by(TransactionRow.date.desc(), TransactionRow.created_at.desc())

        try:
            with self._client.session_scope() as db:
                return [self._row_to_transaction(row) for row in db.scalars(query).all()]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list transactions: {e}") from e

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        try:
            with self._client.session_scope() as db:
                row = db.get(TransactionRow, transaction_id)
                if row is None:
                    raise NotFoundError(f"Transaction not found: {transaction_id}")
                db.delete(row)
                return True
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete transaction: {e}") from e


class SQLBudgetStorage(BudgetStorageInterface):
    """SQL implementation of budget storage."""

    def __init__(self, client: Optional[SQLClient] = None):
        self._client = client or SQLClient()

    def _row_to_budget(self, row: BudgetRow) -> Budget:
        return Budget(
            id=row.id,
            user_id=row.user_id,
            category=row.category,
            amount=row.amount,
            period=row.period,
            due_date=row.due_date,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    async def get_budget_by_id(self, budget_id: UUID) -> Optional[Budget]:
        try:
            with self._client.session_scope() as db:
                row = db.get(BudgetRow, budget_id)
                return self._row_to_budget(row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to fetch budget: {e}") from e

    async def find_budget(
        self,
        user_id: UUID,
        category: str,
        period: BudgetPeriod,
    ) -> Optional[Budget]:
        try:
            with self._client.session_scope() as db:
                row = db.scalars(
                    select(BudgetRow).where(
                        BudgetRow.user_id == user_id,
                        BudgetRow.category_key == category_key(category),
                        BudgetRow.period == period,
                    )
                ).first()
                return self._row_to_budget(row) if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to fetch budget: {e}") from e

    async def list_budgets(self, user_id: UUID) -> list[Budget]:
        query = (
            select(BudgetRow)
            .where(BudgetRow.user_id == user_id)
            .order_by(BudgetRow.category_key, BudgetRow.period)
        )
        try:
            with self._client.session_scope() as db:
                return [self._row_to_budget(row) for row in db.scalars(query).all()]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list budgets: {e}") from e

    async def create_budget(self, budget: Budget) -> Budget:
        try:
            with self._client.session_scope() as db:
                if db.get(UserRow, budget.user_id) is None:
                    raise NotFoundError(f"User not found: {budget.user_id}")
                row = BudgetRow(
                    id=budget.id,
                    user_id=budget.user_id,
                    category=budget.category,
                    category_key=budget.category_key,
                    amount=budget.amount,
                    period=budget.period,
                    due_date=budget.due_date,
                    created_at=budget.created_at,
                    updated_at=budget.updated_at,
                )
                db.add(row)
                db.flush()
                return self._row_to_budget(row)
        except IntegrityError as e:
            raise DuplicateError(
                f"Budget already exists: {budget.category} ({budget.period.value})"
            ) from e
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to create budget: {e}") from e

    async def update_budget(self, budget: Budget) -> Budget:
        try:
            with self._client.session_scope() as db:
                row = db.get(BudgetRow, budget.id)
                if row is None:
                    raise NotFoundError(f"Budget not found: {budget.id}")

                row.category = budget.category
                row.category_key = budget.category_key
                row.amount = budget.amount
                row.due_date = budget.due_date
                db.flush()
                return self._row_to_budget(row)
        except IntegrityError as e:
            raise DuplicateError(
                f"Budget already exists: {budget.category} ({budget.period.value})"
            ) from e
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to update budget: {e}") from e

    async def delete_budget(self, budget_id: UUID) -> bool:
        try:
            with self._client.session_scope() as db:
                row = db.get(BudgetRow, budget_id)
                if row is None:
                    raise NotFoundError(f"Budget not found: {budget_id}")
                db.delete(row)
                return True
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete budget: {e}") from e


class SQLAuditStorage(AuditStorageInterface):
    """
    SQL implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[SQLClient] = None):
        self._client = client or SQLClient()

    def _row_to_event(self, row: AuditEventRow) -> AuditEvent:
        return AuditEvent(
            event_id=UUID(row.event_id),
            timestamp=row.timestamp,
            event_type=AuditEventType(row.event_type),
            severity=AuditSeverity(row.severity),
            entity_type=row.entity_type,
            entity_id=UUID(row.entity_id) if row.entity_id else None,
            actor_id=UUID(row.actor_id) if row.actor_id else None,
            description=row.description,
            details=json.loads(row.details_json) if row.details_json else {},
            error_message=row.error_message,
            is_user_action=row.is_user_action,
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            with self._client.session_scope() as db:
                db.add(AuditEventRow(**event.to_row()))
            return True
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to write audit event: {e}") from e

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        query = (
            select(AuditEventRow)
            .where(
                AuditEventRow.entity_type == entity_type,
                AuditEventRow.entity_id == str(entity_id),
            )
            .order_by(AuditEventRow.timestamp)
        )
        try:
            with self._client.session_scope() as db:
                return [self._row_to_event(row) for row in db.scalars(query).all()]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read audit events: {e}") from e

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        query = (
            select(AuditEventRow)
            .order_by(AuditEventRow.timestamp.desc())
            .limit(limit)
        )
        try:
            with self._client.session_scope() as db:
                return [self._row_to_event(row) for row in db.scalars(query).all()]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read audit events: {e}") from e
