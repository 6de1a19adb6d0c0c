"""Tests for transaction actions."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from bizflow.models.audit import AuditEventType
from bizflow.models.finance import TransactionType
from bizflow.services.errors import (
    InvalidInputError,
    PermissionDeniedError,
    RecordNotFoundError,
)
from bizflow.services.transactions import (
    IDS_REQUIRED,
    NOT_OWNER,
    OWNER_NOT_FOUND,
    TRANSACTION_NOT_FOUND,
)


class TestAddTransaction:
    """Tests for TransactionService.add_transaction."""

    def test_add_transaction(self, run, transactions, alice):
        saved = run(transactions.add_transaction(
            alice.id,
            TransactionType.EXPENSE,
            "  Groceries ",
            Decimal("125.5"),
            date(2024, 12, 15),
        ))

        assert saved.user_id == alice.id
        assert saved.description == "Groceries"
        assert saved.amount == Decimal("125.50")

    def test_accepts_string_type_and_amount(self, run, transactions, alice):
        saved = run(transactions.add_transaction(
            alice.id, "income", "Salary", "1000", date(2024, 12, 1)
        ))
        assert saved.type == TransactionType.INCOME
        assert saved.amount == Decimal("1000.00")

    def test_rejects_non_positive_amount(self, run, transactions, alice):
        with pytest.raises(InvalidInputError, match="Amount must be positive"):
            run(transactions.add_transaction(
                alice.id, "expense", "Food", Decimal("0"), date(2024, 12, 1)
            ))

    def test_rejects_amount_too_large(self, run, transactions, alice):
        """Test that an amount past the column precision is a validation error."""
        with pytest.raises(InvalidInputError, match="Amount is too large"):
            run(transactions.add_transaction(
                alice.id, "expense", "Food", Decimal("1e30"), date(2024, 12, 1)
            ))

    def test_accepts_largest_amount(self, run, transactions, alice):
        saved = run(transactions.add_transaction(
            alice.id, "income", "Sale", Decimal("999999999999.99"), date(2024, 12, 1)
        ))
        assert saved.amount == Decimal("999999999999.99")

    def test_rejects_missing_fields(self, run, transactions, alice):
        with pytest.raises(InvalidInputError, match="Invalid transaction data"):
            run(transactions.add_transaction(alice.id, None, "", None, None))

    def test_unknown_owner(self, run, transactions):
        with pytest.raises(RecordNotFoundError, match=OWNER_NOT_FOUND):
            run(transactions.add_transaction(
                uuid4(), "expense", "Food", Decimal("10"), date(2024, 12, 1)
            ))

    def test_add_is_audited(self, run, transactions, alice, audit_storage):
        saved = run(transactions.add_transaction(
            alice.id, "expense", "Food", Decimal("10"), date(2024, 12, 1)
        ))

        events = run(audit_storage.get_events_by_entity("transaction", saved.id))
        assert [e.event_type for e in events] == [AuditEventType.TRANSACTION_ADDED]
        assert events[0].actor_id == alice.id


class TestGetTransactions:
    """Tests for TransactionService.get_transactions."""

    def test_newest_first(self, run, transactions, alice):
        for day in (5, 20, 12):
            run(transactions.add_transaction(
                alice.id, "expense", f"Day {day}", Decimal("1"), date(2024, 12, day)
            ))

        listed = run(transactions.get_transactions(alice.id))
        assert [t.date.day for t in listed] == [20, 12, 5]

    def test_scoped_to_owner(self, run, transactions, alice, bob):
        run(transactions.add_transaction(alice.id, "income", "Salary", Decimal("5"), date(2024, 12, 1)))
        run(transactions.add_transaction(bob.id, "income", "Salary", Decimal("7"), date(2024, 12, 1)))

        listed = run(transactions.get_transactions(alice.id))
        assert [t.amount for t in listed] == [Decimal("5.00")]

    def test_date_filter_is_inclusive(self, run, transactions, alice):
        for day in (1, 10, 31):
            run(transactions.add_transaction(
                alice.id, "expense", "Food", Decimal("1"), date(2024, 12, day)
            ))

        listed = run(transactions.get_transactions(
            alice.id, date_from=date(2024, 12, 10), date_to=date(2024, 12, 31)
        ))
        assert [t.date.day for t in listed] == [31, 10]

    def test_no_user_no_rows(self, run, transactions):
        assert run(transactions.get_transactions(None)) == []


class TestDeleteTransaction:
    """Tests for TransactionService.delete_transaction."""

    def test_delete_own(self, run, transactions, alice):
        saved = run(transactions.add_transaction(
            alice.id, "expense", "Food", Decimal("10"), date(2024, 12, 1)
        ))
        run(transactions.delete_transaction(saved.id, alice.id))
        assert run(transactions.get_transactions(alice.id)) == []

    def test_cannot_delete_others(self, run, transactions, alice, bob):
        saved = run(transactions.add_transaction(
            alice.id, "expense", "Food", Decimal("10"), date(2024, 12, 1)
        ))

        with pytest.raises(PermissionDeniedError, match=NOT_OWNER):
            run(transactions.delete_transaction(saved.id, bob.id))

        assert len(run(transactions.get_transactions(alice.id))) == 1

    def test_delete_missing(self, run, transactions, alice):
        with pytest.raises(RecordNotFoundError, match=TRANSACTION_NOT_FOUND):
            run(transactions.delete_transaction(uuid4(), alice.id))

    def test_ids_required(self, run, transactions, alice):
        with pytest.raises(InvalidInputError, match=IDS_REQUIRED):
            run(transactions.delete_transaction(None, alice.id))
