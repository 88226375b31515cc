"""
Ledger Tracker

Typed money movements: expenses, income, and money lent or borrowed.

Debts carry the other party's name and an ``is_settled`` flag that starts
False and is flipped by ``settle_debt``. Other entries leave the flag unset.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

from lifeos.audit import AuditLogger
from lifeos.models.schedule import DEBT_TYPES, LedgerEntry, TransactionType
from lifeos.services.storage import (
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from lifeos.trackers.base import parse_amount


class LedgerTracker:
    """Central ledger of expenses, income and debts."""

    def __init__(
        self,
        ledger_storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = ledger_storage
        self._audit_logger = audit_logger

    async def add_transaction(
        self,
        item_name: str,
        amount,
        transaction_type: Union[TransactionType, str] = TransactionType.EXPENSE,
        category: Optional[str] = None,
        entity_name: Optional[str] = None,
        quantity: int = 1,
        created_at: Optional[Union[datetime, str]] = None,
    ) -> LedgerEntry:
        """
        Record a transaction.

        Args:
            item_name: What the money was for
            amount: Amount, must be non-negative
            transaction_type: expense, income, debt_given or debt_taken
            category: Defaults to "Other"
            entity_name: Who gave or took the money, required for debts
            quantity: Defaults to 1
            created_at: When it happened, defaults to now. Naive values are UTC.

        Raises:
            ValueError: On an empty name, invalid amount or type, or a debt
                        without an entity name
            StorageError: If the entry could not be saved
        """
        item_name = (item_name or "").strip()
        if not item_name:
            raise ValueError("Enter what the transaction was for")

        kind = TransactionType(transaction_type)
        entity = (entity_name or "").strip() or None
        if kind in DEBT_TYPES and entity is None:
            raise ValueError("Enter who the money was given to or taken from")

        data = {
            "item_name": item_name,
            "category": (category or "").strip() or "Other",
            "quantity": quantity,
            "amount": parse_amount(amount),
            "transaction_type": kind,
            "entity_name": entity,
            "is_settled": False if kind in DEBT_TYPES else None,
        }
        if created_at is not None:
            data["created_at"] = created_at
        entry = LedgerEntry(**data)

        try:
            stored = await self._storage.add_entry(entry)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error("add_transaction", str(e), "ledger")
            raise

        if self._audit_logger:
            await self._audit_logger.log_transaction_logged(
                stored.id,
                stored.item_name,
                stored.transaction_type.value,
                str(stored.amount),
                stored.entity_name,
            )
        return stored

    async def fetch_ledger(
        self,
        transaction_type: Optional[Union[TransactionType, str]] = None,
        is_settled: Optional[bool] = None,
    ) -> list[LedgerEntry]:
        """
        List ledger entries, newest first.

        ``is_settled=False`` matches entries whose flag is False or unset.
        """
        kind = TransactionType(transaction_type) if transaction_type else None
        return await self._storage.list_entries(
            transaction_type=kind,
            is_settled=is_settled,
        )

    async def settle_debt(self, entry_id: UUID) -> bool:
        """
        Mark a debt as settled.

        Raises:
            NotFoundError: If no entry has this ID
        """
        if not await self._storage.settle_entry(entry_id):
            raise NotFoundError(f"Ledger entry not found: {entry_id}")
        if self._audit_logger:
            await self._audit_logger.log_debt_settled(entry_id)
        return True

    @staticmethod
    def outstanding_balance(entries: list[LedgerEntry]) -> Decimal:
        """
        Net unsettled debt: money lent minus money borrowed.

        Positive means others owe the household.
        """
        balance = Decimal("0")
        for entry in entries:
            if entry.is_settled:
                continue
            if entry.transaction_type == TransactionType.DEBT_GIVEN:
                balance += entry.amount
            elif entry.transaction_type == TransactionType.DEBT_TAKEN:
                balance -= entry.amount
        return balance
