from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.points_ledger_entries import PointsLedgerEntry
from app.db.repo.customers_repo import CustomersRepo
from app.db.repo.points_ledger_repo import PointsLedgerRepo
from app.economy.points.constants import HISTORY_DEFAULT_LIMIT
from app.economy.points.errors import (
    PointsCustomerNotFoundError,
    PointsInsufficientBalanceError,
    PointsValidationError,
)
from app.economy.points.rules import (
    balance_after_change,
    points_change_violation,
    reference_violation,
)
from app.economy.points.types import BalanceCheckResult, LedgerEntrySnapshot, PointsRecordResult

logger = structlog.get_logger(__name__)


class PointsLedgerService:
    @staticmethod
    def snapshot(entry: PointsLedgerEntry) -> LedgerEntrySnapshot:
        return LedgerEntrySnapshot(
            entry_id=entry.id,
            customer_id=entry.customer_id,
            merchant_id=entry.merchant_id,
            transaction_type=entry.transaction_type,
            points_change=entry.points_change,
            balance_before=entry.balance_before,
            balance_after=entry.balance_after,
            reference_id=entry.reference_id,
            description=entry.description,
            created_at=entry.created_at,
        )

    @staticmethod
    async def record(
        session: AsyncSession,
        *,
        customer_id: str,
        merchant_id: str,
        points_change: int,
        transaction_type: str,
        reference_id: str | None,
        description: str | None,
        now_utc: datetime,
        allow_negative: bool = False,
        metadata: dict[str, object] | None = None,
    ) -> PointsRecordResult:
        """Appends one ledger entry and moves the customer's balance with it.

        The customer row is locked before the balance is read, so concurrent
        writers for the same customer observe each other's balance_after as
        their balance_before. A repeated reference_id for the same customer and
        transaction type returns the original entry instead of writing again.
        """
        violation = points_change_violation(
            transaction_type=transaction_type,
            points_change=points_change,
            allow_negative=allow_negative,
        ) or reference_violation(reference_id=reference_id, description=description)
        if violation is not None:
            raise PointsValidationError(violation)

        customer = await CustomersRepo.get_by_id_for_update(session, customer_id)
        if customer is None or customer.merchant_id != merchant_id:
            raise PointsCustomerNotFoundError(customer_id)

        if reference_id is not None:
            existing_entry = await PointsLedgerRepo.get_by_reference(
                session,
                customer_id=customer_id,
                transaction_type=transaction_type,
                reference_id=reference_id,
            )
            if existing_entry is not None:
                logger.info(
                    "points_ledger_entry_replayed",
                    customer_id=customer_id,
                    transaction_type=transaction_type,
                    reference_id=reference_id,
                    entry_id=existing_entry.id,
                )
                return PointsRecordResult(
                    entry=PointsLedgerService.snapshot(existing_entry),
                    idempotent_replay=True,
                )

        balance_before = customer.total_points
        balance_after = balance_after_change(
            balance_before=balance_before,
            points_change=points_change,
        )
        if balance_after is None:
            raise PointsInsufficientBalanceError(
                customer_id=customer_id,
                balance=balance_before,
                points_change=points_change,
            )

        entry = await PointsLedgerRepo.create(
            session,
            entry=PointsLedgerEntry(
                customer_id=customer_id,
                merchant_id=merchant_id,
                transaction_type=transaction_type,
                points_change=points_change,
                balance_before=balance_before,
                balance_after=balance_after,
                reference_id=reference_id,
                description=description,
                metadata_=metadata or {},
                created_at=now_utc,
            ),
        )

        customer.total_points = balance_after
        customer.updated_at = now_utc
        customer.version += 1
        await session.flush()

        logger.info(
            "points_ledger_entry_recorded",
            customer_id=customer_id,
            merchant_id=merchant_id,
            transaction_type=transaction_type,
            points_change=points_change,
            balance_before=balance_before,
            balance_after=balance_after,
            reference_id=reference_id,
        )
        return PointsRecordResult(
            entry=PointsLedgerService.snapshot(entry),
            idempotent_replay=False,
        )

    @staticmethod
    async def get_by_reference(
        session: AsyncSession,
        *,
        customer_id: str,
        transaction_type: str,
        reference_id: str,
    ) -> LedgerEntrySnapshot | None:
        entry = await PointsLedgerRepo.get_by_reference(
            session,
            customer_id=customer_id,
            transaction_type=transaction_type,
            reference_id=reference_id,
        )
        if entry is None:
            return None
        return PointsLedgerService.snapshot(entry)

    @staticmethod
    async def list_history(
        session: AsyncSession,
        *,
        customer_id: str,
        merchant_id: str,
        limit: int = HISTORY_DEFAULT_LIMIT,
    ) -> list[LedgerEntrySnapshot]:
        entries = await PointsLedgerRepo.list_for_customer(
            session,
            customer_id=customer_id,
            merchant_id=merchant_id,
            limit=limit,
        )
        return [PointsLedgerService.snapshot(entry) for entry in entries]

    @staticmethod
    async def verify_balance(session: AsyncSession, *, customer_id: str) -> BalanceCheckResult:
        customer = await CustomersRepo.get_by_id(session, customer_id)
        if customer is None:
            raise PointsCustomerNotFoundError(customer_id)

        ledger_sum = await PointsLedgerRepo.sum_points_change_for_customer(
            session,
            customer_id=customer_id,
        )
        result = BalanceCheckResult(
            customer_id=customer_id,
            total_points=customer.total_points,
            ledger_sum=ledger_sum,
        )
        if not result.is_consistent:
            logger.warning(
                "points_balance_mismatch",
                customer_id=customer_id,
                total_points=customer.total_points,
                ledger_sum=ledger_sum,
            )
        return result
