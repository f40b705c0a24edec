"""
In-Memory Payout Store

Reference implementation of the payout persistence boundary:
draft -> finalized -> paid. Finalize is a one-way gate per period and paid is
terminal. Hosts backed by a database implement the same transitions there.
"""

import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable, Iterable

from .exceptions import InvalidStatusTransition, PeriodAlreadyFinalized
from .models import PayoutCalculation, PayoutStatus

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StoredPayout:
    payout: PayoutCalculation
    finalized_at: datetime | None = None
    paid_at: datetime | None = None

    @property
    def status(self) -> PayoutStatus:
        return self.payout.status


class InMemoryPayoutStore:
    """Thread-safe payout store keyed by (producer_id, month, year)."""

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._rows: dict[tuple[str, int, int], StoredPayout] = {}
        self._lock = threading.Lock()

    def save(self, payouts: Iterable[PayoutCalculation]) -> int:
        """
        Upsert draft payouts. Returns the number saved.

        Raises InvalidStatusTransition if any row for the same producer and
        period is already finalized or paid; nothing is saved in that case.
        """
        payouts = list(payouts)
        with self._lock:
            for payout in payouts:
                if payout.status != PayoutStatus.DRAFT:
                    raise InvalidStatusTransition(
                        f"Only draft payouts can be saved, got {payout.status.value} "
                        f"for {payout.producer_name}"
                    )
                existing = self._rows.get(self._key(payout))
                if existing is not None and existing.status != PayoutStatus.DRAFT:
                    raise InvalidStatusTransition(
                        f"Payout for {payout.producer_name} {payout.period_month:02d}/"
                        f"{payout.period_year} is already {existing.status.value}"
                    )

            for payout in payouts:
                self._rows[self._key(payout)] = StoredPayout(payout=payout)

        logger.info("Saved %d draft payouts", len(payouts))
        return len(payouts)

    def finalize(self, month: int, year: int) -> int:
        """
        Move every draft of the period to finalized in one step.

        Raises PeriodAlreadyFinalized when the period has already been
        finalized, so a double submit cannot finalize twice.
        """
        with self._lock:
            rows = self._period_rows(month, year)
            if any(r.status != PayoutStatus.DRAFT for r in rows):
                raise PeriodAlreadyFinalized(f"Payouts for {month:02d}/{year} are already finalized")
            if not rows:
                raise InvalidStatusTransition(f"No draft payouts to finalize for {month:02d}/{year}")

            now = self._clock()
            for row in rows:
                row.payout = replace(row.payout, status=PayoutStatus.FINALIZED)
                row.finalized_at = now

        logger.info("Finalized %d payouts for %02d/%d", len(rows), month, year)
        return len(rows)

    def mark_paid(self, month: int, year: int) -> int:
        """Move finalized payouts of the period to paid. Drafts are not payable."""
        with self._lock:
            rows = self._period_rows(month, year)
            finalized = [r for r in rows if r.status == PayoutStatus.FINALIZED]
            if not finalized:
                raise InvalidStatusTransition(
                    f"No finalized payouts to mark paid for {month:02d}/{year}"
                )

            now = self._clock()
            for row in finalized:
                row.payout = replace(row.payout, status=PayoutStatus.PAID)
                row.paid_at = now

        logger.info("Marked %d payouts paid for %02d/%d", len(finalized), month, year)
        return len(finalized)

    def fetch(self, month: int, year: int) -> list[StoredPayout]:
        with self._lock:
            return list(self._period_rows(month, year))

    def _period_rows(self, month: int, year: int) -> list[StoredPayout]:
        return [
            row for (_, m, y), row in sorted(self._rows.items())
            if m == month and y == year
        ]

    @staticmethod
    def _key(payout: PayoutCalculation) -> tuple[str, int, int]:
        return payout.producer_id, payout.period_month, payout.period_year
