"""
Promo Evaluator

Measures promo progress and totals the bonuses of achieved promos.

One evaluator serves both individually-assigned and agency-wide promos; the
only difference is which producers' sales are in scope.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Sequence

from ..models import Promo, PromoAchievement, PromoResult, SaleRecord

logger = logging.getLogger(__name__)

MEASUREMENTS = ("premium", "items", "points", "policies", "households")


def _sum_premium(records: Sequence[SaleRecord]) -> Decimal:
    return sum((r.premium for r in records), Decimal("0"))


def _sum_items(records: Sequence[SaleRecord]) -> Decimal:
    return Decimal(sum(r.items for r in records))


def _sum_points(records: Sequence[SaleRecord]) -> Decimal:
    return sum((r.points for r in records), Decimal("0"))


def _count_policies(records: Sequence[SaleRecord]) -> Decimal:
    # Distinct policy numbers, not rows: one policy can appear on several rows.
    return Decimal(len({r.policy_number for r in records if r.policy_number}))


def _count_households(records: Sequence[SaleRecord]) -> Decimal:
    # Distinct customer names exactly as recorded, not rows.
    return Decimal(len({r.customer_name for r in records if r.customer_name}))


AGGREGATORS: dict[str, Callable[[Sequence[SaleRecord]], Decimal]] = {
    "premium": _sum_premium,
    "items": _sum_items,
    "points": _sum_points,
    "policies": _count_policies,
    "households": _count_households,
}


class PromoEvaluator:
    """Evaluates promos for one producer against period sales."""

    def evaluate(
        self,
        producer_id: str,
        promos: Iterable[Promo],
        records_for_scope: Callable[[Promo], Sequence[SaleRecord]],
        period_start: date,
        period_end: date,
        warnings: list[str] | None = None,
    ) -> PromoResult:
        """
        Evaluate every promo that applies to the producer.

        Args:
            producer_id: Producer being paid
            promos: All promos known to the agency
            records_for_scope: Returns the sales in scope for a promo
                (the producer's own, or the whole agency's for agency-wide promos)
            period_start / period_end: The statement period
            warnings: Batch warning list, appended to for unusable promos
        """
        result = PromoResult()

        for promo in promos:
            if not self.is_applicable(promo, producer_id, period_start, period_end):
                continue

            if promo.measurement not in AGGREGATORS:
                message = f"Promo '{promo.name}' has unsupported measurement '{promo.measurement}'"
                if warnings is not None and message not in warnings:
                    logger.warning(message)
                    warnings.append(message)
                continue

            result.evaluated_count += 1
            progress = self.progress(promo, records_for_scope(promo))

            if progress >= promo.target_value:
                result.achieved.append(
                    PromoAchievement(
                        promo_id=promo.id,
                        promo_name=promo.name,
                        measurement=promo.measurement,
                        target_value=promo.target_value,
                        achieved_value=progress,
                        bonus_amount_cents=promo.bonus_amount_cents,
                    )
                )
                result.bonus_amount_cents += promo.bonus_amount_cents

        return result

    @staticmethod
    def is_applicable(promo: Promo, producer_id: str, period_start: date, period_end: date) -> bool:
        return (
            promo.is_active
            and promo.applies_to(producer_id)
            and promo.overlaps(period_start, period_end)
        )

    def progress(self, promo: Promo, records: Sequence[SaleRecord]) -> Decimal:
        """Aggregate the promo's measurement over records inside its window."""
        in_window = [r for r in records if self._in_window(promo, r)]
        if promo.product_type_id is not None and promo.measurement != "households":
            in_window = [r for r in in_window if r.product_type_id == promo.product_type_id]
        return AGGREGATORS[promo.measurement](in_window)

    @staticmethod
    def _in_window(promo: Promo, record: SaleRecord) -> bool:
        # Undated records belong to the statement period, which overlaps the window.
        if record.sale_date is None:
            return True
        return promo.start_date <= record.sale_date <= promo.end_date
