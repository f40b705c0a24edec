"""
Brokered Business Commission

Pays on business written through another carrier's agency (brokered), which
sits outside the statement's issued premium and is priced on its own terms.
"""

import logging
from decimal import Decimal

from ..models import ProducerContext
from .tiers import TierMatcher, percent_of, quantize_money

logger = logging.getLogger(__name__)


class BrokeredCommissionCalculator:
    """Prices brokered premium/items using the plan's brokered payout type."""

    def __init__(self, tier_matcher: TierMatcher | None = None):
        self.tier_matcher = tier_matcher or TierMatcher()

    def calculate(self, ctx: ProducerContext) -> Decimal:
        plan = ctx.plan
        metrics = ctx.metrics
        if plan.brokered_payout_type is None:
            return Decimal("0.00")

        items = Decimal(metrics.brokered_items)

        if plan.brokered_payout_type == "flat_per_item":
            amount = items * plan.brokered_flat_rate
        elif plan.brokered_payout_type == "percent_of_premium":
            amount = percent_of(metrics.brokered_premium, plan.brokered_flat_rate)
        else:
            # tiered: brokered tiers are matched on brokered items, paid per item
            match = self.tier_matcher.match(plan.brokered_tiers, items, "brokered_items")
            amount = items * match.commission_rate if match else Decimal("0")

        logger.debug(
            "Brokered commission for %s (%s): %s",
            metrics.name, plan.brokered_payout_type, amount,
        )
        return quantize_money(amount)
