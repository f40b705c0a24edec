"""
Tier Matcher

Selects the commission tier a producer reached and prices the base commission,
either as a percentage of net premium or as a flat amount per written unit.
All money uses Decimal with ROUND_HALF_UP rounding.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from ..exceptions import InvalidTierConfiguration
from ..models import ProducerContext, Tier, TierMatch


def quantize_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half up."""
    return value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    """Apply a percentage rate (12 = 12%)."""
    return amount * rate / Decimal('100')


# Flat payout types and the written unit they pay on
PAYOUT_UNITS = {
    "flat_per_item": "items",
    "flat_per_policy": "policies",
    "flat_per_household": "households",
}


class TierMatcher:
    """Matches a metric value against a plan's ascending tier thresholds."""

    def match(self, tiers: Sequence[Tier], value: Decimal, metric: str = "premium") -> TierMatch | None:
        """
        Return the tier with the highest threshold that `value` meets.

        Scans from the highest threshold down. Returns None when no threshold
        is met, which prices commission at 0%.
        """
        self.check_thresholds(tiers)

        for tier in reversed(tiers):
            if tier.min_threshold <= value:
                return TierMatch(
                    min_threshold=tier.min_threshold,
                    commission_rate=tier.commission_rate,
                    metric=metric,
                    metric_value=value,
                )
        return None

    def calculate(self, ctx: ProducerContext) -> TierMatch | None:
        """Match the producer's tier using the plan's tier metric."""
        plan = ctx.plan
        return self.match(plan.tiers, self.metric_value(ctx), plan.tier_metric)

    def metric_value(self, ctx: ProducerContext) -> Decimal:
        """
        The value tiers are matched on.

        Premium tiers use net premium (after chargebacks); every other metric
        uses the written count. Brokered business is added only when the plan
        says it counts toward the tier.
        """
        plan = ctx.plan
        metrics = ctx.metrics
        if plan.tier_metric == "premium":
            value = ctx.net_premium
            if plan.brokered_counts_toward_tier:
                value += metrics.brokered_premium
            return value

        value = metrics.written_units(plan.tier_metric)
        if plan.brokered_counts_toward_tier and plan.tier_metric in ("items", "policies"):
            value += metrics.brokered_items
        return value

    def payout_units(self, ctx: ProducerContext) -> Decimal | None:
        """Written units a flat plan pays on; None for percent_of_premium."""
        unit = PAYOUT_UNITS.get(ctx.plan.payout_type)
        if unit is None:
            return None
        return ctx.metrics.written_units(unit)

    def commission(self, ctx: ProducerContext) -> Decimal:
        """Price the base commission for the plan's payout type."""
        units = self.payout_units(ctx)
        if units is None:
            return self.base_commission(ctx.net_premium, ctx.tier_match)
        return self.flat_commission(units, ctx.tier_match)

    def base_commission(self, net_premium: Decimal, tier_match: TierMatch | None) -> Decimal:
        """Base commission = net premium x matched rate. Negative net stays negative."""
        if tier_match is None:
            return Decimal('0.00')
        return quantize_money(percent_of(net_premium, tier_match.commission_rate))

    def flat_commission(self, units: Decimal, tier_match: TierMatch | None) -> Decimal:
        """Flat commission = written units x matched dollar amount."""
        if tier_match is None:
            return Decimal('0.00')
        return quantize_money(units * tier_match.commission_rate)

    @staticmethod
    def check_thresholds(tiers: Sequence[Tier]) -> None:
        """Raise when thresholds are not strictly increasing."""
        for previous, current in zip(tiers, tiers[1:]):
            if current.min_threshold == previous.min_threshold:
                raise InvalidTierConfiguration(
                    f"Duplicate tier threshold: {current.min_threshold}"
                )
            if current.min_threshold < previous.min_threshold:
                raise InvalidTierConfiguration(
                    f"Tier thresholds must be strictly increasing, "
                    f"got {previous.min_threshold} then {current.min_threshold}"
                )
