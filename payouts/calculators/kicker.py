"""
Self-Generated Business Kicker

Extra pay on the credited business a producer sourced themselves, and the
minimum self-generated share some plans require before any tier qualifies.
"""

from decimal import ROUND_HALF_UP, Decimal

from ..models import KickerResult, ProducerContext
from .tiers import percent_of, quantize_money


class SelfGenKickerCalculator:
    """Calculates the self-gen kicker from credited (pre-chargeback) insureds."""

    def calculate(self, ctx: ProducerContext) -> KickerResult:
        kicker = ctx.plan.self_gen_kicker
        credits = ctx.metrics.credit_insureds
        self_gen = [i for i in credits if i.is_self_generated]

        credited_premium = sum((i.net_premium for i in credits), Decimal("0"))
        self_gen_premium = sum((i.net_premium for i in self_gen), Decimal("0"))
        self_gen_percent = share_percent(self_gen_premium, credited_premium)

        if kicker is None or not self_gen:
            return KickerResult(
                self_gen_premium=self_gen_premium,
                self_gen_percent=self_gen_percent,
            )

        if self_gen_percent < kicker.min_self_gen_percent:
            return KickerResult(
                self_gen_premium=self_gen_premium,
                self_gen_percent=self_gen_percent,
                qualified=False,
            )

        if kicker.kicker_type == "per_item":
            amount = kicker.amount * sum(i.items for i in self_gen)
        elif kicker.kicker_type == "per_policy":
            policies = {i.policy_number or i.insured_name for i in self_gen}
            amount = kicker.amount * len(policies)
        elif kicker.kicker_type == "per_household":
            households = {i.insured_name for i in self_gen}
            amount = kicker.amount * len(households)
        else:
            amount = percent_of(self_gen_premium, kicker.amount)

        return KickerResult(
            amount=quantize_money(amount),
            self_gen_premium=self_gen_premium,
            self_gen_percent=self_gen_percent,
            qualified=True,
        )


class SelfGenRequirementCheck:
    """Decides whether a producer's self-generated share meets the plan minimum."""

    def check(self, ctx: ProducerContext) -> bool | None:
        """None when the plan has no requirement."""
        requirement = ctx.plan.self_gen_requirement
        if requirement is None:
            return None
        return self.self_gen_percent(ctx, requirement.source) >= requirement.min_percent

    @staticmethod
    def self_gen_percent(ctx: ProducerContext, source: str) -> Decimal:
        """
        Self-generated share of premium, in percent.

        'written' reads the producer's sales, falling back to statement credits
        when no sales were supplied; 'issued' always reads statement credits.
        """
        sales = ctx.metrics.sales
        if source == "written" and sales:
            whole = sum((s.premium for s in sales), Decimal("0"))
            part = sum((s.premium for s in sales if s.is_self_generated), Decimal("0"))
        else:
            credits = ctx.metrics.credit_insureds
            whole = sum((i.net_premium for i in credits), Decimal("0"))
            part = sum((i.net_premium for i in credits if i.is_self_generated), Decimal("0"))
        return share_percent(part, whole)


def share_percent(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return Decimal("0")
    return (part / whole * Decimal("100")).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
