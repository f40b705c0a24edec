"""
Payout Aggregator

Assembles the final PayoutCalculation for a producer from the pipeline context.
"""

from decimal import Decimal

from ..models import PayoutCalculation, PayoutStatus, ProducerContext
from .tiers import quantize_money


class PayoutAggregator:
    """Totals the payout and attaches the audit trail."""

    def build(self, ctx: ProducerContext) -> PayoutCalculation:
        """
        Build the payout record.

        Total Payout = Base Commission
                     + Brokered Commission
                     + Bonus (achieved promos + plan bonus rules)
                     + Self-Gen Kicker
        """
        metrics = ctx.metrics
        plan = ctx.plan

        promo_bonus = quantize_money(Decimal(ctx.promos.bonus_amount_cents) / Decimal("100"))
        plan_bonus = quantize_money(ctx.plan_bonus.amount)
        bonus_amount = promo_bonus + plan_bonus
        kicker_amount = quantize_money(ctx.kicker.amount)
        base_commission = quantize_money(ctx.base_commission)
        brokered = quantize_money(ctx.brokered_commission)

        total = base_commission + brokered + bonus_amount + kicker_amount

        return PayoutCalculation(
            producer_id=metrics.producer_id,
            producer_name=metrics.name,
            comp_plan_id=plan.id,
            comp_plan_name=plan.name,
            period_month=ctx.month,
            period_year=ctx.year,
            written_premium=metrics.written_premium,
            written_items=metrics.written_items,
            issued_premium=metrics.issued_premium,
            chargeback_premium=ctx.chargebacks.chargeback_premium,
            chargeback_commission=ctx.chargebacks.chargeback_commission,
            net_premium=ctx.net_premium,
            tier_match=ctx.tier_match,
            base_commission=base_commission,
            chargeback_rule=plan.chargeback_rule,
            chargeback_count=len(metrics.chargeback_insureds) or metrics.chargeback_count,
            excluded_chargeback_count=ctx.chargebacks.excluded_chargeback_count,
            achieved_promos=list(ctx.promos.achieved),
            bonus_amount_cents=ctx.promos.bonus_amount_cents,
            promo_bonus_amount=promo_bonus,
            plan_bonus_amount=plan_bonus,
            bonus_amount=bonus_amount,
            self_gen_kicker_amount=kicker_amount,
            self_gen_percent=ctx.kicker.self_gen_percent,
            total_payout=quantize_money(total),
            credit_insureds=metrics.credit_insureds,
            chargeback_insureds=metrics.chargeback_insureds,
            chargeback_lines=list(ctx.chargebacks.lines),
            override=ctx.override_audit,
            status=PayoutStatus.DRAFT,
            payout_type=plan.payout_type,
            commission_units=ctx.commission_units,
            brokered_commission=brokered,
            self_gen_requirement_met=ctx.self_gen_requirement_met,
        )
