"""
Output Builder

Constructs the API response from a payout batch result.
"""

from decimal import Decimal
from typing import Optional

from .calculators.tiers import PAYOUT_UNITS
from .models import (
    ChargebackLine,
    ChargebackRule,
    InsuredAggregate,
    OverrideAudit,
    PayoutBatchResult,
    PayoutCalculation,
    PromoAchievement,
    TierMatch,
)


def to_money(value: Decimal) -> float:
    """Convert Decimal to float with 2 decimal places."""
    return round(float(value), 2)


def _fmt(value) -> str:
    """Format a number as currency string for descriptions."""
    return f"${value:,.2f}"


def _pct(value: Decimal) -> str:
    return f"{float(value):g}%"


CHARGEBACK_RULE_LABELS = {
    ChargebackRule.NONE: "No Chargebacks",
    ChargebackRule.THREE_MONTH: "3-Month Rule",
    ChargebackRule.FULL: "Full Chargeback",
}


class OutputBuilder:
    """Builds the final output response."""

    def build(self, result: PayoutBatchResult) -> dict:
        """Construct the complete batch response."""
        return {
            "payouts": [self.build_payout(p) for p in result.payouts],
            "warnings": list(result.warnings),
        }

    def build_payout(self, payout: PayoutCalculation) -> dict:
        return {
            "producer_id": payout.producer_id,
            "producer_name": payout.producer_name,
            "comp_plan_id": payout.comp_plan_id,
            "comp_plan_name": payout.comp_plan_name,
            "period_month": payout.period_month,
            "period_year": payout.period_year,
            "status": payout.status.value,
            "written_premium": to_money(payout.written_premium),
            "written_items": payout.written_items,
            "issued_premium": to_money(payout.issued_premium),
            "chargeback_premium": to_money(payout.chargeback_premium),
            "net_premium": to_money(payout.net_premium),
            "tier_match": self._build_tier_match(payout.tier_match),
            "payout_type": payout.payout_type,
            "base_commission": to_money(payout.base_commission),
            "brokered_commission": to_money(payout.brokered_commission),
            "self_gen_requirement_met": payout.self_gen_requirement_met,
            "chargeback_rule": payout.chargeback_rule.value,
            "chargeback_count": payout.chargeback_count,
            "excluded_chargeback_count": payout.excluded_chargeback_count,
            "achieved_promos": [self._build_promo(a) for a in payout.achieved_promos],
            "bonus_amount_cents": payout.bonus_amount_cents,
            "bonus_amount": to_money(payout.bonus_amount),
            "self_gen_kicker_amount": to_money(payout.self_gen_kicker_amount),
            "self_gen_percent": float(payout.self_gen_percent),
            "total_payout": to_money(payout.total_payout),
            "override": self._build_override(payout.override),
            "credit_insureds": [self._build_insured(i) for i in payout.credit_insureds],
            "chargeback_insureds": [self._build_insured(i) for i in payout.chargeback_insureds],
            "chargeback_lines": [self._build_chargeback_line(line) for line in payout.chargeback_lines],
            "calculations": self._build_calculations(payout),
        }

    def _build_calculations(self, payout: PayoutCalculation) -> dict:
        """Build calculations section with value and dynamic description for each field."""
        tier = payout.tier_match
        rule_label = CHARGEBACK_RULE_LABELS[payout.chargeback_rule]

        flat = payout.commission_units is not None

        if tier is None:
            if payout.self_gen_requirement_met is False:
                tier_desc = "Self-gen requirement not met - no tier qualifies"
            else:
                tier_desc = "No tier threshold met - commission rate 0%"
            base_desc = "No tier matched, no base commission"
        else:
            rate = _fmt(tier.commission_rate) + " per unit" if flat else _pct(tier.commission_rate)
            tier_desc = (
                f"{payout.comp_plan_name}: {tier.metric} {tier.metric_value:,} meets "
                f"threshold {tier.min_threshold:,} at {rate}"
            )
            if flat:
                base_desc = (
                    f"{payout.commission_units:,} {PAYOUT_UNITS[payout.payout_type]} × "
                    f"{_fmt(tier.commission_rate)} = {_fmt(payout.base_commission)}"
                )
            else:
                base_desc = (
                    f"{_fmt(payout.net_premium)} × {_pct(tier.commission_rate)} = "
                    f"{_fmt(payout.base_commission)}"
                )

        if payout.chargeback_rule == ChargebackRule.NONE:
            chargeback_desc = (
                f"{payout.chargeback_count} chargeback(s) recorded, not applied per comp plan settings"
            )
        elif payout.excluded_chargeback_count:
            chargeback_desc = (
                f"{rule_label}: {payout.chargeback_count - payout.excluded_chargeback_count} "
                f"applied, {payout.excluded_chargeback_count} excluded (policy in force > 90 days)"
            )
        else:
            chargeback_desc = f"{rule_label}: {payout.chargeback_count} chargeback(s) applied"

        promo_names = ", ".join(a.promo_name for a in payout.achieved_promos)

        return {
            "issued_premium": {
                "value": to_money(payout.issued_premium),
                "description": f"Issued premium credited on the statement across {len(payout.credit_insureds)} insured(s)"
            },
            "chargeback_premium": {
                "value": to_money(payout.chargeback_premium),
                "description": chargeback_desc
            },
            "net_premium": {
                "value": to_money(payout.net_premium),
                "description": f"issued ({_fmt(payout.issued_premium)}) - chargebacks ({_fmt(payout.chargeback_premium)}) = {_fmt(payout.net_premium)}"
            },
            "tier": {
                "value": float(tier.commission_rate) if tier else 0.0,
                "description": tier_desc
            },
            "base_commission": {
                "value": to_money(payout.base_commission),
                "description": base_desc
            },
            "brokered_commission": {
                "value": to_money(payout.brokered_commission),
                "description": f"Brokered business paid {_fmt(payout.brokered_commission)}"
            },
            "bonus_amount": {
                "value": to_money(payout.bonus_amount),
                "description": f"promos ({_fmt(payout.promo_bonus_amount)}{': ' + promo_names if promo_names else ''}) + plan bonuses ({_fmt(payout.plan_bonus_amount)})"
            },
            "self_gen_kicker_amount": {
                "value": to_money(payout.self_gen_kicker_amount),
                "description": f"{float(payout.self_gen_percent):.1f}% of credited premium self-generated"
            },
            "total_payout": {
                "value": to_money(payout.total_payout),
                "description": f"base ({_fmt(payout.base_commission)}) + brokered ({_fmt(payout.brokered_commission)}) + bonus ({_fmt(payout.bonus_amount)}) + self-gen kicker ({_fmt(payout.self_gen_kicker_amount)}) = {_fmt(payout.total_payout)}"
            },
        }

    def _build_tier_match(self, tier: Optional[TierMatch]) -> Optional[dict]:
        if tier is None:
            return None
        return {
            "min_threshold": float(tier.min_threshold),
            "commission_rate": float(tier.commission_rate),
            "metric": tier.metric,
            "metric_value": float(tier.metric_value),
        }

    def _build_promo(self, achievement: PromoAchievement) -> dict:
        return {
            "promo_id": achievement.promo_id,
            "promo_name": achievement.promo_name,
            "measurement": achievement.measurement,
            "target_value": float(achievement.target_value),
            "achieved_value": float(achievement.achieved_value),
            "bonus_amount_cents": achievement.bonus_amount_cents,
            "bonus_amount": to_money(achievement.bonus_amount),
        }

    def _build_override(self, audit: Optional[OverrideAudit]) -> Optional[dict]:
        if audit is None:
            return None
        return {
            "raw_written_premium": to_money(audit.raw_written_premium),
            "raw_written_items": audit.raw_written_items,
            "written_premium": to_money(audit.written_premium),
            "written_items": audit.written_items,
            "note": audit.note,
        }

    def _build_insured(self, insured: InsuredAggregate) -> dict:
        return {
            "insured_name": insured.insured_name,
            "net_premium": to_money(insured.net_premium),
            "net_commission": to_money(insured.net_commission),
            "days_in_force": insured.days_in_force,
            "policy_number": insured.policy_number,
            "is_self_generated": insured.is_self_generated,
        }

    def _build_chargeback_line(self, line: ChargebackLine) -> dict:
        return {
            "insured_name": line.insured_name,
            "premium": to_money(line.premium),
            "commission": to_money(line.commission),
            "days_in_force": line.days_in_force,
            "applied": line.applied,
            "reason": line.reason,
        }
