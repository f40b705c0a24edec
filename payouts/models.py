"""
Domain Models for the Agency Payout Engine

These dataclasses provide type-safe representations of all business entities.
All monetary values use Decimal for precision. Input models are frozen: they
never change while a batch is being calculated.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum


def to_decimal(value, default: str = "0") -> Decimal:
    """Build a Decimal from JSON numbers/strings without float artifacts."""
    if value is None:
        return Decimal(default)
    return Decimal(str(value))


def parse_date(value: str | None) -> date | None:
    if not value:
        return None
    return date.fromisoformat(str(value)[:10])


def _optional_int(value) -> int | None:
    return int(value) if value is not None else None


def _optional_decimal(value) -> Decimal | None:
    return to_decimal(value) if value is not None else None


# Errors raised by from_dict on a malformed record
PARSE_ERRORS = (KeyError, ValueError, TypeError, ArithmeticError, AttributeError)


def _record_label(raw, *keys: str) -> str:
    if isinstance(raw, dict):
        for key in keys:
            if raw.get(key) is not None:
                return str(raw[key])
    return "unknown"


# =============================================================================
# ENUMS
# =============================================================================


class ChargebackRule(str, Enum):
    """How chargebacks reduce a producer's credited premium."""

    NONE = "none"
    THREE_MONTH = "three_month"
    FULL = "full"


class PayoutStatus(str, Enum):
    DRAFT = "draft"
    FINALIZED = "finalized"
    PAID = "paid"


# =============================================================================
# PLAN MODELS
# =============================================================================


@dataclass(frozen=True)
class Tier:
    """A single threshold band in a comp plan.

    commission_rate is a percentage (12 = 12%) on percent_of_premium plans and
    dollars per unit on the flat_per_* plans.
    """

    min_threshold: Decimal
    commission_rate: Decimal

    @classmethod
    def from_dict(cls, data: dict) -> "Tier":
        rate = data["commission_rate"] if "commission_rate" in data else data["commission_value"]
        return cls(
            min_threshold=to_decimal(data["min_threshold"]),
            commission_rate=to_decimal(rate),
        )


@dataclass(frozen=True)
class BonusRule:
    """A flat or percentage bonus paid when net premium reaches a floor."""

    name: str
    bonus_type: str  # 'flat' or 'percentage'
    amount: Decimal
    min_net_premium: Decimal = Decimal("0")

    @classmethod
    def from_dict(cls, data: dict) -> "BonusRule":
        return cls(
            name=data.get("name", "Bonus"),
            bonus_type=data["bonus_type"],
            amount=to_decimal(data["amount"]),
            min_net_premium=to_decimal(data.get("min_net_premium", 0)),
        )


@dataclass(frozen=True)
class SelfGenKicker:
    """Extra pay on self-generated business.

    kicker_type:
    - percent_of_premium: amount is a percentage of self-generated premium
    - per_item / per_policy / per_household: amount is dollars per unit
    """

    kicker_type: str = "percent_of_premium"
    amount: Decimal = Decimal("0")
    min_self_gen_percent: Decimal = Decimal("0")

    @classmethod
    def from_dict(cls, data: dict) -> "SelfGenKicker":
        return cls(
            kicker_type=data.get("kicker_type", data.get("type", "percent_of_premium")),
            amount=to_decimal(data.get("amount", 0)),
            min_self_gen_percent=to_decimal(data.get("min_self_gen_percent", 0)),
        )


@dataclass(frozen=True)
class SelfGenRequirement:
    """Minimum self-generated share needed to qualify for any tier."""

    min_percent: Decimal
    source: str = "written"  # 'written' (sales) or 'issued' (statement credits)
    affects_qualification: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "SelfGenRequirement":
        return cls(
            min_percent=to_decimal(data.get("min_percent", 0)),
            source=data.get("source", "written"),
            affects_qualification=data.get("affects_qualification", True),
        )


@dataclass(frozen=True)
class CompPlan:
    """A named compensation policy belonging to an agency."""

    id: str
    name: str
    tiers: tuple[Tier, ...] = ()
    chargeback_rule: ChargebackRule = ChargebackRule.NONE
    payout_type: str = "percent_of_premium"  # or flat_per_item / flat_per_policy / flat_per_household
    tier_metric: str = "premium"  # premium, items, policies, points, households
    bonus_rules: tuple[BonusRule, ...] = ()
    self_gen_kicker: SelfGenKicker | None = None
    self_gen_requirement: SelfGenRequirement | None = None
    brokered_payout_type: str | None = None  # flat_per_item, percent_of_premium, tiered
    brokered_flat_rate: Decimal = Decimal("0")
    brokered_tiers: tuple[Tier, ...] = ()
    brokered_counts_toward_tier: bool = False
    agency_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "CompPlan":
        # Tiers keep their stored order; the plan store saves them ascending
        # and anything else is rejected before matching.
        tiers = tuple(Tier.from_dict(t) for t in data.get("tiers", []))
        modifiers = data.get("commission_modifiers") or {}
        kicker = data.get("self_gen_kicker") or modifiers.get("self_gen_kicker")
        if kicker and kicker.get("enabled") is False:
            kicker = None
        requirement = data.get("self_gen_requirement") or modifiers.get("self_gen_requirement")
        return cls(
            id=str(data["id"]),
            name=data.get("name", str(data["id"])),
            tiers=tiers,
            chargeback_rule=ChargebackRule(data.get("chargeback_rule", "none")),
            payout_type=data.get("payout_type", "percent_of_premium"),
            tier_metric=data.get("tier_metric", "premium"),
            bonus_rules=tuple(BonusRule.from_dict(b) for b in data.get("bonus_rules", [])),
            self_gen_kicker=SelfGenKicker.from_dict(kicker) if kicker else None,
            self_gen_requirement=SelfGenRequirement.from_dict(requirement) if requirement else None,
            brokered_payout_type=data.get("brokered_payout_type"),
            brokered_flat_rate=to_decimal(data.get("brokered_flat_rate")),
            brokered_tiers=tuple(Tier.from_dict(t) for t in data.get("brokered_tiers") or []),
            brokered_counts_toward_tier=bool(data.get("brokered_counts_toward_tier", False)),
            agency_id=data.get("agency_id"),
        )


@dataclass(frozen=True)
class ProducerAssignment:
    """Links a producer to a comp plan. Open-ended when dates are absent."""

    producer_id: str
    comp_plan_id: str
    start_date: date | None = None
    end_date: date | None = None

    def is_active_between(self, period_start: date, period_end: date) -> bool:
        if self.start_date is not None and self.start_date > period_end:
            return False
        if self.end_date is not None and self.end_date < period_start:
            return False
        return True

    @classmethod
    def from_dict(cls, data: dict) -> "ProducerAssignment":
        return cls(
            producer_id=str(data["producer_id"]),
            comp_plan_id=str(data["comp_plan_id"]),
            start_date=parse_date(data.get("start_date")),
            end_date=parse_date(data.get("end_date")),
        )


# =============================================================================
# METRICS MODELS
# =============================================================================


@dataclass(frozen=True)
class InsuredAggregate:
    """Net premium/commission for one insured on the statement."""

    insured_name: str
    net_premium: Decimal
    net_commission: Decimal = Decimal("0")
    days_in_force: int | None = None  # required by the three-month rule
    policy_number: str | None = None
    items: int = 1
    points: Decimal = Decimal("0")
    is_self_generated: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "InsuredAggregate":
        days = data.get("days_in_force")
        return cls(
            insured_name=data["insured_name"],
            net_premium=to_decimal(data["net_premium"]),
            net_commission=to_decimal(data.get("net_commission", 0)),
            days_in_force=int(days) if days is not None else None,
            policy_number=data.get("policy_number"),
            items=int(data.get("items", 1)),
            points=to_decimal(data.get("points", 0)),
            is_self_generated=data.get("is_self_generated", False),
        )


@dataclass(frozen=True)
class SaleRecord:
    """A dated sale, used to measure promo progress."""

    customer_name: str
    premium: Decimal = Decimal("0")
    items: int = 0
    points: Decimal = Decimal("0")
    policy_number: str | None = None
    sale_date: date | None = None  # None = inside the statement period
    product_type_id: str | None = None
    is_self_generated: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "SaleRecord":
        product_type_id = data.get("product_type_id")
        return cls(
            customer_name=data["customer_name"],
            premium=to_decimal(data.get("premium", 0)),
            items=int(data.get("items", 0)),
            points=to_decimal(data.get("points", 0)),
            policy_number=data.get("policy_number"),
            sale_date=parse_date(data.get("sale_date")),
            product_type_id=str(product_type_id) if product_type_id is not None else None,
            is_self_generated=data.get("is_self_generated", False),
        )


@dataclass(frozen=True)
class SubProducerMetrics:
    """Raw statement-period aggregate for one producer."""

    producer_id: str
    name: str
    written_premium: Decimal = Decimal("0")
    written_items: int = 0
    issued_premium: Decimal = Decimal("0")
    credit_count: int = 0
    chargeback_count: int = 0
    premium_chargebacks: Decimal = Decimal("0")
    credit_insureds: tuple[InsuredAggregate, ...] = ()
    chargeback_insureds: tuple[InsuredAggregate, ...] = ()
    sales: tuple[SaleRecord, ...] = ()
    # None = derive from credit insureds
    written_policies: int | None = None
    written_households: int | None = None
    written_points: Decimal | None = None
    brokered_premium: Decimal = Decimal("0")
    brokered_items: int = 0

    def written_units(self, metric: str) -> Decimal:
        """Written count for a tier metric or flat payout unit."""
        if metric == "premium":
            return self.written_premium
        if metric == "items":
            return Decimal(self.written_items)
        if metric == "policies":
            if self.written_policies is not None:
                return Decimal(self.written_policies)
            return Decimal(len({i.policy_number or i.insured_name for i in self.credit_insureds}))
        if metric == "households":
            if self.written_households is not None:
                return Decimal(self.written_households)
            return Decimal(len({i.insured_name for i in self.credit_insureds}))
        if metric == "points":
            if self.written_points is not None:
                return self.written_points
            return sum((i.points for i in self.credit_insureds), Decimal("0"))
        raise ValueError(f"Unknown metric: {metric}")

    def promo_records(self) -> tuple[SaleRecord, ...]:
        """Sales used for promo progress; derived from credits when absent."""
        if self.sales:
            return self.sales
        return tuple(
            SaleRecord(
                customer_name=insured.insured_name,
                premium=insured.net_premium,
                items=insured.items,
                points=insured.points,
                policy_number=insured.policy_number,
            )
            for insured in self.credit_insureds
        )

    @classmethod
    def from_dict(cls, data: dict) -> "SubProducerMetrics":
        credits = tuple(InsuredAggregate.from_dict(i) for i in data.get("credit_insureds", []))
        chargebacks = tuple(InsuredAggregate.from_dict(i) for i in data.get("chargeback_insureds", []))
        return cls(
            producer_id=str(data["producer_id"]),
            name=data.get("name", str(data["producer_id"])),
            written_premium=to_decimal(data.get("written_premium", 0)),
            written_items=int(data.get("written_items", 0)),
            issued_premium=to_decimal(data.get("issued_premium", 0)),
            credit_count=int(data.get("credit_count", len(credits))),
            chargeback_count=int(data.get("chargeback_count", len(chargebacks))),
            premium_chargebacks=to_decimal(data.get("premium_chargebacks", 0)),
            credit_insureds=credits,
            chargeback_insureds=chargebacks,
            sales=tuple(SaleRecord.from_dict(s) for s in data.get("sales", [])),
            written_policies=_optional_int(data.get("written_policies")),
            written_households=_optional_int(data.get("written_households")),
            written_points=_optional_decimal(data.get("written_points")),
            brokered_premium=to_decimal(data.get("brokered_premium", 0)),
            brokered_items=int(data.get("brokered_items", 0)),
        )


@dataclass(frozen=True)
class ManualOverride:
    """Agency-entered correction of a producer's written figures."""

    producer_id: str
    written_items: int | None = None
    written_premium: Decimal | None = None
    note: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "ManualOverride":
        items = data.get("written_items")
        premium = data.get("written_premium")
        return cls(
            producer_id=str(data["producer_id"]),
            written_items=_optional_int(items),
            written_premium=_optional_decimal(premium),
            note=data.get("note"),
        )


@dataclass(frozen=True)
class Promo:
    """A time-boxed sales target with a cash bonus."""

    id: str
    name: str
    measurement: str  # premium, items, points, policies, households
    target_value: Decimal
    bonus_amount_cents: int
    start_date: date
    end_date: date
    assigned_producer_ids: tuple[str, ...] = ()  # empty = agency-wide
    is_active: bool = True
    product_type_id: str | None = None  # restricts every measurement except households

    @property
    def is_agency_wide(self) -> bool:
        return not self.assigned_producer_ids

    def applies_to(self, producer_id: str) -> bool:
        return self.is_agency_wide or producer_id in self.assigned_producer_ids

    def overlaps(self, period_start: date, period_end: date) -> bool:
        return self.start_date <= period_end and self.end_date >= period_start

    @classmethod
    def from_dict(cls, data: dict) -> "Promo":
        product_type_id = data.get("product_type_id")
        return cls(
            id=str(data["id"]),
            name=data.get("name", str(data["id"])),
            measurement=data["measurement"],
            target_value=to_decimal(data["target_value"]),
            bonus_amount_cents=int(data.get("bonus_amount_cents") or 0),
            start_date=parse_date(data["start_date"]),
            end_date=parse_date(data["end_date"]),
            assigned_producer_ids=tuple(str(p) for p in data.get("assigned_producer_ids", [])),
            is_active=data.get("is_active", True),
            product_type_id=str(product_type_id) if product_type_id is not None else None,
        )


@dataclass(frozen=True)
class PayoutBatchInput:
    """Complete input for one payout run."""

    month: int
    year: int
    producers: tuple[SubProducerMetrics, ...]
    plans: tuple[CompPlan, ...] = ()
    assignments: tuple[ProducerAssignment, ...] = ()
    promos: tuple[Promo, ...] = ()
    overrides: tuple[ManualOverride, ...] = ()
    # Plans that could not be parsed, by id -> reason. Only their producers fail.
    invalid_plans: dict[str, str] = field(default_factory=dict)
    # Producer records that could not be parsed, as (name or id, reason).
    invalid_producers: tuple[tuple[str, str], ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "PayoutBatchInput":
        plans = []
        invalid_plans = {}
        for raw in data.get("plans", []):
            try:
                plans.append(CompPlan.from_dict(raw))
            except PARSE_ERRORS as e:
                invalid_plans[_record_label(raw, "id")] = f"{type(e).__name__}: {e}"

        producers = []
        invalid_producers = []
        for raw in data.get("producers", []):
            try:
                producers.append(SubProducerMetrics.from_dict(raw))
            except PARSE_ERRORS as e:
                invalid_producers.append((_record_label(raw, "name", "producer_id"), f"{type(e).__name__}: {e}"))

        return cls(
            month=int(data["month"]),
            year=int(data["year"]),
            producers=tuple(producers),
            plans=tuple(plans),
            assignments=tuple(ProducerAssignment.from_dict(a) for a in data.get("assignments", [])),
            promos=tuple(Promo.from_dict(p) for p in data.get("promos", [])),
            overrides=tuple(ManualOverride.from_dict(o) for o in data.get("overrides", [])),
            invalid_plans=invalid_plans,
            invalid_producers=tuple(invalid_producers),
        )


# =============================================================================
# OUTPUT / RESULT MODELS
# =============================================================================


@dataclass(frozen=True)
class OverrideAudit:
    """Raw vs. adjusted written figures when an override was applied."""

    raw_written_premium: Decimal
    raw_written_items: int
    written_premium: Decimal
    written_items: int
    note: str | None = None


@dataclass
class ChargebackLine:
    """The rule engine's decision for one chargeback insured."""

    insured_name: str
    premium: Decimal
    commission: Decimal
    days_in_force: int | None
    applied: bool
    reason: str


@dataclass
class ChargebackResult:
    chargeback_premium: Decimal = Decimal("0")
    chargeback_commission: Decimal = Decimal("0")
    excluded_chargeback_count: int = 0
    missing_days_in_force_count: int = 0
    lines: list[ChargebackLine] = field(default_factory=list)


@dataclass
class TierMatch:
    min_threshold: Decimal
    commission_rate: Decimal
    metric: str = "premium"
    metric_value: Decimal = Decimal("0")


@dataclass
class PromoAchievement:
    promo_id: str
    promo_name: str
    measurement: str
    target_value: Decimal
    achieved_value: Decimal
    bonus_amount_cents: int

    @property
    def bonus_amount(self) -> Decimal:
        return Decimal(self.bonus_amount_cents) / Decimal("100")


@dataclass
class PromoResult:
    achieved: list[PromoAchievement] = field(default_factory=list)
    evaluated_count: int = 0
    bonus_amount_cents: int = 0


@dataclass
class BonusResult:
    amount: Decimal = Decimal("0")
    applied_rules: list[str] = field(default_factory=list)


@dataclass
class KickerResult:
    amount: Decimal = Decimal("0")
    self_gen_premium: Decimal = Decimal("0")
    self_gen_percent: Decimal = Decimal("0")
    qualified: bool = False


@dataclass
class ProducerContext:
    """
    Holds all intermediate state while one producer is calculated.
    This is the "bag" that flows through the pipeline.
    """

    # Input (immutable during processing)
    metrics: SubProducerMetrics
    plan: CompPlan
    month: int
    year: int
    override_audit: OverrideAudit | None = None

    # Step results (populated as we go)
    chargebacks: ChargebackResult = field(default_factory=ChargebackResult)
    net_premium: Decimal = Decimal("0")
    self_gen_requirement_met: bool | None = None  # None = plan has no requirement
    tier_match: TierMatch | None = None
    commission_units: Decimal | None = None  # set for flat_per_* payouts
    base_commission: Decimal = Decimal("0")
    brokered_commission: Decimal = Decimal("0")
    plan_bonus: BonusResult = field(default_factory=BonusResult)
    promos: PromoResult = field(default_factory=PromoResult)
    kicker: KickerResult = field(default_factory=KickerResult)


@dataclass
class PayoutCalculation:
    """Final payout and audit record for one producer and period."""

    producer_id: str
    producer_name: str
    comp_plan_id: str
    comp_plan_name: str
    period_month: int
    period_year: int
    written_premium: Decimal
    written_items: int
    issued_premium: Decimal
    chargeback_premium: Decimal
    chargeback_commission: Decimal
    net_premium: Decimal
    tier_match: TierMatch | None
    base_commission: Decimal
    chargeback_rule: ChargebackRule
    chargeback_count: int
    excluded_chargeback_count: int
    achieved_promos: list[PromoAchievement]
    bonus_amount_cents: int
    promo_bonus_amount: Decimal
    plan_bonus_amount: Decimal
    bonus_amount: Decimal
    self_gen_kicker_amount: Decimal
    self_gen_percent: Decimal
    total_payout: Decimal
    credit_insureds: tuple[InsuredAggregate, ...]
    chargeback_insureds: tuple[InsuredAggregate, ...]
    chargeback_lines: list[ChargebackLine] = field(default_factory=list)
    override: OverrideAudit | None = None
    status: PayoutStatus = PayoutStatus.DRAFT
    payout_type: str = "percent_of_premium"
    commission_units: Decimal | None = None
    brokered_commission: Decimal = Decimal("0")
    self_gen_requirement_met: bool | None = None


@dataclass
class PayoutBatchResult:
    """Output of a payout run."""

    payouts: list[PayoutCalculation] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
