"""
Assignment Directory

Read-only lookup of comp plans and producer assignments for a statement period.
"""

import calendar
from datetime import date
from typing import Iterable, Mapping

from .exceptions import AmbiguousAssignment, InvalidPlanConfiguration, MissingAssignment
from .models import CompPlan, ProducerAssignment


def period_bounds(month: int, year: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


class AssignmentDirectory:
    """Resolves the single active comp plan for a producer and period."""

    def __init__(
        self,
        plans: Iterable[CompPlan],
        assignments: Iterable[ProducerAssignment],
        invalid_plans: Mapping[str, str] | None = None,
    ):
        self.plans = {plan.id: plan for plan in plans}
        self.assignments = list(assignments)
        self.invalid_plans = dict(invalid_plans or {})

    def resolve(self, producer_id: str, month: int, year: int) -> CompPlan:
        """
        Return the producer's active plan.

        Raises:
            MissingAssignment: no active assignment, or it points at an unknown plan
            AmbiguousAssignment: more than one active assignment
            InvalidPlanConfiguration: the assigned plan could not be loaded
        """
        period_start, period_end = period_bounds(month, year)

        active = [
            a for a in self.assignments
            if a.producer_id == producer_id and a.is_active_between(period_start, period_end)
        ]

        if not active:
            raise MissingAssignment(f"No active comp plan assignment for producer {producer_id}")

        if len({a.comp_plan_id for a in active}) > 1:
            raise AmbiguousAssignment(
                f"Producer {producer_id} has {len(active)} active comp plan assignments"
            )

        plan_id = active[0].comp_plan_id
        if plan_id in self.invalid_plans:
            raise InvalidPlanConfiguration(
                f"Comp plan {plan_id} could not be loaded: {self.invalid_plans[plan_id]}"
            )

        plan = self.plans.get(plan_id)
        if plan is None:
            raise MissingAssignment(
                f"Producer {producer_id} is assigned to unknown comp plan {plan_id}"
            )
        return plan
