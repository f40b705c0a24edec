"""
Manual Override Merger

Applies agency-entered corrections to raw statement metrics.
"""

from dataclasses import replace

from ..models import ManualOverride, OverrideAudit, SubProducerMetrics


class ManualOverrideMerger:
    """Replaces written figures with override values, leaving everything else intact."""

    def merge(
        self,
        metrics: SubProducerMetrics,
        override: ManualOverride | None,
    ) -> tuple[SubProducerMetrics, OverrideAudit | None]:
        """
        Return adjusted metrics and an audit entry.

        A None override field keeps the raw figure. Itemized insureds and
        chargeback data always pass through untouched.
        """
        if override is None:
            return metrics, None

        if override.written_premium is None and override.written_items is None:
            return metrics, None

        written_premium = (
            override.written_premium
            if override.written_premium is not None
            else metrics.written_premium
        )
        written_items = (
            override.written_items
            if override.written_items is not None
            else metrics.written_items
        )

        audit = OverrideAudit(
            raw_written_premium=metrics.written_premium,
            raw_written_items=metrics.written_items,
            written_premium=written_premium,
            written_items=written_items,
            note=override.note,
        )
        adjusted = replace(metrics, written_premium=written_premium, written_items=written_items)
        return adjusted, audit

    @staticmethod
    def index(overrides) -> dict[str, ManualOverride]:
        """Key overrides by producer. A later override for the same producer wins."""
        return {o.producer_id: o for o in overrides}
