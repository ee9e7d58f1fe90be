"""
Cooling advice, driven purely by the hottest observed temperature.

>85C -> CRITICAL, >75C -> HIGH, otherwise LOW. Without sensor data the
priority stays LOW but the recommendation is flagged unknown.
"""

from pcdoctor.config import constants
from pcdoctor.schemas.diagnostics import Category, Priority, UpgradeRecommendation
from pcdoctor.schemas.hardware import Unavailable
from pcdoctor.services.recommendation.base import (
    CategoryAdvisor,
    RecommendationContext,
    part_option,
    tag_budget,
)


def priority_for_temperature(celsius: float) -> Priority:
    if celsius > constants.TEMP_CRITICAL_C:
        return Priority.CRITICAL
    if celsius > constants.TEMP_HIGH_C:
        return Priority.HIGH
    return Priority.LOW


class CoolingAdvisor(CategoryAdvisor):
    category = Category.COOLING

    def advise(self, ctx: RecommendationContext) -> UpgradeRecommendation:
        max_temp = ctx.snapshot.max_temperature_c
        if isinstance(max_temp, Unavailable):
            monitor = tag_budget([part_option(ctx.catalog.cooling_monitor_option)], ctx.budget_usd)
            return self.unknown("Thermal", max_temp.reason, monitor)

        priority = priority_for_temperature(max_temp)
        hottest = max(ctx.snapshot.temperatures, key=lambda r: r.celsius)
        details = {"max_temperature_c": max_temp, "zone": hottest.zone}

        if priority == Priority.LOW:
            return UpgradeRecommendation(
                category=self.category,
                priority=priority,
                reason=f"Hottest sensor {hottest.zone} at {max_temp:.0f}C; thermals are healthy.",
                details=details,
            )

        level = "critical" if priority == Priority.CRITICAL else "high"
        return UpgradeRecommendation(
            category=self.category,
            priority=priority,
            reason=(
                f"Hottest sensor {hottest.zone} at {max_temp:.0f}C ({level}); "
                "expect thermal throttling under sustained load."
            ),
            options=tag_budget([part_option(p) for p in ctx.catalog.cooling_options], ctx.budget_usd),
            details=details,
        )
