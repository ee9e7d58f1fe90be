"""
PSU sizing.

Estimated draw = CPU tier watts + GPU watts + 3W per RAM module
                 + 10W per disk + motherboard/peripheral overhead.
Required = draw * 1.2 headroom, rounded up to the next 50W, which selects
a tier from the catalog's three-tier PSU table.
"""

import math
from typing import List, Tuple

from pcdoctor.config import constants
from pcdoctor.schemas.diagnostics import Category, Priority, UpgradeOption, UpgradeRecommendation
from pcdoctor.schemas.hardware import Unavailable
from pcdoctor.services.hardware_catalog import PSUTier
from pcdoctor.services.recommendation.base import CategoryAdvisor, RecommendationContext, tag_budget


def round_up(watts: float, step: int = constants.PSU_ROUND_WATTS) -> int:
    return int(math.ceil(watts / step) * step)


def estimate_draw(ctx: RecommendationContext) -> Tuple[int, List[str]]:
    """
    Estimated peak system draw in watts.

    Returns:
        (watts, assumptions made for components that were not reported)
    """
    catalog = ctx.catalog
    snapshot = ctx.snapshot
    assumptions = []

    if isinstance(snapshot.cpu, Unavailable):
        cpu_watts = catalog.cpu_watts_for(constants.DEFAULT_CPU_CORES_FOR_POWER)
        assumptions.append(f"CPU unknown, assumed {cpu_watts}W")
    else:
        cpu_watts = catalog.cpu_watts_for(snapshot.cpu.core_count)

    if isinstance(snapshot.gpu, Unavailable):
        gpu_watts = catalog.gpu_watts("")
        assumptions.append(f"GPU unknown, assumed {gpu_watts}W")
    else:
        gpu_watts = catalog.gpu_watts(snapshot.gpu.name)

    modules = None
    if not isinstance(snapshot.ram, Unavailable):
        modules = snapshot.ram.module_count
    if not modules:
        modules = constants.DEFAULT_RAM_MODULES
        assumptions.append(f"RAM module count unknown, assumed {modules}")

    if isinstance(snapshot.disks, Unavailable):
        disk_count = 1
        assumptions.append("disk count unknown, assumed 1")
    else:
        disk_count = len(snapshot.disks)

    total = (
        cpu_watts
        + gpu_watts
        + modules * constants.RAM_MODULE_WATTS
        + disk_count * constants.DISK_WATTS
        + constants.MOTHERBOARD_WATTS
        + constants.PERIPHERAL_WATTS
    )
    return total, assumptions


def select_tier(required_watts: int, tiers: List[PSUTier]) -> Tuple[PSUTier, bool]:
    """Smallest tier covering the requirement; (largest, False) when none does."""
    for tier in tiers:
        if required_watts <= tier.max_watts:
            return tier, True
    return tiers[-1], False


class PSUAdvisor(CategoryAdvisor):
    category = Category.PSU

    def advise(self, ctx: RecommendationContext) -> UpgradeRecommendation:
        draw, assumptions = estimate_draw(ctx)
        required = round_up(draw * constants.PSU_HEADROOM)
        tier, covered = select_tier(required, ctx.catalog.psu_tiers)

        reason = (
            f"Estimated draw {draw}W; with {int((constants.PSU_HEADROOM - 1) * 100)}% headroom "
            f"a {required}W supply is needed ({tier.label}). Check the installed PSU's rating."
        )
        priority = Priority.LOW
        if not covered:
            priority = Priority.MEDIUM
            reason += f" The requirement exceeds the largest listed tier ({tier.max_watts}W)."
        if assumptions:
            reason += " Assumptions: " + "; ".join(assumptions) + "."

        option = UpgradeOption(
            label=tier.label,
            estimated_cost_usd=tier.cost,
            notes=f"Covers up to {tier.max_watts}W",
        )
        return UpgradeRecommendation(
            category=self.category,
            priority=priority,
            reason=reason,
            options=tag_budget([option], ctx.budget_usd),
            details={"estimated_draw_w": draw, "required_w": required, "assumptions": assumptions},
        )
