"""
RAM upgrade advice.

Priority precedence (highest wins):
1. Fatal memory hardware errors -> CRITICAL with a critical warning,
   whatever the installed capacity.
2. Capacity against the use-case target (32GB recording/both, 16GB gaming):
   CRITICAL when recording below target, HIGH when gaming below 16GB.
3. LOW otherwise.

When an upgrade is warranted both options are offered: adding capacity at
the existing module speed, and a full replacement kit at a higher $/GB.
"""

import math
from typing import Optional, Tuple

from pcdoctor.config import constants
from pcdoctor.schemas.diagnostics import Category, Priority, UpgradeOption, UpgradeRecommendation, UseCase
from pcdoctor.schemas.hardware import RAMProfile, Unavailable
from pcdoctor.services.recommendation.base import CategoryAdvisor, RecommendationContext, tag_budget


def target_gb(use_case: UseCase) -> float:
    if use_case.requires_recording:
        return constants.RAM_RECORDING_TARGET_GB
    return constants.RAM_GAMING_TARGET_GB


def _module_size_gb(ram: RAMProfile) -> int:
    if ram.module_count:
        return max(1, int(math.ceil(ram.total_gb / ram.module_count)))
    return constants.RAM_FALLBACK_MODULE_GB


class RAMAdvisor(CategoryAdvisor):
    category = Category.RAM

    def advise(self, ctx: RecommendationContext) -> UpgradeRecommendation:
        ram = ctx.snapshot.ram
        errors = ctx.snapshot.memory_errors
        error_count = 0 if isinstance(errors, Unavailable) else errors.count

        if error_count > 0:
            return self._hardware_failure(ctx, ram, error_count, errors.window_days)

        if isinstance(ram, Unavailable):
            return self.unknown("Memory", ram.reason)

        target = target_gb(ctx.use_case)
        notes = []
        if isinstance(errors, Unavailable):
            notes.append(f"Memory error log could not be checked ({errors.reason}).")

        if ram.total_gb < target and ctx.use_case.requires_recording:
            priority = Priority.CRITICAL
        elif ctx.use_case == UseCase.GAMING and ram.total_gb < constants.RAM_GAMING_TARGET_GB:
            priority = Priority.HIGH
        else:
            priority = Priority.LOW

        if priority == Priority.LOW:
            reason = f"{ram.total_gb:g}GB meets the {target:g}GB target for {ctx.use_case.value}."
            return UpgradeRecommendation(
                category=self.category,
                priority=priority,
                reason=" ".join([reason] + notes),
                details={"target_gb": target, "current_gb": ram.total_gb},
            )

        reason = (
            f"{ram.total_gb:g}GB installed; {target:g}GB recommended for {ctx.use_case.value}."
        )
        return UpgradeRecommendation(
            category=self.category,
            priority=priority,
            reason=" ".join([reason] + notes),
            options=tag_budget(self._options(ram, target), ctx.budget_usd),
            details={"target_gb": target, "current_gb": ram.total_gb},
        )

    def _hardware_failure(self, ctx, ram, error_count: int, window_days: int) -> UpgradeRecommendation:
        warning = (
            f"{error_count} fatal memory hardware errors logged in the last {window_days} days. "
            "A module is physically failing: expect crashes and data corruption. "
            "Test each module with MemTest86 and replace the faulty one."
        )
        if isinstance(ram, Unavailable):
            return UpgradeRecommendation(
                category=self.category,
                priority=Priority.CRITICAL,
                reason="Physical memory failure detected; installed capacity could not be read.",
                critical_warning=warning,
                details={"hardware_error_count": error_count},
            )

        target = max(target_gb(ctx.use_case), ram.total_gb)
        return UpgradeRecommendation(
            category=self.category,
            priority=Priority.CRITICAL,
            reason=f"Physical memory failure: {error_count} hardware errors on {ram.total_gb:g}GB installed.",
            options=tag_budget(self._options(ram, target), ctx.budget_usd),
            critical_warning=warning,
            details={"hardware_error_count": error_count, "target_gb": target, "current_gb": ram.total_gb},
        )

    def _options(self, ram: RAMProfile, target: float) -> Tuple[UpgradeOption, ...]:
        # With no capacity gap (failure path) adding means replacing one module's worth
        add_gb = int(math.ceil(target - ram.total_gb))
        if add_gb <= 0:
            add_gb = _module_size_gb(ram)
        kit_gb = int(math.ceil(target))

        speed: Optional[int] = ram.module_speed_mhz
        speed_text = f"{speed}MHz" if speed else "matching speed"
        return (
            UpgradeOption(
                label=f"Add {add_gb}GB ({speed_text}) to existing modules",
                estimated_cost_usd=int(round(add_gb * constants.RAM_ADD_COST_PER_GB)),
                notes="Cheapest; match the installed modules' speed and timings",
            ),
            UpgradeOption(
                label=f"Full replacement kit: {kit_gb}GB matched set",
                estimated_cost_usd=int(round(kit_gb * constants.RAM_KIT_COST_PER_GB)),
                notes="Matched modules avoid mixed-kit instability",
            ),
        )
