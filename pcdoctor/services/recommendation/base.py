"""
Shared pieces for the per-category upgrade advisors.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Tuple

from pcdoctor.schemas.diagnostics import (
    Bottleneck,
    Category,
    Component,
    Priority,
    Severity,
    UpgradeOption,
    UpgradeRecommendation,
    UseCase,
)
from pcdoctor.schemas.hardware import SystemSnapshot
from pcdoctor.services.hardware_catalog import HardwareCatalog, PricedPart


@dataclass(frozen=True)
class RecommendationContext:
    """Validated inputs shared by every advisor for one run."""
    snapshot: SystemSnapshot
    bottlenecks: Tuple[Bottleneck, ...]
    use_case: UseCase
    budget_usd: int
    target_fps: int
    target_bitrate_kbps: int
    catalog: HardwareCatalog

    def bottlenecks_for(self, component: Component) -> List[Bottleneck]:
        return [b for b in self.bottlenecks if b.component == component]

    def max_severity(self, component: Component) -> Optional[Severity]:
        severities = [b.severity for b in self.bottlenecks_for(component)]
        return max(severities) if severities else None


def tag_budget(options: Iterable[UpgradeOption], budget_usd: int) -> Tuple[UpgradeOption, ...]:
    """Mark every option within/over budget. Nothing is filtered out."""
    return tuple(replace(o, within_budget=o.estimated_cost_usd <= budget_usd) for o in options)


def part_option(part: PricedPart) -> UpgradeOption:
    """Convert a catalog part into an option; price bands go into the notes."""
    notes = part.notes
    if part.price_high is not None and part.price_high != part.cost:
        band = f"${part.cost}-${part.price_high}"
        notes = f"{band}; {notes}" if notes else band
    label = part.label
    if part.example_parts:
        label = f"{part.label}: {part.example_parts}"
    return UpgradeOption(label=label, estimated_cost_usd=part.cost, notes=notes)


class CategoryAdvisor(ABC):
    """Produces the single UpgradeRecommendation for one category."""

    category: Category

    @abstractmethod
    def advise(self, ctx: RecommendationContext) -> UpgradeRecommendation:
        ...

    def unknown(self, what: str, reason: str, options: Iterable[UpgradeOption] = ()) -> UpgradeRecommendation:
        """LOW-priority recommendation flagged as unknown; never assumed safe silently."""
        return UpgradeRecommendation(
            category=self.category,
            priority=Priority.LOW,
            reason=f"{what} status unknown ({reason}); no upgrade can be recommended without it",
            options=tuple(options),
            status_unknown=True,
        )
