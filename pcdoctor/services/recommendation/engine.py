"""
Recommendation Engine Facade.

Validates invocation parameters, then runs one advisor per hardware
category and returns their recommendations in fixed category order:
RAM, GPU, Storage, PSU, Cooling. Every category is always present.
"""

from typing import List, Optional, Sequence

from pcdoctor.errors import InvalidInputError
from pcdoctor.schemas.diagnostics import CATEGORY_ORDER, Bottleneck, UpgradeRecommendation, UseCase
from pcdoctor.schemas.hardware import SystemSnapshot
from pcdoctor.services.hardware_catalog import HardwareCatalog, get_hardware_catalog
from pcdoctor.services.recommendation.base import CategoryAdvisor, RecommendationContext
from pcdoctor.services.recommendation.cooling_advisor import CoolingAdvisor
from pcdoctor.services.recommendation.gpu_advisor import GPUAdvisor
from pcdoctor.services.recommendation.psu_advisor import PSUAdvisor
from pcdoctor.services.recommendation.ram_advisor import RAMAdvisor
from pcdoctor.services.recommendation.storage_advisor import StorageAdvisor, bitrate_for_fps
from pcdoctor.utils.logger import get_logger

log = get_logger(__name__)

DEFAULT_TARGET_FPS = 60


def _require_int(name: str, value, minimum: int) -> int:
    # bool is an int subclass but never a meaningful amount
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise InvalidInputError(f"{name} must be >= {minimum}, got {value}")
    return value


def validate_invocation(use_case, budget_usd, target_fps=DEFAULT_TARGET_FPS, target_bitrate_kbps=None):
    """
    Check invocation parameters and fill in the derived bitrate.

    Returns:
        (use_case, budget_usd, target_fps, target_bitrate_kbps)

    Raises:
        InvalidInputError: Unknown use case, negative or non-integer budget,
            non-positive fps or bitrate
    """
    use_case = UseCase.parse(use_case)
    budget_usd = _require_int("budget_usd", budget_usd, 0)
    target_fps = _require_int("target_fps", target_fps, 1)
    if target_bitrate_kbps is None:
        target_bitrate_kbps = bitrate_for_fps(target_fps)
    else:
        target_bitrate_kbps = _require_int("target_bitrate_kbps", target_bitrate_kbps, 1)
    return use_case, budget_usd, target_fps, target_bitrate_kbps


class RecommendationEngine:
    """
    Facade over the per-category advisors.
    """

    def __init__(
        self,
        catalog: Optional[HardwareCatalog] = None,
        advisors: Optional[Sequence[CategoryAdvisor]] = None,
    ):
        self.catalog = catalog or get_hardware_catalog()
        advisors = advisors or (RAMAdvisor(), GPUAdvisor(), StorageAdvisor(), PSUAdvisor(), CoolingAdvisor())
        self.advisors = {advisor.category: advisor for advisor in advisors}
        missing = [c.value for c in CATEGORY_ORDER if c not in self.advisors]
        if missing:
            raise ValueError(f"No advisor registered for: {', '.join(missing)}")

    def build_context(
        self,
        snapshot: SystemSnapshot,
        bottlenecks: Sequence[Bottleneck],
        use_case,
        budget_usd,
        target_fps=DEFAULT_TARGET_FPS,
        target_bitrate_kbps=None,
    ) -> RecommendationContext:
        use_case, budget_usd, target_fps, target_bitrate_kbps = validate_invocation(
            use_case, budget_usd, target_fps, target_bitrate_kbps
        )

        return RecommendationContext(
            snapshot=snapshot,
            bottlenecks=tuple(bottlenecks),
            use_case=use_case,
            budget_usd=budget_usd,
            target_fps=target_fps,
            target_bitrate_kbps=target_bitrate_kbps,
            catalog=self.catalog,
        )

    def recommend(
        self,
        snapshot: SystemSnapshot,
        bottlenecks: Sequence[Bottleneck],
        use_case,
        budget_usd,
        target_fps=DEFAULT_TARGET_FPS,
        target_bitrate_kbps=None,
    ) -> List[UpgradeRecommendation]:
        """
        Produce exactly one recommendation per category.

        Returns:
            Recommendations for RAM, GPU, Storage, PSU and Cooling, in that order

        Raises:
            InvalidInputError: Before any advisor runs, if parameters are out of contract
        """
        ctx = self.build_context(snapshot, bottlenecks, use_case, budget_usd, target_fps, target_bitrate_kbps)

        results = []
        for category in CATEGORY_ORDER:
            rec = self.advisors[category].advise(ctx)
            log.debug(f"{category.value}: {rec.priority.name} - {rec.reason}")
            results.append(rec)
        return results


def recommend(
    snapshot: SystemSnapshot,
    bottlenecks: Sequence[Bottleneck],
    use_case,
    budget_usd,
    target_fps=DEFAULT_TARGET_FPS,
    target_bitrate_kbps=None,
    catalog: Optional[HardwareCatalog] = None,
) -> List[UpgradeRecommendation]:
    """Module-level shortcut for RecommendationEngine(catalog).recommend()."""
    return RecommendationEngine(catalog).recommend(
        snapshot, bottlenecks, use_case, budget_usd, target_fps, target_bitrate_kbps
    )
