"""
GPU upgrade advice.

Classifies the current GPU's hardware encoder and always offers the four
static budget tiers plus one best pick for high-framerate recording. The
tiers do not depend on the detected card.
"""

from dataclasses import replace

from pcdoctor.schemas.diagnostics import Category, Component, Priority, UpgradeRecommendation
from pcdoctor.schemas.hardware import Unavailable
from pcdoctor.services.hardware_catalog import EncoderQuality
from pcdoctor.services.recommendation.base import (
    CategoryAdvisor,
    RecommendationContext,
    part_option,
    tag_budget,
)

ENCODER_TEXT = {
    EncoderQuality.EXCELLENT: "excellent hardware encoding",
    EncoderQuality.GOOD: "good hardware encoding",
    EncoderQuality.DEGRADED: "CPU encoding required, degraded",
}


class GPUAdvisor(CategoryAdvisor):
    category = Category.GPU

    def advise(self, ctx: RecommendationContext) -> UpgradeRecommendation:
        catalog = ctx.catalog
        options = tag_budget([part_option(p) for p in catalog.gpu_upgrade_tiers], ctx.budget_usd)
        best_pick = tag_budget([part_option(catalog.gpu_best_pick)], ctx.budget_usd)[0]

        gpu = ctx.snapshot.gpu
        if isinstance(gpu, Unavailable):
            return replace(
                self.unknown("GPU", gpu.reason, options),
                best_pick=best_pick,
                details={"encoder_quality": EncoderQuality.UNKNOWN.value},
            )

        encoder = catalog.encoder_support(gpu)
        tier = catalog.gpu_tier(gpu.name)

        priority = ctx.max_severity(Component.GPU) or Priority.LOW
        if ctx.use_case.requires_recording and not encoder.hardware_encoding:
            priority = max(priority, Priority.HIGH)

        reason = (
            f"{gpu.name} ({tier.value.replace('_', ' ')} tier): "
            f"{encoder.encoder}, {ENCODER_TEXT[encoder.quality]}."
        )
        if priority == Priority.LOW:
            reason += f" Adequate for {ctx.use_case.value}."

        return UpgradeRecommendation(
            category=self.category,
            priority=priority,
            reason=reason,
            options=options,
            best_pick=best_pick,
            details={
                "gpu_tier": tier.value,
                "encoder": encoder.encoder,
                "encoder_quality": encoder.quality.value,
            },
        )
