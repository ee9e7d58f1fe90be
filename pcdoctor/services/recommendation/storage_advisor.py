"""
Storage upgrade advice.

Required sustained write throughput comes from the recording bitrate:

    throughput_mbps = bitrate_kbps / 8 / 1024

Current storage is inadequate when no SSD/NVMe exists. Three fixed option
tiers are always returned: OS drive, dedicated recording drive, archive drive.
"""

from dataclasses import replace

from pcdoctor.config import constants
from pcdoctor.schemas.diagnostics import Category, Component, Priority, UpgradeRecommendation
from pcdoctor.schemas.hardware import Unavailable
from pcdoctor.services.recommendation.base import (
    CategoryAdvisor,
    RecommendationContext,
    part_option,
    tag_budget,
)


def required_throughput_mbps(bitrate_kbps: int) -> float:
    return bitrate_kbps / 8 / 1024


def bitrate_for_fps(target_fps: int) -> int:
    """Recording bitrate assumed for a frame rate: smallest table key >= fps."""
    for fps in sorted(constants.BITRATE_BY_FPS):
        if target_fps <= fps:
            return constants.BITRATE_BY_FPS[fps]
    return constants.BITRATE_BY_FPS[max(constants.BITRATE_BY_FPS)]


class StorageAdvisor(CategoryAdvisor):
    category = Category.STORAGE

    def advise(self, ctx: RecommendationContext) -> UpgradeRecommendation:
        options = tag_budget([part_option(p) for p in ctx.catalog.storage_options], ctx.budget_usd)
        throughput = round(required_throughput_mbps(ctx.target_bitrate_kbps), 2)
        details = {
            "target_bitrate_kbps": ctx.target_bitrate_kbps,
            "required_throughput_mbps": throughput,
        }

        disks = ctx.snapshot.disks
        if isinstance(disks, Unavailable):
            return replace(self.unknown("Storage", disks.reason, options), details=details)

        has_fast = any(d.media_type.is_fast for d in disks)
        details["fast_storage_present"] = has_fast
        priority = ctx.max_severity(Component.STORAGE) or Priority.LOW

        if not has_fast:
            inadequate_priority = Priority.HIGH if ctx.use_case.requires_recording else Priority.MEDIUM
            priority = max(priority, inadequate_priority)
            reason = f"No SSD/NVMe present; recording needs {throughput:g} MB/s sustained writes."
            if throughput > constants.HDD_SUSTAINED_WRITE_MBPS:
                reason += f" That exceeds what a hard drive sustains (~{constants.HDD_SUSTAINED_WRITE_MBPS:g} MB/s)."
        elif priority > Priority.LOW:
            reason = f"Fast storage present but a drive is nearly full; recording needs {throughput:g} MB/s."
        else:
            reason = f"Fast storage present; {throughput:g} MB/s sustained writes are well within its range."

        return UpgradeRecommendation(
            category=self.category,
            priority=priority,
            reason=reason,
            options=options,
            details=details,
        )
