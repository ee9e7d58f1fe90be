"""
Performance scoring.

Three linear heuristics in [0, 100] used to rank-order upgrade priority:

    cpu_score    = 10 * cores + 5 * (threads - cores)
    gaming       = 0.3 * cpu_score + 0.7 * gpu_tier_score
    recording    = 0.5 * cpu_score + 0.3 * (2 * ram_gb) + 0.2 * encoder_bonus
    multitasking = 0.4 * cpu_score + 0.6 * (2 * ram_gb)

Each result is clamped to [0, 100]. Unavailable components contribute
nothing and are listed in PerformanceScores.missing_inputs.
"""

from typing import List, Optional

from pcdoctor.config import constants
from pcdoctor.schemas.diagnostics import PerformanceScores
from pcdoctor.schemas.hardware import CPUProfile, GPUVendor, SystemSnapshot, Unavailable
from pcdoctor.services.hardware_catalog import GPUTier, HardwareCatalog, get_hardware_catalog


def clamp_score(value: float) -> float:
    return round(max(constants.SCORE_MIN, min(constants.SCORE_MAX, value)), 2)


def cpu_score(cpu: CPUProfile) -> float:
    return (
        constants.CPU_SCORE_PER_CORE * cpu.core_count
        + constants.CPU_SCORE_PER_EXTRA_THREAD * (cpu.thread_count - cpu.core_count)
    )


class ScoringService:
    """Computes PerformanceScores from a snapshot."""

    def __init__(self, catalog: Optional[HardwareCatalog] = None):
        self.catalog = catalog or get_hardware_catalog()

    def gpu_tier(self, snapshot: SystemSnapshot) -> GPUTier:
        if isinstance(snapshot.gpu, Unavailable):
            return GPUTier.UNKNOWN
        return self.catalog.gpu_tier(snapshot.gpu.name)

    def score(self, snapshot: SystemSnapshot) -> PerformanceScores:
        missing: List[str] = []

        if isinstance(snapshot.cpu, Unavailable):
            cpu = 0.0
            missing.append("cpu")
        else:
            cpu = float(cpu_score(snapshot.cpu))

        if isinstance(snapshot.ram, Unavailable):
            ram = 0.0
            missing.append("ram")
        else:
            ram = float(constants.RAM_SCORE_PER_GB * snapshot.ram.total_gb)

        if isinstance(snapshot.gpu, Unavailable):
            missing.append("gpu")
            encoder_bonus = constants.ENCODER_BONUS_OTHER
        elif snapshot.gpu.vendor == GPUVendor.NVIDIA:
            encoder_bonus = constants.ENCODER_BONUS_NVIDIA
        else:
            encoder_bonus = constants.ENCODER_BONUS_OTHER

        gpu_tier_score = self.catalog.gpu_tier_score(self.gpu_tier(snapshot))

        gaming = constants.GAMING_CPU_WEIGHT * cpu + constants.GAMING_GPU_WEIGHT * gpu_tier_score
        recording = (
            constants.RECORDING_CPU_WEIGHT * cpu
            + constants.RECORDING_RAM_WEIGHT * ram
            + constants.RECORDING_ENCODER_WEIGHT * encoder_bonus
        )
        multitasking = constants.MULTITASK_CPU_WEIGHT * cpu + constants.MULTITASK_RAM_WEIGHT * ram

        return PerformanceScores(
            gaming=clamp_score(gaming),
            recording=clamp_score(recording),
            multitasking=clamp_score(multitasking),
            missing_inputs=tuple(missing),
        )
