"""
Bottleneck Classifier.

Evaluates a fixed rule set against a SystemSnapshot. Every rule is applied;
a snapshot may trigger zero or more. Findings are returned sorted by
severity (highest first), then component, then rule order, so evaluation
order never changes the outcome.

Rules never fire from an Unavailable category: unknown is not a finding.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from pcdoctor.config import constants
from pcdoctor.schemas.diagnostics import (
    COMPONENT_ORDER,
    Bottleneck,
    Component,
    PerformanceScores,
    Severity,
    UseCase,
)
from pcdoctor.schemas.hardware import DeviceClass, SystemSnapshot, Unavailable
from pcdoctor.services.hardware_catalog import (
    EncoderSupport,
    GPUTier,
    HardwareCatalog,
    get_hardware_catalog,
)
from pcdoctor.services.scoring_service import ScoringService
from pcdoctor.utils.logger import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class RuleContext:
    snapshot: SystemSnapshot
    use_case: UseCase
    gpu_tier: GPUTier
    encoder: Optional[EncoderSupport]   # None when the GPU is unavailable


Rule = Callable[[RuleContext], Optional[Bottleneck]]


def _gb(value: float) -> str:
    return f"{value:g}GB"


# =============================================================================
# RAM rules
# =============================================================================

def rule_memory_errors(ctx: RuleContext) -> Optional[Bottleneck]:
    errors = ctx.snapshot.memory_errors
    if isinstance(errors, Unavailable) or errors.count <= 0:
        return None
    ram = ctx.snapshot.ram
    current = _gb(ram.total_gb) if not isinstance(ram, Unavailable) else "capacity unknown"
    return Bottleneck(
        component=Component.RAM,
        severity=Severity.CRITICAL,
        issue=f"{errors.count} fatal memory hardware errors in the last {errors.window_days} days",
        current_spec=current,
        recommendation="Test modules with MemTest86 and replace the failing module",
    )


def rule_ram_below_recording_minimum(ctx: RuleContext) -> Optional[Bottleneck]:
    ram = ctx.snapshot.ram
    if isinstance(ram, Unavailable) or not ctx.use_case.requires_recording:
        return None
    if ram.total_gb >= constants.RAM_RECORDING_MIN_GB:
        return None
    return Bottleneck(
        component=Component.RAM,
        severity=Severity.CRITICAL,
        issue="Insufficient for high-framerate recording + gaming",
        current_spec=_gb(ram.total_gb),
        recommendation=f"Upgrade to {_gb(constants.RAM_RECORDING_TARGET_GB)}",
    )


def rule_ram_recording_pressure(ctx: RuleContext) -> Optional[Bottleneck]:
    ram = ctx.snapshot.ram
    if isinstance(ram, Unavailable) or not ctx.use_case.requires_recording:
        return None
    if not constants.RAM_RECORDING_MIN_GB <= ram.total_gb < constants.RAM_RECORDING_TARGET_GB:
        return None
    return Bottleneck(
        component=Component.RAM,
        severity=Severity.HIGH,
        issue="Recording may show memory pressure",
        current_spec=_gb(ram.total_gb),
        recommendation=f"{_gb(constants.RAM_RECORDING_TARGET_GB)} recommended for recording while gaming",
    )


def rule_memory_usage(ctx: RuleContext) -> Optional[Bottleneck]:
    ram = ctx.snapshot.ram
    if isinstance(ram, Unavailable) or ram.used_percent < constants.MEMORY_PRESSURE_PERCENT:
        return None
    return Bottleneck(
        component=Component.RAM,
        severity=Severity.MEDIUM,
        issue=f"Memory {ram.used_percent:.0f}% in use",
        current_spec=_gb(ram.total_gb),
        recommendation="Close background applications or add capacity",
    )


# =============================================================================
# CPU rules
# =============================================================================

def rule_cpu_limits_gpu(ctx: RuleContext) -> Optional[Bottleneck]:
    cpu = ctx.snapshot.cpu
    if isinstance(cpu, Unavailable) or ctx.gpu_tier != GPUTier.HIGH_END:
        return None
    if cpu.core_count >= constants.CPU_HIGH_END_GPU_MIN_CORES:
        return None
    return Bottleneck(
        component=Component.CPU,
        severity=Severity.HIGH,
        issue="CPU may bottleneck GPU",
        current_spec=f"{cpu.core_count} cores / {cpu.thread_count} threads",
        recommendation=f"{constants.CPU_HIGH_END_GPU_MIN_CORES}+ cores to keep a high-end GPU fed",
    )


def rule_cpu_core_count(ctx: RuleContext) -> Optional[Bottleneck]:
    cpu = ctx.snapshot.cpu
    if isinstance(cpu, Unavailable) or cpu.core_count >= constants.CPU_RECORDING_MIN_CORES:
        return None
    return Bottleneck(
        component=Component.CPU,
        severity=Severity.MEDIUM,
        issue=f"Recording workloads benefit from {constants.CPU_RECORDING_MIN_CORES}+ cores",
        current_spec=f"{cpu.core_count} cores / {cpu.thread_count} threads",
        recommendation=f"{constants.CPU_RECORDING_MIN_CORES}-core CPU or better",
    )


# =============================================================================
# GPU rules
# =============================================================================

def rule_weak_gpu_for_gaming(ctx: RuleContext) -> Optional[Bottleneck]:
    gpu = ctx.snapshot.gpu
    if isinstance(gpu, Unavailable) or not ctx.use_case.requires_gaming:
        return None
    if ctx.gpu_tier not in (GPUTier.BUDGET, GPUTier.INTEGRATED):
        return None
    return Bottleneck(
        component=Component.GPU,
        severity=Severity.HIGH,
        issue="GPU limits gaming performance",
        current_spec=f"{gpu.name} ({ctx.gpu_tier.value.replace('_', ' ')})",
        recommendation="Mid-range GPU or better",
    )


def rule_no_hardware_encoder(ctx: RuleContext) -> Optional[Bottleneck]:
    gpu = ctx.snapshot.gpu
    if isinstance(gpu, Unavailable) or ctx.encoder is None or not ctx.use_case.requires_recording:
        return None
    if ctx.encoder.hardware_encoding:
        return None
    return Bottleneck(
        component=Component.GPU,
        severity=Severity.MEDIUM,
        issue="No hardware video encoder; recording falls back to CPU encoding",
        current_spec=gpu.name,
        recommendation="GPU with NVENC or AMF",
    )


# =============================================================================
# Storage rules
# =============================================================================

def rule_no_fast_storage(ctx: RuleContext) -> Optional[Bottleneck]:
    disks = ctx.snapshot.disks
    if isinstance(disks, Unavailable) or not ctx.use_case.requires_recording:
        return None
    if any(d.media_type.is_fast for d in disks):
        return None
    kinds = ", ".join(sorted({d.media_type.value.upper() for d in disks})) or "no disks"
    return Bottleneck(
        component=Component.STORAGE,
        severity=Severity.HIGH,
        issue="No fast storage for recording",
        current_spec=kinds,
        recommendation="Dedicated NVMe SSD for recordings",
    )


def rule_low_free_space(ctx: RuleContext) -> Optional[Bottleneck]:
    disks = ctx.snapshot.disks
    if isinstance(disks, Unavailable):
        return None
    full = [d for d in disks if d.free_percent < constants.LOW_DISK_FREE_PERCENT]
    if not full:
        return None
    names = ", ".join(d.name or d.media_type.value.upper() for d in full)
    return Bottleneck(
        component=Component.STORAGE,
        severity=Severity.MEDIUM,
        issue=f"Less than {constants.LOW_DISK_FREE_PERCENT:g}% free space",
        current_spec=names,
        recommendation="Free up space or add a drive",
    )


RULES: Tuple[Rule, ...] = (
    rule_memory_errors,
    rule_ram_below_recording_minimum,
    rule_ram_recording_pressure,
    rule_memory_usage,
    rule_cpu_limits_gpu,
    rule_cpu_core_count,
    rule_weak_gpu_for_gaming,
    rule_no_hardware_encoder,
    rule_no_fast_storage,
    rule_low_free_space,
)


class BottleneckClassifier:
    """Applies RULES and computes PerformanceScores."""

    def __init__(self, catalog: Optional[HardwareCatalog] = None, rules: Sequence[Rule] = RULES):
        self.catalog = catalog or get_hardware_catalog()
        self.rules = tuple(rules)
        self.scoring = ScoringService(self.catalog)

    def build_context(self, snapshot: SystemSnapshot, use_case: UseCase) -> RuleContext:
        encoder = None
        if not isinstance(snapshot.gpu, Unavailable):
            encoder = self.catalog.encoder_support(snapshot.gpu)
        return RuleContext(
            snapshot=snapshot,
            use_case=use_case,
            gpu_tier=self.scoring.gpu_tier(snapshot),
            encoder=encoder,
        )

    def find_bottlenecks(self, snapshot: SystemSnapshot, use_case) -> List[Bottleneck]:
        use_case = UseCase.parse(use_case)
        ctx = self.build_context(snapshot, use_case)

        found = []
        for index, rule in enumerate(self.rules):
            finding = rule(ctx)
            if finding is not None:
                found.append((index, finding))

        found.sort(key=lambda item: (-item[1].severity, COMPONENT_ORDER[item[1].component], item[0]))
        return [finding for _, finding in found]

    def classify(self, snapshot: SystemSnapshot, use_case) -> Tuple[List[Bottleneck], PerformanceScores]:
        """
        Returns:
            (bottlenecks sorted by severity, performance scores)

        Raises:
            InvalidInputError: If use_case is not a known use case
        """
        bottlenecks = self.find_bottlenecks(snapshot, use_case)
        scores = self.scoring.score(snapshot)
        log.debug(f"Classified {len(bottlenecks)} bottlenecks; scores={scores}")
        return bottlenecks, scores


def find_health_warnings(snapshot: SystemSnapshot, stale_driver_days: int = constants.STALE_DRIVER_DAYS) -> List[str]:
    """
    Report-level observations that are not performance bottlenecks:
    stale display/network/storage drivers, disconnected adapters and
    categories that could not be read.
    """
    warnings = []

    if not isinstance(snapshot.drivers, Unavailable):
        for driver in snapshot.drivers:
            if driver.device_class != DeviceClass.OTHER and driver.age_days > stale_driver_days:
                warnings.append(
                    f"{driver.device_class.value.capitalize()} driver for {driver.device_name} "
                    f"is {driver.age_days} days old"
                )

    if not isinstance(snapshot.network_adapters, Unavailable):
        for adapter in snapshot.network_adapters:
            if not adapter.link_up:
                warnings.append(f"Network adapter {adapter.name} has no link")
            elif adapter.driver_age_days is not None and adapter.driver_age_days > stale_driver_days:
                warnings.append(f"Network adapter {adapter.name} driver is {adapter.driver_age_days} days old")

    for missing in snapshot.unavailable_categories():
        warnings.append(f"Could not read {missing.category.replace('_', ' ')}: {missing.reason}")

    return warnings


def classify(snapshot: SystemSnapshot, use_case, catalog: Optional[HardwareCatalog] = None):
    """Module-level shortcut for BottleneckClassifier(catalog).classify()."""
    return BottleneckClassifier(catalog).classify(snapshot, use_case)
