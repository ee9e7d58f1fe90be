"""
Diagnostic Service Facade.

Runs one diagnostic pass end to end:
assemble snapshot -> classify bottlenecks -> recommend upgrades -> report sink.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from pcdoctor.config import constants
from pcdoctor.schemas.diagnostics import DiagnosticReport
from pcdoctor.schemas.hardware import SystemSnapshot
from pcdoctor.services.bottleneck_classifier import BottleneckClassifier, find_health_warnings
from pcdoctor.services.hardware.base import TelemetrySource
from pcdoctor.services.hardware_catalog import HardwareCatalog, get_hardware_catalog
from pcdoctor.services.recommendation.engine import (
    DEFAULT_TARGET_FPS,
    RecommendationEngine,
    validate_invocation,
)
from pcdoctor.services.report_service import ReportSink
from pcdoctor.services.snapshot_assembler import SnapshotAssembler
from pcdoctor.utils.logger import log


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DiagnosticService:
    """
    Facade that wires the assembler, classifier and recommendation engine.
    """

    def __init__(
        self,
        catalog: Optional[HardwareCatalog] = None,
        assembler: Optional[SnapshotAssembler] = None,
        stale_driver_days: int = constants.STALE_DRIVER_DAYS,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.catalog = catalog or get_hardware_catalog()
        self.assembler = assembler or SnapshotAssembler()
        self.classifier = BottleneckClassifier(self.catalog)
        self.engine = RecommendationEngine(self.catalog)
        self.stale_driver_days = stale_driver_days
        self._clock = clock

    def diagnose_snapshot(
        self,
        snapshot: SystemSnapshot,
        use_case,
        budget_usd,
        target_fps=DEFAULT_TARGET_FPS,
        target_bitrate_kbps=None,
    ) -> DiagnosticReport:
        """
        Classify and recommend for an already assembled snapshot.

        Raises:
            InvalidInputError: If invocation parameters are out of contract
        """
        use_case, budget_usd, target_fps, target_bitrate_kbps = validate_invocation(
            use_case, budget_usd, target_fps, target_bitrate_kbps
        )

        bottlenecks, scores = self.classifier.classify(snapshot, use_case)
        recommendations = self.engine.recommend(
            snapshot, bottlenecks, use_case, budget_usd, target_fps, target_bitrate_kbps
        )

        return DiagnosticReport(
            snapshot=snapshot,
            bottlenecks=bottlenecks,
            scores=scores,
            recommendations=recommendations,
            use_case=use_case,
            budget_usd=budget_usd,
            target_fps=target_fps,
            target_bitrate_kbps=target_bitrate_kbps,
            warnings=find_health_warnings(snapshot, self.stale_driver_days),
            generated_at=self._clock().isoformat(timespec="seconds"),
        )

    def run(
        self,
        source: TelemetrySource,
        use_case,
        budget_usd,
        target_fps=DEFAULT_TARGET_FPS,
        target_bitrate_kbps=None,
        sink: Optional[ReportSink] = None,
    ) -> DiagnosticReport:
        """
        Full diagnostic pass against a telemetry source.

        Raises:
            InvalidInputError: Before telemetry is collected, if parameters are invalid
            SnapshotInvariantError: If the source produced inconsistent data
        """
        validate_invocation(use_case, budget_usd, target_fps, target_bitrate_kbps)

        log.info(f"Starting diagnostic run (use case={use_case}, budget=${budget_usd})")
        snapshot = self.assembler.assemble(source)
        report = self.diagnose_snapshot(snapshot, use_case, budget_usd, target_fps, target_bitrate_kbps)

        top = max((r.priority for r in report.recommendations), default=None)
        log.info(f"Diagnostic run complete: {len(report.bottlenecks)} bottlenecks, "
                 f"highest priority {top.name if top else 'n/a'}")

        if sink is not None:
            sink.write(report)
        return report
