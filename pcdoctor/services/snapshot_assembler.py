"""
Snapshot Assembler.

Normalizes raw telemetry into an immutable SystemSnapshot. Each category is
queried independently with its own deadline; a failing or stalled category
becomes Unavailable and never blocks the rest. Snapshot invariant violations
(SnapshotInvariantError) are the one failure that propagates.
"""

import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from pcdoctor.config import constants
from pcdoctor.errors import SnapshotInvariantError
from pcdoctor.schemas.hardware import (
    CPUProfile,
    DiskProfile,
    DriverInfo,
    GPUProfile,
    MemoryErrorReport,
    NetworkAdapter,
    RAMProfile,
    SystemSnapshot,
    TemperatureReading,
    Unavailable,
)
from pcdoctor.services.hardware.base import TelemetrySource
from pcdoctor.utils.logger import get_logger

log = get_logger(__name__)

# Category -> (expected value type, is a sequence). Order is the merge order.
CATEGORY_TYPES: Dict[str, Tuple[type, bool]] = {
    "cpu": (CPUProfile, False),
    "ram": (RAMProfile, False),
    "memory_errors": (MemoryErrorReport, False),
    "gpu": (GPUProfile, False),
    "disks": (DiskProfile, True),
    "temperatures": (TemperatureReading, True),
    "drivers": (DriverInfo, True),
    "network_adapters": (NetworkAdapter, True),
}


class SnapshotAssembler:
    """
    Builds a SystemSnapshot from a TelemetrySource.

    Args:
        default_timeout: Seconds allowed per category
        timeouts: Per-category overrides (e.g. {"memory_errors": 30})
        error_window_days: Trailing window passed to the memory error query
    """

    def __init__(
        self,
        default_timeout: float = constants.DEFAULT_TELEMETRY_TIMEOUT_S,
        timeouts: Optional[Dict[str, float]] = None,
        error_window_days: int = constants.ERROR_WINDOW_DAYS,
    ):
        self.default_timeout = default_timeout
        self.timeouts = {"memory_errors": constants.EVENT_LOG_TIMEOUT_S}
        self.timeouts.update(timeouts or {})
        self.error_window_days = error_window_days

    def timeout_for(self, category: str) -> float:
        return float(self.timeouts.get(category, self.default_timeout))

    def assemble(self, source: TelemetrySource) -> SystemSnapshot:
        """
        Query every category and merge the results in fixed order.

        Raises:
            SnapshotInvariantError: If the source produced inconsistent data
        """
        queries: List[Tuple[str, Callable[[], Any]]] = [
            ("cpu", source.get_cpu),
            ("ram", source.get_ram),
            ("memory_errors", lambda: source.get_memory_errors(self.error_window_days)),
            ("gpu", source.get_gpu),
            ("disks", source.get_disks),
            ("temperatures", source.get_temperatures),
            ("drivers", source.get_drivers),
            ("network_adapters", source.get_network_adapters),
        ]

        started = time.monotonic()
        pending = [(category, _start_query(category, query)) for category, query in queries]

        results: Dict[str, Any] = {}
        for category, (thread, outcome) in pending:
            deadline = started + self.timeout_for(category)
            results[category] = self._collect(category, thread, outcome, deadline)

        snapshot = SystemSnapshot(**results)
        missing = snapshot.unavailable_categories()
        if missing:
            log.info(f"Snapshot assembled with {len(missing)} unavailable categories: "
                     f"{', '.join(m.category for m in missing)}")
        else:
            log.info("Snapshot assembled with all categories available")
        return snapshot

    def _collect(self, category: str, thread: threading.Thread, outcome: Dict[str, Any], deadline: float):
        thread.join(max(0.0, deadline - time.monotonic()))
        if thread.is_alive():
            # Daemon worker is abandoned; it cannot hold the process open
            log.warning(f"Telemetry category '{category}' timed out after {self.timeout_for(category)}s")
            return Unavailable(category, f"timed out after {self.timeout_for(category):g}s")

        error = outcome.get("error")
        if isinstance(error, SnapshotInvariantError):
            raise error
        if error is not None:
            log.warning(f"Telemetry category '{category}' unavailable: {error}")
            return Unavailable(category, str(error) or type(error).__name__)

        return normalize(category, outcome.get("value"))


def _start_query(category: str, query: Callable[[], Any]) -> Tuple[threading.Thread, Dict[str, Any]]:
    outcome: Dict[str, Any] = {}

    def run():
        try:
            outcome["value"] = query()
        except Exception as e:
            outcome["error"] = e

    thread = threading.Thread(target=run, name=f"telemetry-{category}", daemon=True)
    thread.start()
    return thread, outcome


def normalize(category: str, value: Any):
    """
    Validate a query result and convert sequences to tuples.

    Raises:
        SnapshotInvariantError: If the value has the wrong type for its category
    """
    if isinstance(value, Unavailable):
        return value
    if value is None:
        return Unavailable(category, "source returned no data")

    expected, is_sequence = CATEGORY_TYPES[category]
    if not is_sequence:
        if not isinstance(value, expected):
            raise SnapshotInvariantError(
                f"{category}: expected {expected.__name__}, got {type(value).__name__}"
            )
        return value

    if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
        raise SnapshotInvariantError(f"{category}: expected a sequence, got {type(value).__name__}")
    items = tuple(value)
    for item in items:
        if not isinstance(item, expected):
            raise SnapshotInvariantError(
                f"{category}: expected {expected.__name__} items, got {type(item).__name__}"
            )
    if category == "temperatures" and not items:
        return Unavailable(category, "no sensors reported")
    return items


def assemble(telemetry: TelemetrySource, **kwargs) -> SystemSnapshot:
    """Convenience wrapper: SnapshotAssembler(**kwargs).assemble(telemetry)."""
    return SnapshotAssembler(**kwargs).assemble(telemetry)
