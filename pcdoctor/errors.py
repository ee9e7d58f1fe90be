"""
Error taxonomy for the diagnostic pipeline.

Only contract violations propagate to callers. Telemetry problems are
absorbed by the snapshot assembler and represented as Unavailable values.
"""

from typing import Optional


class PCDoctorError(Exception):
    """Base exception for all pcdoctor errors."""
    pass


class DetectionFailedError(PCDoctorError):
    """
    A telemetry detector could not read a hardware category.

    Raised by detectors for genuine access failures (permission denied,
    platform unsupported, tool missing). The snapshot assembler converts it
    into an Unavailable marker; it never reaches the caller.
    """

    def __init__(self, component: str, message: str, details: Optional[str] = None):
        self.component = component
        self.message = message
        self.details = details
        text = f"{component}: {message}"
        if details:
            text += f" ({details})"
        super().__init__(text)


class InvalidInputError(PCDoctorError, ValueError):
    """Invocation parameters are outside their contract (use case, budget, bitrate)."""
    pass


class SnapshotInvariantError(PCDoctorError):
    """A snapshot invariant was violated, usually by a buggy telemetry source."""
    pass


class HardwareCatalogError(PCDoctorError):
    """The hardware lookup catalog is missing or malformed."""
    pass
