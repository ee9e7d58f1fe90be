"""
Telemetry sources feeding the snapshot assembler.
"""

from pcdoctor.services.hardware.base import TelemetrySource
from pcdoctor.services.hardware.file_source import FileTelemetrySource

__all__ = ["TelemetrySource", "FileTelemetrySource"]
