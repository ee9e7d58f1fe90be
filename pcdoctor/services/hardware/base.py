"""
Telemetry source interface.

A TelemetrySource exposes one query per snapshot category. Each query
returns a populated value or an Unavailable marker. Queries must not raise
for "no data"; they may raise DetectionFailedError (or any other exception)
for genuine access failures, which the snapshot assembler absorbs.
"""

from abc import ABC, abstractmethod
from typing import Sequence, Union

from pcdoctor.errors import DetectionFailedError
from pcdoctor.schemas.hardware import (
    CPUProfile,
    DriverInfo,
    DiskProfile,
    GPUProfile,
    MemoryErrorReport,
    NetworkAdapter,
    RAMProfile,
    TemperatureReading,
    Unavailable,
)

__all__ = ["TelemetrySource", "DetectionFailedError"]


class TelemetrySource(ABC):
    """One query per snapshot category."""

    @abstractmethod
    def get_cpu(self) -> Union[CPUProfile, Unavailable]:
        ...

    @abstractmethod
    def get_ram(self) -> Union[RAMProfile, Unavailable]:
        ...

    @abstractmethod
    def get_memory_errors(self, window_days: int) -> Union[MemoryErrorReport, Unavailable]:
        """Fatal memory (WHEA) events observed in the trailing window."""
        ...

    @abstractmethod
    def get_gpu(self) -> Union[GPUProfile, Unavailable]:
        ...

    @abstractmethod
    def get_disks(self) -> Union[Sequence[DiskProfile], Unavailable]:
        ...

    @abstractmethod
    def get_temperatures(self) -> Union[Sequence[TemperatureReading], Unavailable]:
        ...

    @abstractmethod
    def get_drivers(self) -> Union[Sequence[DriverInfo], Unavailable]:
        ...

    @abstractmethod
    def get_network_adapters(self) -> Union[Sequence[NetworkAdapter], Unavailable]:
        ...
