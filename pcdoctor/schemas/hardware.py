"""
Hardware snapshot schemas.

A SystemSnapshot is built once per diagnostic run from a TelemetrySource and
never mutated afterwards. Every telemetry category holds either its profile
or an Unavailable marker, so "no data" can never be read as "zero" or "safe".
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, TypeVar, Union

from pcdoctor.errors import SnapshotInvariantError


@dataclass(frozen=True)
class Unavailable:
    """Marker for a telemetry category that could not be retrieved."""
    category: str
    reason: str = "not reported"

    def __str__(self) -> str:
        return f"{self.category} unavailable: {self.reason}"


T = TypeVar("T")
Reading = Union[T, Unavailable]


def is_available(value) -> bool:
    return not isinstance(value, Unavailable)


class GPUVendor(Enum):
    NVIDIA = "nvidia"
    AMD = "amd"
    INTEL = "intel"
    OTHER = "other"

    @classmethod
    def from_name(cls, name: str) -> "GPUVendor":
        """Infer the vendor family from an adapter name."""
        lowered = (name or "").lower()
        if any(token in lowered for token in ("nvidia", "geforce", "rtx", "gtx", "quadro", "tesla")):
            return cls.NVIDIA
        if any(token in lowered for token in ("amd", "radeon", "ati ")):
            return cls.AMD
        if any(token in lowered for token in ("intel", "iris", "arc ")):
            return cls.INTEL
        return cls.OTHER


class MediaType(Enum):
    SSD = "ssd"
    HDD = "hdd"
    NVME = "nvme"
    UNKNOWN = "unknown"

    @property
    def is_fast(self) -> bool:
        return self in (MediaType.SSD, MediaType.NVME)


class DeviceClass(Enum):
    DISPLAY = "display"
    NETWORK = "network"
    STORAGE = "storage"
    OTHER = "other"


def _check_percent(name: str, value: float) -> None:
    if not 0.0 <= value <= 100.0:
        raise SnapshotInvariantError(f"{name} must be within [0, 100], got {value}")


@dataclass(frozen=True)
class CPUProfile:
    core_count: int
    thread_count: int
    clock_mhz: int = 0
    model: str = "Unknown"

    def __post_init__(self):
        if self.core_count < 1:
            raise SnapshotInvariantError(f"core_count must be >= 1, got {self.core_count}")
        if self.thread_count < self.core_count:
            raise SnapshotInvariantError(
                f"thread_count ({self.thread_count}) is lower than core_count ({self.core_count})"
            )


@dataclass(frozen=True)
class RAMProfile:
    total_gb: float
    used_percent: float
    module_speed_mhz: Optional[int] = None   # None = not reported by SMBIOS
    module_count: Optional[int] = None

    def __post_init__(self):
        if self.total_gb <= 0:
            raise SnapshotInvariantError(f"total_gb must be > 0, got {self.total_gb}")
        _check_percent("used_percent", self.used_percent)
        if self.module_count is not None and self.module_count < 1:
            raise SnapshotInvariantError(f"module_count must be >= 1, got {self.module_count}")


@dataclass(frozen=True)
class MemoryErrorReport:
    """Fatal memory events (WHEA) observed in a trailing window."""
    count: int
    window_days: int = 7

    def __post_init__(self):
        if self.count < 0:
            raise SnapshotInvariantError(f"hardware error count must be >= 0, got {self.count}")


@dataclass(frozen=True)
class GPUProfile:
    name: str
    vram_gb: float = 0.0
    vendor: GPUVendor = GPUVendor.OTHER

    def __post_init__(self):
        if self.vram_gb < 0:
            raise SnapshotInvariantError(f"vram_gb must be >= 0, got {self.vram_gb}")


@dataclass(frozen=True)
class DiskProfile:
    media_type: MediaType
    capacity_gb: float
    free_percent: float
    name: str = ""

    def __post_init__(self):
        if self.capacity_gb < 0:
            raise SnapshotInvariantError(f"capacity_gb must be >= 0, got {self.capacity_gb}")
        _check_percent("free_percent", self.free_percent)


@dataclass(frozen=True)
class TemperatureReading:
    zone: str
    celsius: float


@dataclass(frozen=True)
class DriverInfo:
    device_name: str
    age_days: int
    device_class: DeviceClass = DeviceClass.OTHER

    def __post_init__(self):
        if self.age_days < 0:
            raise SnapshotInvariantError(f"driver age must be >= 0, got {self.age_days}")


@dataclass(frozen=True)
class NetworkAdapter:
    name: str
    link_up: bool
    driver_age_days: Optional[int] = None


@dataclass(frozen=True)
class SystemSnapshot:
    """Fixed-shape view of one machine, assembled once per run."""
    cpu: Reading[CPUProfile]
    ram: Reading[RAMProfile]
    memory_errors: Reading[MemoryErrorReport]
    gpu: Reading[GPUProfile]
    disks: Reading[Tuple[DiskProfile, ...]] = ()
    temperatures: Reading[Tuple[TemperatureReading, ...]] = field(
        default_factory=lambda: Unavailable("temperatures", "not collected")
    )
    drivers: Reading[Tuple[DriverInfo, ...]] = ()
    network_adapters: Reading[Tuple[NetworkAdapter, ...]] = ()

    @property
    def hardware_error_count(self) -> Reading[int]:
        if isinstance(self.memory_errors, Unavailable):
            return self.memory_errors
        return self.memory_errors.count

    @property
    def max_temperature_c(self) -> Reading[float]:
        if isinstance(self.temperatures, Unavailable):
            return self.temperatures
        if not self.temperatures:
            return Unavailable("temperatures", "no sensors reported")
        return max(reading.celsius for reading in self.temperatures)

    @property
    def has_fast_storage(self) -> Reading[bool]:
        if isinstance(self.disks, Unavailable):
            return self.disks
        return any(disk.media_type.is_fast for disk in self.disks)

    def unavailable_categories(self) -> Tuple[Unavailable, ...]:
        """All categories that could not be read, in field order."""
        values = (
            self.cpu, self.ram, self.memory_errors, self.gpu, self.disks,
            self.temperatures, self.drivers, self.network_adapters,
        )
        return tuple(v for v in values if isinstance(v, Unavailable))
