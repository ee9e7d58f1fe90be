"""
Telemetry replayed from a hardware description file.

Lets a diagnostic run be reproduced from a saved YAML/JSON description
(JSON is valid YAML, so one loader handles both):

    cpu: {core_count: 8, thread_count: 16, clock_mhz: 3600}
    ram: {total_gb: 16, used_percent: 62, module_speed_mhz: 3200, module_count: 2}
    memory_errors: {count: 0, window_days: 7}
    gpu: {name: "NVIDIA GeForce RTX 3060", vram_gb: 12}
    disks:
      - {media_type: nvme, capacity_gb: 1000, free_percent: 40, name: "C:"}
    temperatures: {unavailable: "no sensors exposed"}

A missing section, or one written as {unavailable: <reason>}, is reported
as Unavailable.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from pcdoctor.errors import DetectionFailedError
from pcdoctor.schemas.hardware import (
    CPUProfile,
    DeviceClass,
    DiskProfile,
    DriverInfo,
    GPUProfile,
    GPUVendor,
    MediaType,
    MemoryErrorReport,
    NetworkAdapter,
    RAMProfile,
    TemperatureReading,
    Unavailable,
)
from pcdoctor.services.hardware.base import TelemetrySource
from pcdoctor.utils.logger import log


class FileTelemetrySource(TelemetrySource):
    """TelemetrySource backed by an in-memory hardware description."""

    def __init__(self, data: Dict[str, Any], origin: str = "<dict>"):
        if not isinstance(data, dict):
            raise DetectionFailedError("File", f"{origin} does not contain a mapping")
        self._data = data
        self._origin = origin

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "FileTelemetrySource":
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise DetectionFailedError("File", f"Could not read hardware file {path}", str(e)) from e
        log.info(f"Replaying telemetry from {path}")
        return cls(data, origin=str(path))

    def _section(self, key: str) -> Union[Any, Unavailable]:
        if key not in self._data or self._data[key] is None:
            return Unavailable(key, f"not present in {self._origin}")
        value = self._data[key]
        if isinstance(value, dict) and "unavailable" in value:
            return Unavailable(key, str(value["unavailable"]))
        return value

    def _list_section(self, key: str, build) -> Union[List[Any], Unavailable]:
        section = self._section(key)
        if isinstance(section, Unavailable):
            return section
        if not isinstance(section, list):
            raise DetectionFailedError(key, f"expected a list in {self._origin}")
        return [build(item) for item in section]

    def get_cpu(self):
        section = self._section("cpu")
        if isinstance(section, Unavailable):
            return section
        return CPUProfile(
            core_count=int(section["core_count"]),
            thread_count=int(section.get("thread_count", section["core_count"])),
            clock_mhz=int(section.get("clock_mhz", 0)),
            model=str(section.get("model", "Unknown")),
        )

    def get_ram(self):
        section = self._section("ram")
        if isinstance(section, Unavailable):
            return section
        return RAMProfile(
            total_gb=float(section["total_gb"]),
            used_percent=float(section.get("used_percent", 0.0)),
            module_speed_mhz=_optional_int(section.get("module_speed_mhz")),
            module_count=_optional_int(section.get("module_count")),
        )

    def get_memory_errors(self, window_days: int):
        section = self._section("memory_errors")
        if isinstance(section, Unavailable):
            # Accept the flat form ram.hardware_error_count
            ram = self._data.get("ram")
            if isinstance(ram, dict) and "hardware_error_count" in ram:
                return MemoryErrorReport(count=int(ram["hardware_error_count"]), window_days=window_days)
            return section
        return MemoryErrorReport(
            count=int(section["count"]),
            window_days=int(section.get("window_days", window_days)),
        )

    def get_gpu(self):
        section = self._section("gpu")
        if isinstance(section, Unavailable):
            return section
        name = str(section["name"])
        vendor = section.get("vendor")
        return GPUProfile(
            name=name,
            vram_gb=float(section.get("vram_gb", 0.0)),
            vendor=GPUVendor(str(vendor).lower()) if vendor else GPUVendor.from_name(name),
        )

    def get_disks(self):
        return self._list_section("disks", lambda d: DiskProfile(
            media_type=MediaType(str(d.get("media_type", "unknown")).lower()),
            capacity_gb=float(d["capacity_gb"]),
            free_percent=float(d["free_percent"]),
            name=str(d.get("name", "")),
        ))

    def get_temperatures(self):
        return self._list_section("temperatures", lambda t: TemperatureReading(
            zone=str(t.get("zone", "unknown")),
            celsius=float(t["celsius"]),
        ))

    def get_drivers(self):
        return self._list_section("drivers", lambda d: DriverInfo(
            device_name=str(d["device_name"]),
            age_days=int(d["age_days"]),
            device_class=DeviceClass(str(d.get("device_class", "other")).lower()),
        ))

    def get_network_adapters(self):
        return self._list_section("network_adapters", lambda n: NetworkAdapter(
            name=str(n["name"]),
            link_up=bool(n.get("link_up", True)),
            driver_age_days=_optional_int(n.get("driver_age_days")),
        ))


def _optional_int(value) -> Optional[int]:
    return None if value is None else int(value)
