"""
Live telemetry from the local machine.

psutil covers the cross-platform categories; Windows-only details (GPU
adapters, physical disk media, signed drivers, WHEA events) come from CIM
queries through PowerShell. Every detector either returns data or raises
DetectionFailedError; nothing here substitutes a guessed value.
"""

import os
import platform
import re
import shutil
from datetime import datetime
from typing import Callable, List, Optional

import psutil

from pcdoctor.config import constants
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
)
from pcdoctor.services.hardware import ram
from pcdoctor.services.hardware.base import TelemetrySource
from pcdoctor.utils.logger import log
from pcdoctor.utils.subprocess_utils import as_list, extract_json, run_command, run_powershell

# Sensor chips checked first for CPU package temperature
PREFERRED_SENSORS = ("coretemp", "k10temp", "zenpower", "cpu_thermal", "acpitz")

DEVICE_CLASS_MAP = {
    "DISPLAY": DeviceClass.DISPLAY,
    "NET": DeviceClass.NETWORK,
    "SCSIADAPTER": DeviceClass.STORAGE,
    "HDC": DeviceClass.STORAGE,
    "DISKDRIVE": DeviceClass.STORAGE,
}

_CIM_DATE_RE = re.compile(r"^(\d{8})")
_JSON_DATE_RE = re.compile(r"/Date\((\d+)\)/")


def parse_driver_date(value, now: datetime) -> Optional[int]:
    """
    Convert a CIM or ConvertTo-Json date into an age in days.

    Accepts "20230415000000.000000-000", "/Date(1681516800000)/" or ISO strings.
    """
    if not value:
        return None
    text = str(value)
    try:
        match = _JSON_DATE_RE.search(text)
        if match:
            stamp = datetime.fromtimestamp(int(match.group(1)) / 1000)
        else:
            match = _CIM_DATE_RE.match(text)
            if match:
                stamp = datetime.strptime(match.group(1), "%Y%m%d")
            else:
                stamp = datetime.fromisoformat(text[:19])
    except (ValueError, OverflowError, OSError):
        return None
    return max(0, (now - stamp).days)


class LocalTelemetrySource(TelemetrySource):
    """
    TelemetrySource backed by the running machine.

    Args:
        now: Clock used for driver ages (injectable for tests)
        event_log_timeout: Seconds allowed for the WHEA event log scan
    """

    def __init__(
        self,
        now: Optional[Callable[[], datetime]] = None,
        event_log_timeout: float = constants.EVENT_LOG_TIMEOUT_S,
    ):
        self._now = now or datetime.now
        self._event_log_timeout = event_log_timeout
        self._system = platform.system()

    # -------------------------------------------------------------------------
    # CPU / RAM
    # -------------------------------------------------------------------------

    def get_cpu(self) -> CPUProfile:
        cores = psutil.cpu_count(logical=False)
        threads = psutil.cpu_count(logical=True)
        if not cores and not threads:
            raise DetectionFailedError("CPU", "Core count not reported")
        cores = cores or threads
        threads = max(threads or cores, cores)

        freq = None
        try:
            freq = psutil.cpu_freq()
        except Exception as e:
            log.debug(f"cpu_freq failed: {e}")
        clock = 0
        if freq:
            clock = int(freq.max or freq.current or 0)

        return CPUProfile(
            core_count=int(cores),
            thread_count=int(threads),
            clock_mhz=clock,
            model=platform.processor() or "Unknown",
        )

    def get_ram(self) -> RAMProfile:
        return ram.detect_ram()

    def get_memory_errors(self, window_days: int) -> MemoryErrorReport:
        return ram.count_memory_errors(window_days, timeout=self._event_log_timeout)

    # -------------------------------------------------------------------------
    # GPU
    # -------------------------------------------------------------------------

    def get_gpu(self) -> GPUProfile:
        """
        Detect the primary GPU.

        nvidia-smi first (exact VRAM), then Win32_VideoController on Windows,
        then lspci on Linux. Among several adapters the one with the most
        VRAM wins so a discrete card beats the iGPU.
        """
        if shutil.which("nvidia-smi"):
            output = run_command(
                ["nvidia-smi", "--query-gpu=name,memory.total", "--format=csv,noheader,nounits"]
            )
            if output:
                try:
                    name, mem = output.splitlines()[0].split(",")
                    return GPUProfile(name=name.strip(), vram_gb=round(float(mem) / 1024, 1),
                                      vendor=GPUVendor.NVIDIA)
                except ValueError as e:
                    log.warning(f"Unexpected nvidia-smi output: {e}")

        if self._system == "Windows":
            output = run_powershell(
                "Get-CimInstance Win32_VideoController | Select-Object Name, AdapterRAM | ConvertTo-Json"
            )
            adapters = [a for a in as_list(extract_json(output)) if isinstance(a, dict) and a.get("Name")]
            if adapters:
                # AdapterRAM is a uint32 and caps at 4GB; good enough to rank adapters
                best = max(adapters, key=lambda a: int(a.get("AdapterRAM") or 0))
                name = str(best["Name"]).strip()
                return GPUProfile(
                    name=name,
                    vram_gb=round(int(best.get("AdapterRAM") or 0) / (1024 ** 3), 1),
                    vendor=GPUVendor.from_name(name),
                )

        if self._system == "Linux":
            output = run_command(["lspci"])
            if output:
                for line in output.splitlines():
                    if "VGA compatible controller" in line or "3D controller" in line:
                        name = line.split(":", 2)[-1].strip()
                        return GPUProfile(name=name, vram_gb=0.0, vendor=GPUVendor.from_name(name))

        raise DetectionFailedError("GPU", "No display adapter could be detected")

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------

    def get_disks(self) -> List[DiskProfile]:
        if self._system == "Windows":
            disks = self._get_disks_windows()
            if disks:
                return disks
        return self._get_disks_psutil()

    def _get_disks_windows(self) -> List[DiskProfile]:
        script = (
            "Get-Partition | Where-Object DriveLetter | ForEach-Object { "
            "$p = $_; $d = Get-PhysicalDisk | Where-Object DeviceId -eq $p.DiskNumber; "
            "$v = Get-Volume -DriveLetter $p.DriveLetter; "
            "[pscustomobject]@{Drive=$p.DriveLetter; MediaType=$d.MediaType; BusType=$d.BusType; "
            "Size=$v.Size; Free=$v.SizeRemaining} } | ConvertTo-Json"
        )
        rows = as_list(extract_json(run_powershell(script)))
        disks = []
        for row in rows:
            if not isinstance(row, dict) or not row.get("Size"):
                continue
            size = float(row["Size"])
            free = float(row.get("Free") or 0)
            disks.append(DiskProfile(
                media_type=self._media_type_windows(row.get("MediaType"), row.get("BusType")),
                capacity_gb=round(size / (1024 ** 3), 1),
                free_percent=round(max(0.0, min(100.0, 100.0 * free / size)), 1),
                name=f"{row.get('Drive')}:",
            ))
        return disks

    @staticmethod
    def _media_type_windows(media, bus) -> MediaType:
        # Get-PhysicalDisk reports enums as strings or numbers depending on PS version
        bus_text = str(bus or "").lower()
        media_text = str(media or "").lower()
        if bus_text in ("nvme", "17"):
            return MediaType.NVME
        if media_text in ("ssd", "4"):
            return MediaType.SSD
        if media_text in ("hdd", "3"):
            return MediaType.HDD
        return MediaType.UNKNOWN

    def _get_disks_psutil(self) -> List[DiskProfile]:
        disks = []
        seen = set()
        for part in psutil.disk_partitions(all=False):
            if part.device in seen or not part.mountpoint:
                continue
            seen.add(part.device)
            try:
                usage = psutil.disk_usage(part.mountpoint)
            except (PermissionError, OSError) as e:
                log.debug(f"Skipping {part.mountpoint}: {e}")
                continue
            if usage.total <= 0:
                continue
            disks.append(DiskProfile(
                media_type=self._media_type_linux(part.device),
                capacity_gb=round(usage.total / (1024 ** 3), 1),
                free_percent=round(100.0 - float(usage.percent), 1),
                name=part.mountpoint,
            ))
        if not disks:
            raise DetectionFailedError("Storage", "No mounted disks reported")
        return disks

    @staticmethod
    def _media_type_linux(device: str) -> MediaType:
        base = os.path.basename(device or "")
        if base.startswith("nvme"):
            return MediaType.NVME
        # sda1 -> sda, mmcblk0p1 is left as unknown
        block = re.sub(r"\d+$", "", base)
        rotational = f"/sys/block/{block}/queue/rotational"
        try:
            with open(rotational, "r") as f:
                return MediaType.HDD if f.read().strip() == "1" else MediaType.SSD
        except OSError:
            return MediaType.UNKNOWN

    # -------------------------------------------------------------------------
    # Thermals
    # -------------------------------------------------------------------------

    def get_temperatures(self) -> List[TemperatureReading]:
        readings: List[TemperatureReading] = []

        if hasattr(psutil, "sensors_temperatures"):
            try:
                sensors = psutil.sensors_temperatures() or {}
            except Exception as e:
                log.debug(f"sensors_temperatures failed: {e}")
                sensors = {}
            ordered = [n for n in PREFERRED_SENSORS if n in sensors]
            ordered += [n for n in sensors if n not in PREFERRED_SENSORS]
            for chip in ordered:
                for entry in sensors[chip]:
                    if entry.current is None:
                        continue
                    zone = f"{chip}/{entry.label}" if entry.label else chip
                    readings.append(TemperatureReading(zone=zone, celsius=float(entry.current)))

        if not readings and self._system == "Windows":
            # Needs administrator rights; returns nothing otherwise
            output = run_powershell(
                "Get-CimInstance -Namespace root/wmi -ClassName MSAcpi_ThermalZoneTemperature | "
                "Select-Object InstanceName, CurrentTemperature | ConvertTo-Json"
            )
            for zone in as_list(extract_json(output)):
                if isinstance(zone, dict) and zone.get("CurrentTemperature"):
                    # Tenths of a Kelvin
                    celsius = round(float(zone["CurrentTemperature"]) / 10.0 - 273.15, 1)
                    readings.append(TemperatureReading(zone=str(zone.get("InstanceName", "ACPI")),
                                                       celsius=celsius))

        if not readings:
            raise DetectionFailedError("Temperatures", "No temperature sensors exposed")
        return readings

    # -------------------------------------------------------------------------
    # Drivers / Network
    # -------------------------------------------------------------------------

    def get_drivers(self) -> List[DriverInfo]:
        if self._system != "Windows":
            raise DetectionFailedError("Drivers", "Driver inventory is only collected on Windows")

        output = run_powershell(
            "Get-CimInstance Win32_PnPSignedDriver | "
            "Where-Object { $_.DeviceClass -in 'DISPLAY','NET','SCSIADAPTER','HDC','DISKDRIVE' } | "
            "Select-Object DeviceName, DriverDate, DeviceClass | ConvertTo-Json",
            timeout=30,
        )
        rows = extract_json(output)
        if rows is None:
            raise DetectionFailedError("Drivers", "Win32_PnPSignedDriver query failed")

        now = self._now()
        drivers = []
        for row in as_list(rows):
            if not isinstance(row, dict) or not row.get("DeviceName"):
                continue
            age = parse_driver_date(row.get("DriverDate"), now)
            if age is None:
                continue
            drivers.append(DriverInfo(
                device_name=str(row["DeviceName"]),
                age_days=age,
                device_class=DEVICE_CLASS_MAP.get(str(row.get("DeviceClass") or "").upper(), DeviceClass.OTHER),
            ))
        return drivers

    def get_network_adapters(self) -> List[NetworkAdapter]:
        if self._system == "Windows":
            output = run_powershell(
                "Get-NetAdapter -Physical | Select-Object Name, Status, DriverDate | ConvertTo-Json"
            )
            rows = extract_json(output)
            if rows is not None:
                now = self._now()
                return [
                    NetworkAdapter(
                        name=str(row.get("Name")),
                        link_up=str(row.get("Status")).lower() == "up",
                        driver_age_days=parse_driver_date(row.get("DriverDate"), now),
                    )
                    for row in as_list(rows)
                    if isinstance(row, dict)
                ]

        stats = psutil.net_if_stats()
        return [
            NetworkAdapter(name=name, link_up=bool(stat.isup))
            for name, stat in sorted(stats.items())
            if not name.startswith("lo")
        ]
