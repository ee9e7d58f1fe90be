"""
RAM detection module.

Provides:
- Total system RAM and current usage
- Installed module count and configured speed (SMBIOS)
- Count of fatal memory hardware errors (WHEA) in a trailing window

Installed capacity comes from SMBIOS (the sum of module sizes) because the
OS-visible total is always short of it by firmware and iGPU reservations.
When SMBIOS reports nothing, capacity falls back from psutil to platform
tools. There is no numeric fallback: if every method fails, detection
raises DetectionFailedError.
"""

import platform
import subprocess
from typing import Optional, Tuple

from pcdoctor.errors import DetectionFailedError
from pcdoctor.schemas.hardware import MemoryErrorReport, RAMProfile
from pcdoctor.utils.logger import log
from pcdoctor.utils.subprocess_utils import (
    as_list,
    extract_json,
    extract_number,
    run_command,
    run_powershell,
)

SIZE_UNITS_GB = {"KB": 1.0 / (1024 ** 2), "MB": 1.0 / 1024, "GB": 1.0, "TB": 1024.0}

# WHEA-Logger event IDs that indicate a fatal or corrected-then-fatal memory error
WHEA_MEMORY_EVENT_IDS = (1, 18, 19, 20, 47)


def detect_ram() -> RAMProfile:
    """
    Detect RAM capacity, usage and module layout.

    Returns:
        RAMProfile with total, used percent and (when reported) module speed/count

    Raises:
        DetectionFailedError: If RAM capacity cannot be detected
    """
    visible_gb, used_percent = _get_capacity_and_usage()
    module_count, speed_mhz, installed_gb = detect_modules()
    total_gb = max(installed_gb, visible_gb) if installed_gb else visible_gb
    log.debug(f"RAM: {visible_gb:.1f}GB visible, installed {installed_gb or 'unknown'}")

    return RAMProfile(
        total_gb=round(total_gb, 1),
        used_percent=used_percent,
        module_speed_mhz=speed_mhz,
        module_count=module_count,
    )


def _get_capacity_and_usage() -> Tuple[float, float]:
    """
    Get total RAM in GB and used percent.

    Uses psutil as primary method with platform-specific fallbacks.
    """
    try:
        import psutil
        vm = psutil.virtual_memory()
        return vm.total / (1024 ** 3), float(vm.percent)
    except ImportError:
        log.debug("psutil not available for RAM detection")
    except Exception as e:
        log.debug(f"psutil RAM detection failed: {e}")

    system = platform.system()
    if system == "Linux":
        return _get_capacity_linux()
    if system == "Windows":
        return _get_capacity_windows()

    raise DetectionFailedError(
        component="RAM",
        message="Could not detect system RAM",
        details="Install psutil for reliable cross-platform detection.",
    )


def _get_capacity_linux() -> Tuple[float, float]:
    """Read MemTotal / MemAvailable from /proc/meminfo."""
    values = {}
    try:
        with open("/proc/meminfo", "r") as f:
            for line in f:
                key, _, rest = line.partition(":")
                if key in ("MemTotal", "MemAvailable"):
                    # Values are in kB
                    values[key] = int(rest.split()[0])
    except (OSError, ValueError) as e:
        log.debug(f"Linux /proc/meminfo RAM detection failed: {e}")

    total_kb = values.get("MemTotal")
    if not total_kb:
        raise DetectionFailedError(
            component="RAM",
            message="Could not detect RAM on Linux",
            details="/proc/meminfo parsing failed",
        )
    available_kb = values.get("MemAvailable", total_kb)
    used_percent = max(0.0, min(100.0, 100.0 * (total_kb - available_kb) / total_kb))
    return total_kb / (1024 ** 2), used_percent


def _get_capacity_windows() -> Tuple[float, float]:
    """Get total and free physical memory via CIM."""
    output = run_powershell(
        "Get-CimInstance Win32_OperatingSystem | "
        "Select-Object TotalVisibleMemorySize, FreePhysicalMemory | ConvertTo-Json"
    )
    data = extract_json(output)
    if isinstance(data, dict) and data.get("TotalVisibleMemorySize"):
        total_kb = float(data["TotalVisibleMemorySize"])
        free_kb = float(data.get("FreePhysicalMemory") or 0)
        used_percent = max(0.0, min(100.0, 100.0 * (total_kb - free_kb) / total_kb))
        return total_kb / (1024 ** 2), used_percent

    raise DetectionFailedError(
        component="RAM",
        message="Could not detect RAM on Windows",
        details="Win32_OperatingSystem query failed",
    )


def detect_modules() -> Tuple[Optional[int], Optional[int], Optional[float]]:
    """
    Detect installed modules from SMBIOS.

    Returns:
        (module_count, speed_mhz, installed_gb); each is None when not reported
    """
    system = platform.system()
    if system == "Windows":
        return _detect_modules_windows()
    if system == "Linux":
        return _detect_modules_linux()
    return None, None, None


def _detect_modules_windows() -> Tuple[Optional[int], Optional[int], Optional[float]]:
    output = run_powershell(
        "Get-CimInstance Win32_PhysicalMemory | "
        "Select-Object Capacity, ConfiguredClockSpeed, Speed | ConvertTo-Json"
    )
    modules = [m for m in as_list(extract_json(output)) if isinstance(m, dict)]
    if not modules:
        return None, None, None

    speeds = [int(m.get("ConfiguredClockSpeed") or m.get("Speed") or 0) for m in modules]
    speeds = [s for s in speeds if s > 0]
    capacity = sum(int(m.get("Capacity") or 0) for m in modules)
    installed_gb = round(capacity / (1024 ** 3), 1) if capacity > 0 else None
    return len(modules), (min(speeds) if speeds else None), installed_gb


def _detect_modules_linux() -> Tuple[Optional[int], Optional[int], Optional[float]]:
    """Parse dmidecode output (needs root; silently unknown otherwise)."""
    output = run_command(["dmidecode", "-t", "memory"], timeout=5)
    if not output:
        return None, None, None

    count = 0
    installed_gb = 0.0
    speeds = []
    in_device = False
    for raw_line in output.splitlines():
        line = raw_line.strip()
        if line == "Memory Device":
            in_device = True
            continue
        if not in_device:
            continue
        if line.startswith("Size:") and "No Module Installed" not in line:
            count += 1
            installed_gb += _size_gb(line)
        elif line.startswith("Configured Memory Speed:") or line.startswith("Configured Clock Speed:"):
            speed = extract_number(line)
            if speed:
                speeds.append(int(speed))

    return (count or None), (min(speeds) if speeds else None), (round(installed_gb, 1) or None)


def _size_gb(line: str) -> float:
    # "Size: 16 GB", "Size: 8192 MB"
    parts = line.split()
    if len(parts) < 3:
        return 0.0
    try:
        return float(parts[1]) * SIZE_UNITS_GB.get(parts[2].upper(), 0.0)
    except ValueError:
        return 0.0


def count_memory_errors(window_days: int = 7, timeout: float = 30) -> MemoryErrorReport:
    """
    Count fatal memory hardware events in the System event log.

    Only Windows records WHEA events. Other platforms raise
    DetectionFailedError so the count is reported as unavailable, never as 0.

    Args:
        window_days: Trailing window to scan
        timeout: Seconds allowed for the event log query

    Raises:
        DetectionFailedError: If the event log cannot be queried
    """
    if platform.system() != "Windows":
        raise DetectionFailedError(
            component="RAM",
            message="Memory error log not available",
            details="WHEA events are only recorded on Windows",
        )

    ids = ",".join(str(i) for i in WHEA_MEMORY_EVENT_IDS)
    # Only "no matching events" means 0; any other failure exits non-zero and is unavailable
    script = (
        "try { @(Get-WinEvent -FilterHashtable @{LogName='System'; "
        "ProviderName='Microsoft-Windows-WHEA-Logger'; "
        f"Id={ids}; StartTime=(Get-Date).AddDays(-{int(window_days)})}} "
        "-ErrorAction Stop).Count } "
        "catch { if ($_.FullyQualifiedErrorId -match 'NoMatchingEventsFound') { 0 } else { throw } }"
    )
    try:
        output = run_powershell(script, timeout=timeout)
    except subprocess.SubprocessError as e:
        raise DetectionFailedError("RAM", "WHEA event log query failed", str(e)) from e

    count = extract_number(output)
    if count is None:
        raise DetectionFailedError(
            component="RAM",
            message="WHEA event log query returned no result",
            details="Event log access may require administrator rights",
        )
    return MemoryErrorReport(count=int(count), window_days=window_days)
