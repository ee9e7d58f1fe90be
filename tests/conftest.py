"""
Shared fixtures: snapshot builders and an isolated PCDOCTOR_HOME.
"""

import pytest

from pcdoctor.schemas.hardware import (
    CPUProfile,
    DiskProfile,
    GPUProfile,
    GPUVendor,
    MediaType,
    MemoryErrorReport,
    RAMProfile,
    SystemSnapshot,
    TemperatureReading,
    Unavailable,
)
from pcdoctor.services.hardware_catalog import get_hardware_catalog

_UNSET = object()


def build_snapshot(
    cores=8,
    threads=16,
    ram_gb=32.0,
    used_percent=40.0,
    module_count=2,
    module_speed_mhz=3200,
    error_count=0,
    gpu_name="NVIDIA GeForce RTX 3060",
    disks=_UNSET,
    temperatures=_UNSET,
    drivers=(),
    network_adapters=(),
    **overrides,
):
    """
    Build a healthy-by-default SystemSnapshot.

    Pass an Unavailable instance for any category to mark it missing, or use
    the keyword overrides (cpu=, ram=, memory_errors=, gpu=) directly.
    """
    if disks is _UNSET:
        disks = (DiskProfile(MediaType.NVME, 1000.0, 45.0, "C:"),)
    if temperatures is _UNSET:
        temperatures = (TemperatureReading("CPU Package", 62.0),)

    values = {
        "cpu": CPUProfile(core_count=cores, thread_count=threads, clock_mhz=3600, model="Test CPU"),
        "ram": RAMProfile(
            total_gb=ram_gb,
            used_percent=used_percent,
            module_speed_mhz=module_speed_mhz,
            module_count=module_count,
        ),
        "memory_errors": MemoryErrorReport(count=error_count, window_days=7),
        "gpu": GPUProfile(name=gpu_name, vram_gb=12.0, vendor=GPUVendor.from_name(gpu_name)),
        "disks": disks,
        "temperatures": temperatures,
        "drivers": drivers,
        "network_adapters": network_adapters,
    }
    values.update(overrides)
    return SystemSnapshot(**values)


@pytest.fixture
def make_snapshot():
    """Factory fixture around build_snapshot()."""
    return build_snapshot


@pytest.fixture
def healthy_snapshot():
    return build_snapshot()


@pytest.fixture
def unavailable():
    """Factory for Unavailable markers: unavailable("temperatures")."""
    def _make(category, reason="sensor not exposed"):
        return Unavailable(category, reason)
    return _make


@pytest.fixture
def catalog():
    return get_hardware_catalog()


@pytest.fixture
def pcdoctor_home(tmp_path, monkeypatch):
    """Point config and logs at a temporary directory."""
    monkeypatch.setenv("PCDOCTOR_HOME", str(tmp_path))
    import pcdoctor.config.manager as manager
    monkeypatch.setattr(manager, "_config_manager", None)
    return tmp_path
