"""
Unit tests for FileTelemetrySource (hardware description replay).
"""

import json

import pytest

from pcdoctor.errors import DetectionFailedError, SnapshotInvariantError
from pcdoctor.schemas.hardware import CPUProfile, GPUVendor, MediaType, Unavailable
from pcdoctor.services.hardware.file_source import FileTelemetrySource
from pcdoctor.services.snapshot_assembler import SnapshotAssembler

HARDWARE_YAML = """
cpu: {core_count: 6, thread_count: 12, clock_mhz: 3700, model: "Ryzen 5 5600X"}
ram: {total_gb: 16, used_percent: 92, module_speed_mhz: 3200, module_count: 2}
memory_errors: {count: 15}
gpu: {name: "NVIDIA GeForce GTX 1660 SUPER", vram_gb: 6}
disks:
  - {media_type: nvme, capacity_gb: 500, free_percent: 20, name: "C:"}
  - {media_type: HDD, capacity_gb: 2000, free_percent: 70, name: "D:"}
temperatures: {unavailable: "no sensors exposed"}
drivers:
  - {device_name: "NVIDIA GeForce GTX 1660 SUPER", age_days: 500, device_class: display}
network_adapters:
  - {name: "Ethernet", link_up: true, driver_age_days: 30}
"""


@pytest.fixture
def hardware_file(tmp_path):
    path = tmp_path / "machine.yaml"
    path.write_text(HARDWARE_YAML, encoding="utf-8")
    return path


def test_full_description(hardware_file):
    snap = SnapshotAssembler().assemble(FileTelemetrySource.from_file(hardware_file))
    assert snap.cpu == CPUProfile(6, 12, 3700, "Ryzen 5 5600X")
    assert snap.ram.total_gb == 16.0
    assert snap.hardware_error_count == 15
    assert snap.gpu.vendor == GPUVendor.NVIDIA
    assert [d.media_type for d in snap.disks] == [MediaType.NVME, MediaType.HDD]
    assert snap.temperatures == Unavailable("temperatures", "no sensors exposed")
    assert snap.drivers[0].age_days == 500
    assert snap.network_adapters[0].link_up is True


def test_json_is_accepted(tmp_path):
    path = tmp_path / "machine.json"
    path.write_text(json.dumps({"cpu": {"core_count": 4, "thread_count": 8}}), encoding="utf-8")
    source = FileTelemetrySource.from_file(path)
    assert source.get_cpu().core_count == 4


def test_missing_sections_unavailable():
    source = FileTelemetrySource({"cpu": {"core_count": 4}})
    snap = SnapshotAssembler().assemble(source)
    assert snap.cpu.thread_count == 4
    for category in ("ram", "memory_errors", "gpu", "disks", "temperatures", "drivers", "network_adapters"):
        assert isinstance(getattr(snap, category), Unavailable)


def test_flat_error_count():
    source = FileTelemetrySource({"ram": {"total_gb": 8, "hardware_error_count": 3}})
    assert source.get_memory_errors(7).count == 3


def test_explicit_vendor():
    source = FileTelemetrySource({"gpu": {"name": "Custom Adapter", "vendor": "AMD"}})
    assert source.get_gpu().vendor == GPUVendor.AMD


def test_invalid_values_are_invariant_errors():
    source = FileTelemetrySource({"cpu": {"core_count": 8, "thread_count": 4}})
    with pytest.raises(SnapshotInvariantError):
        SnapshotAssembler().assemble(source)


def test_unreadable_file(tmp_path):
    with pytest.raises(DetectionFailedError):
        FileTelemetrySource.from_file(tmp_path / "missing.yaml")


def test_non_mapping_rejected():
    with pytest.raises(DetectionFailedError):
        FileTelemetrySource(["cpu"])
