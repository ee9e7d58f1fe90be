"""
Unit tests for live telemetry detectors. Platform calls are mocked.
"""

from collections import namedtuple
from datetime import datetime
from unittest.mock import patch

import pytest

from pcdoctor.errors import DetectionFailedError
from pcdoctor.schemas.diagnostics import Priority, UseCase
from pcdoctor.schemas.hardware import DeviceClass, GPUVendor, MediaType
from pcdoctor.services.bottleneck_classifier import BottleneckClassifier
from pcdoctor.services.hardware import ram
from pcdoctor.services.hardware.system_source import LocalTelemetrySource, parse_driver_date
from pcdoctor.services.recommendation.engine import RecommendationEngine
from pcdoctor.utils.subprocess_utils import as_list, extract_json, extract_number

NOW = datetime(2026, 10, 17)

Freq = namedtuple("Freq", "current min max")
Temp = namedtuple("Temp", "label current high critical")
IfStats = namedtuple("IfStats", "isup duplex speed mtu")
VirtualMemory = namedtuple("VirtualMemory", "total percent")

DMIDECODE = """
Handle 0x0040, DMI type 17, 92 bytes
Memory Device
	Size: 16 GB
	Configured Memory Speed: 3200 MT/s

Handle 0x0041, DMI type 17, 92 bytes
Memory Device
	Size: No Module Installed

Handle 0x0042, DMI type 17, 92 bytes
Memory Device
	Size: 16 GB
	Configured Memory Speed: 3000 MT/s
"""


def local_source(system="Linux"):
    with patch("pcdoctor.services.hardware.system_source.platform.system", return_value=system):
        return LocalTelemetrySource(now=lambda: NOW)


# =============================================================================
# Helpers
# =============================================================================

class TestParsing:

    @pytest.mark.parametrize("value,days", [
        ("20251017000000.000000-000", 365),
        ("2026-10-07T00:00:00", 10),
    ])
    def test_driver_dates(self, value, days):
        assert parse_driver_date(value, NOW) == days

    def test_json_date(self):
        # /Date()/ is epoch milliseconds rendered in local time
        assert parse_driver_date("/Date(1760659200000)/", NOW) in (364, 365, 366)

    def test_bad_driver_date(self):
        assert parse_driver_date("yesterday", NOW) is None
        assert parse_driver_date(None, NOW) is None

    def test_future_date_clamped(self):
        assert parse_driver_date("2030-01-01T00:00:00", NOW) == 0

    def test_subprocess_helpers(self):
        assert extract_number("Count : 15") == 15.0
        assert extract_number("") is None
        assert extract_json('{"a": 1}') == {"a": 1}
        assert extract_json("not json") is None
        assert as_list({"a": 1}) == [{"a": 1}]
        assert as_list(None) == []


# =============================================================================
# RAM
# =============================================================================

class TestRam:

    @patch("pcdoctor.services.hardware.ram.detect_modules", return_value=(2, 3200, None))
    @patch("psutil.virtual_memory", return_value=VirtualMemory(32 * 1024 ** 3, 41.5))
    def test_detect_ram(self, _vm, _modules):
        profile = ram.detect_ram()
        assert profile.total_gb == 32.0
        assert profile.used_percent == 41.5
        assert profile.module_count == 2
        assert profile.module_speed_mhz == 3200

    @pytest.mark.parametrize("visible_gb,installed_gb", [(31.8, 32.0), (15.7, 16.0)])
    def test_installed_capacity_beats_visible_total(self, visible_gb, installed_gb):
        # Firmware and iGPU reservations keep the OS total below the installed size
        with patch("psutil.virtual_memory", return_value=VirtualMemory(visible_gb * 1024 ** 3, 50.0)), \
                patch("pcdoctor.services.hardware.ram.detect_modules", return_value=(2, 3200, installed_gb)):
            profile = ram.detect_ram()
        assert profile.total_gb == installed_gb
        assert profile.used_percent == 50.0

    def test_installed_32gb_is_not_critical_for_recording(self, catalog, make_snapshot):
        with patch("psutil.virtual_memory", return_value=VirtualMemory(31.8 * 1024 ** 3, 40.0)), \
                patch("pcdoctor.services.hardware.ram.detect_modules", return_value=(2, 3200, 32.0)):
            profile = ram.detect_ram()
        snap = make_snapshot(ram_gb=profile.total_gb)
        bottlenecks, _ = BottleneckClassifier(catalog).classify(snap, UseCase.RECORDING)
        rec = RecommendationEngine(catalog).recommend(snap, bottlenecks, UseCase.RECORDING, 500)[0]
        assert rec.priority == Priority.LOW

    @patch("pcdoctor.services.hardware.ram.detect_modules", return_value=(None, None, None))
    @patch("psutil.virtual_memory", return_value=VirtualMemory(31.8 * 1024 ** 3, 40.0))
    def test_visible_total_when_smbios_silent(self, _vm, _modules):
        assert ram.detect_ram().total_gb == 31.8

    @patch("pcdoctor.services.hardware.ram.run_command", return_value=DMIDECODE)
    def test_dmidecode_modules(self, _run):
        assert ram._detect_modules_linux() == (2, 3000, 32.0)

    @patch("pcdoctor.services.hardware.ram.run_command",
           return_value="Memory Device\n\tSize: 8192 MB\n\tConfigured Clock Speed: 2666 MT/s\n")
    def test_dmidecode_megabyte_sizes(self, _run):
        assert ram._detect_modules_linux() == (1, 2666, 8.0)

    @patch("pcdoctor.services.hardware.ram.run_powershell",
           return_value='[{"Capacity": 17179869184, "ConfiguredClockSpeed": 3200},'
                        ' {"Capacity": 17179869184, "ConfiguredClockSpeed": 3000}]')
    def test_windows_modules_sum_capacity(self, _run_ps):
        assert ram._detect_modules_windows() == (2, 3000, 32.0)

    @patch("pcdoctor.services.hardware.ram.run_command", return_value=None)
    def test_dmidecode_unavailable(self, _run):
        assert ram._detect_modules_linux() == (None, None, None)

    @patch("pcdoctor.services.hardware.ram.platform.system", return_value="Linux")
    def test_memory_errors_windows_only(self, _system):
        with pytest.raises(DetectionFailedError):
            ram.count_memory_errors(7)

    @patch("pcdoctor.services.hardware.ram.run_powershell", return_value="15")
    @patch("pcdoctor.services.hardware.ram.platform.system", return_value="Windows")
    def test_memory_errors_counted(self, _system, run_ps):
        report = ram.count_memory_errors(14, timeout=5)
        assert report.count == 15
        assert report.window_days == 14
        assert "AddDays(-14)" in run_ps.call_args[0][0]

    @patch("pcdoctor.services.hardware.ram.run_powershell", return_value="0")
    @patch("pcdoctor.services.hardware.ram.platform.system", return_value="Windows")
    def test_only_no_matching_events_counts_as_zero(self, _system, run_ps):
        assert ram.count_memory_errors(7).count == 0
        script = run_ps.call_args[0][0]
        assert "SilentlyContinue" not in script
        assert "-ErrorAction Stop" in script
        assert "NoMatchingEventsFound" in script
        assert "throw" in script

    @patch("pcdoctor.services.hardware.ram.run_powershell", return_value=None)
    @patch("pcdoctor.services.hardware.ram.platform.system", return_value="Windows")
    def test_memory_errors_no_answer(self, _system, _run_ps):
        # Access denied makes PowerShell exit non-zero; that is unavailable, never zero
        with pytest.raises(DetectionFailedError):
            ram.count_memory_errors(7)


# =============================================================================
# LocalTelemetrySource
# =============================================================================

class TestLocalSource:

    @patch("pcdoctor.services.hardware.system_source.psutil")
    def test_cpu(self, mock_psutil):
        mock_psutil.cpu_count.side_effect = lambda logical: 16 if logical else 8
        mock_psutil.cpu_freq.return_value = Freq(3400.0, 800.0, 4600.0)
        cpu = local_source().get_cpu()
        assert (cpu.core_count, cpu.thread_count, cpu.clock_mhz) == (8, 16, 4600)

    @patch("pcdoctor.services.hardware.system_source.psutil")
    def test_cpu_not_reported(self, mock_psutil):
        mock_psutil.cpu_count.return_value = None
        with pytest.raises(DetectionFailedError):
            local_source().get_cpu()

    @patch("pcdoctor.services.hardware.system_source.run_command",
           return_value="NVIDIA GeForce RTX 4070, 12282")
    @patch("pcdoctor.services.hardware.system_source.shutil.which", return_value="/usr/bin/nvidia-smi")
    def test_gpu_from_nvidia_smi(self, _which, _run):
        gpu = local_source().get_gpu()
        assert gpu.name == "NVIDIA GeForce RTX 4070"
        assert gpu.vram_gb == 12.0
        assert gpu.vendor == GPUVendor.NVIDIA

    @patch("pcdoctor.services.hardware.system_source.run_powershell",
           return_value='[{"Name": "Intel(R) UHD Graphics 770", "AdapterRAM": 1073741824},'
                        ' {"Name": "AMD Radeon RX 6600", "AdapterRAM": 4293918720}]')
    @patch("pcdoctor.services.hardware.system_source.shutil.which", return_value=None)
    def test_gpu_prefers_discrete_on_windows(self, _which, _run_ps):
        gpu = local_source("Windows").get_gpu()
        assert gpu.name == "AMD Radeon RX 6600"
        assert gpu.vendor == GPUVendor.AMD

    @patch("pcdoctor.services.hardware.system_source.run_command", return_value=None)
    @patch("pcdoctor.services.hardware.system_source.shutil.which", return_value=None)
    def test_gpu_not_found(self, _which, _run):
        with pytest.raises(DetectionFailedError):
            local_source().get_gpu()

    @pytest.mark.parametrize("media,bus,expected", [
        ("SSD", "NVMe", MediaType.NVME),
        (4, 11, MediaType.SSD),
        ("HDD", "SATA", MediaType.HDD),
        (None, None, MediaType.UNKNOWN),
    ])
    def test_windows_media_type(self, media, bus, expected):
        assert LocalTelemetrySource._media_type_windows(media, bus) == expected

    @patch("pcdoctor.services.hardware.system_source.psutil")
    def test_temperatures_from_sensors(self, mock_psutil):
        mock_psutil.sensors_temperatures.return_value = {
            "nvme": [Temp("Composite", 41.0, 80.0, 85.0)],
            "coretemp": [Temp("Package id 0", 67.0, 80.0, 100.0), Temp("Core 0", None, None, None)],
        }
        readings = local_source().get_temperatures()
        assert readings[0].zone == "coretemp/Package id 0"
        assert [r.celsius for r in readings] == [67.0, 41.0]

    @patch("pcdoctor.services.hardware.system_source.psutil")
    def test_no_sensors(self, mock_psutil):
        mock_psutil.sensors_temperatures.return_value = {}
        with pytest.raises(DetectionFailedError):
            local_source().get_temperatures()

    def test_drivers_windows_only(self):
        with pytest.raises(DetectionFailedError):
            local_source("Linux").get_drivers()

    @patch("pcdoctor.services.hardware.system_source.run_powershell",
           return_value='[{"DeviceName": "NVIDIA GeForce RTX 3060", "DriverDate": "20240101000000.000000-000",'
                        ' "DeviceClass": "DISPLAY"},'
                        ' {"DeviceName": "Realtek PCIe GbE", "DriverDate": null, "DeviceClass": "NET"}]')
    def test_drivers(self, _run_ps):
        drivers = local_source("Windows").get_drivers()
        assert len(drivers) == 1
        assert drivers[0].device_class == DeviceClass.DISPLAY
        assert drivers[0].age_days == (NOW - datetime(2024, 1, 1)).days

    @patch("pcdoctor.services.hardware.system_source.psutil")
    def test_network_adapters_psutil(self, mock_psutil):
        mock_psutil.net_if_stats.return_value = {
            "lo": IfStats(True, 0, 0, 65536),
            "eth0": IfStats(True, 2, 1000, 1500),
            "wlan0": IfStats(False, 0, 0, 1500),
        }
        adapters = local_source().get_network_adapters()
        assert [(a.name, a.link_up) for a in adapters] == [("eth0", True), ("wlan0", False)]
