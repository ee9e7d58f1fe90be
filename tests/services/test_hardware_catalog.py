"""
Unit tests for the data-driven hardware catalog.
"""

import pytest
import yaml

from pcdoctor.errors import HardwareCatalogError
from pcdoctor.schemas.hardware import GPUProfile, GPUVendor
from pcdoctor.services.hardware_catalog import (
    DEFAULT_CATALOG_PATH,
    EncoderQuality,
    GPUTier,
    HardwareCatalog,
    load_catalog,
)


class TestGPUTierLookup:

    @pytest.mark.parametrize("name,tier", [
        ("NVIDIA GeForce RTX 4090", GPUTier.HIGH_END),
        ("RTX 4070", GPUTier.HIGH_END),
        ("NVIDIA GeForce RTX 4060 Ti", GPUTier.MID_RANGE),
        ("AMD Radeon RX 6600 XT", GPUTier.MID_RANGE),
        ("NVIDIA GeForce GTX 1660 SUPER", GPUTier.ENTRY_LEVEL),
        ("NVIDIA GeForce GTX 1650", GPUTier.BUDGET),
        ("AMD Radeon RX 5500 XT", GPUTier.BUDGET),
        ("Intel(R) UHD Graphics 630", GPUTier.INTEGRATED),
        ("AMD Radeon(TM) Graphics", GPUTier.INTEGRATED),
        ("Matrox G200eR2", GPUTier.UNKNOWN),
        ("", GPUTier.UNKNOWN),
    ])
    def test_tier_by_pattern(self, catalog, name, tier):
        assert catalog.gpu_tier(name) == tier

    def test_match_is_case_insensitive(self, catalog):
        assert catalog.gpu_tier("nvidia geforce rtx 3080") == GPUTier.HIGH_END

    def test_first_match_wins(self, catalog):
        # "RX 5500" must not be read as "RX 550"
        assert catalog.match_gpu("Radeon RX 5500").pattern == "RX 5500"

    def test_tier_scores(self, catalog):
        assert catalog.gpu_tier_score(GPUTier.HIGH_END) == 80
        assert catalog.gpu_tier_score(GPUTier.MID_RANGE) == 60
        assert catalog.gpu_tier_score(GPUTier.ENTRY_LEVEL) == 40
        assert catalog.gpu_tier_score(GPUTier.BUDGET) == 20
        assert catalog.gpu_tier_score(GPUTier.UNKNOWN) == 10

    def test_gpu_watts(self, catalog):
        assert catalog.gpu_watts("RTX 4070") == 220
        assert catalog.gpu_watts("Some Future GPU") == 200

    @pytest.mark.parametrize("cores,watts", [(4, 65), (6, 105), (8, 105), (12, 125), (24, 170)])
    def test_cpu_watts(self, catalog, cores, watts):
        assert catalog.cpu_watts_for(cores) == watts


class TestEncoderSupport:

    def test_rtx_40_excellent(self, catalog):
        support = catalog.encoder_support(GPUProfile("NVIDIA GeForce RTX 4070", 12.0, GPUVendor.NVIDIA))
        assert support.quality == EncoderQuality.EXCELLENT
        assert support.hardware_encoding

    def test_gtx_10_good(self, catalog):
        support = catalog.encoder_support(GPUProfile("NVIDIA GeForce GTX 1060", 6.0, GPUVendor.NVIDIA))
        assert support.quality == EncoderQuality.GOOD

    def test_unmatched_nvidia_is_good(self, catalog):
        support = catalog.encoder_support(GPUProfile("NVIDIA Quadro P2000", 5.0, GPUVendor.NVIDIA))
        assert support.quality == EncoderQuality.GOOD

    def test_amd_good(self, catalog):
        support = catalog.encoder_support(GPUProfile("AMD Radeon RX 7800 XT", 16.0, GPUVendor.AMD))
        assert support.quality == EncoderQuality.GOOD
        assert "AMF" in support.encoder

    @pytest.mark.parametrize("vendor", [GPUVendor.INTEL, GPUVendor.OTHER])
    def test_other_vendors_degraded(self, catalog, vendor):
        support = catalog.encoder_support(GPUProfile("Some Adapter", 1.0, vendor))
        assert support.quality == EncoderQuality.DEGRADED
        assert not support.hardware_encoding


class TestCatalogLoading:

    def test_default_catalog_shape(self, catalog):
        assert catalog.version >= 1
        assert len(catalog.gpu_upgrade_tiers) == 4
        assert len(catalog.storage_options) == 3
        assert [t.max_watts for t in catalog.psu_tiers] == sorted(t.max_watts for t in catalog.psu_tiers)
        assert len(catalog.psu_tiers) == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(HardwareCatalogError, match="not found"):
            load_catalog(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("gpu_tiers: [unclosed", encoding="utf-8")
        with pytest.raises(HardwareCatalogError):
            load_catalog(path)

    def test_missing_section(self):
        with open(DEFAULT_CATALOG_PATH, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
        del raw["psu_tiers"]
        with pytest.raises(HardwareCatalogError, match="Malformed"):
            HardwareCatalog.from_dict(raw)

    def test_unknown_tier_name(self):
        with open(DEFAULT_CATALOG_PATH, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
        raw["gpu_tiers"][0]["tier"] = "legendary"
        with pytest.raises(HardwareCatalogError):
            HardwareCatalog.from_dict(raw)
