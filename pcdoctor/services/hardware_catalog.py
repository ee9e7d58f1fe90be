"""
Hardware Catalog Service.

Loads the versioned lookup tables in data/hardware_catalog.yaml: GPU tier
patterns, NVENC generations, CPU/GPU wattage and the static upgrade parts
with their price bands. Tables are ordered lists of pattern -> value pairs;
the first case-insensitive substring match wins.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from pcdoctor.errors import HardwareCatalogError
from pcdoctor.schemas.hardware import GPUProfile, GPUVendor
from pcdoctor.utils.logger import log


class GPUTier(Enum):
    HIGH_END = "high_end"
    MID_RANGE = "mid_range"
    ENTRY_LEVEL = "entry_level"
    BUDGET = "budget"
    INTEGRATED = "integrated"
    UNKNOWN = "unknown"


class EncoderQuality(Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    DEGRADED = "degraded"   # no hardware encoder: CPU encoding required
    UNKNOWN = "unknown"


# =============================================================================
# Data Classes for YAML Schema
# =============================================================================

@dataclass(frozen=True)
class GPUTierEntry:
    pattern: str
    tier: GPUTier
    vendor: str = "other"
    watts: Optional[int] = None


@dataclass(frozen=True)
class EncoderGeneration:
    pattern: str
    quality: EncoderQuality
    encoder: str


@dataclass(frozen=True)
class EncoderSupport:
    """Hardware encoder capability of the detected GPU."""
    quality: EncoderQuality
    encoder: str

    @property
    def hardware_encoding(self) -> bool:
        return self.quality in (EncoderQuality.EXCELLENT, EncoderQuality.GOOD)


@dataclass(frozen=True)
class PricedPart:
    label: str
    cost: int
    notes: str = ""
    price_high: Optional[int] = None
    example_parts: Optional[str] = None


@dataclass(frozen=True)
class PSUTier:
    max_watts: int
    label: str
    cost: int


@dataclass
class HardwareCatalog:
    version: int
    gpu_tiers: List[GPUTierEntry]
    gpu_tier_scores: Dict[GPUTier, int]
    gpu_tier_default_watts: Dict[GPUTier, int]
    nvenc_generations: List[EncoderGeneration]
    cpu_watts: List[Dict[str, Optional[int]]]
    gpu_upgrade_tiers: List[PricedPart]
    gpu_best_pick: PricedPart
    storage_options: List[PricedPart]
    psu_tiers: List[PSUTier]
    cooling_options: List[PricedPart]
    cooling_monitor_option: PricedPart
    source: Optional[Path] = field(default=None, compare=False)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def match_gpu(self, gpu_name: str) -> Optional[GPUTierEntry]:
        """Return the first tier entry whose pattern occurs in gpu_name."""
        lowered = (gpu_name or "").lower()
        for entry in self.gpu_tiers:
            if entry.pattern.lower() in lowered:
                return entry
        return None

    def gpu_tier(self, gpu_name: str) -> GPUTier:
        entry = self.match_gpu(gpu_name)
        return entry.tier if entry else GPUTier.UNKNOWN

    def gpu_tier_score(self, tier: GPUTier) -> int:
        return self.gpu_tier_scores.get(tier, self.gpu_tier_scores[GPUTier.UNKNOWN])

    def gpu_watts(self, gpu_name: str) -> int:
        entry = self.match_gpu(gpu_name)
        if entry is None:
            return self.gpu_tier_default_watts[GPUTier.UNKNOWN]
        if entry.watts is not None:
            return entry.watts
        return self.gpu_tier_default_watts.get(entry.tier, self.gpu_tier_default_watts[GPUTier.UNKNOWN])

    def cpu_watts_for(self, core_count: int) -> int:
        for row in self.cpu_watts:
            max_cores = row.get("max_cores")
            if max_cores is None or core_count <= max_cores:
                return int(row["watts"])
        return int(self.cpu_watts[-1]["watts"])

    def encoder_support(self, gpu: GPUProfile) -> EncoderSupport:
        """
        Classify the GPU's hardware encoder.

        NVIDIA: NVENC, excellent/good by generation name match.
        AMD: AMF/VCE, good.
        Anything else: no usable hardware encoder, CPU encoding required.
        """
        if gpu.vendor == GPUVendor.NVIDIA:
            lowered = gpu.name.lower()
            for gen in self.nvenc_generations:
                if gen.pattern.lower() in lowered:
                    return EncoderSupport(gen.quality, gen.encoder)
            return EncoderSupport(EncoderQuality.GOOD, "NVENC")
        if gpu.vendor == GPUVendor.AMD:
            return EncoderSupport(EncoderQuality.GOOD, "AMD AMF")
        return EncoderSupport(EncoderQuality.DEGRADED, "CPU encoding (x264)")

    # -------------------------------------------------------------------------
    # Parsing
    # -------------------------------------------------------------------------

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], source: Optional[Path] = None) -> "HardwareCatalog":
        """Build a catalog from parsed YAML. Raises HardwareCatalogError on bad shape."""
        try:
            tier_scores = {GPUTier(k): int(v) for k, v in raw["gpu_tier_scores"].items()}
            default_watts = {GPUTier(k): int(v) for k, v in raw["gpu_tier_default_watts"].items()}
            if GPUTier.UNKNOWN not in tier_scores or GPUTier.UNKNOWN not in default_watts:
                raise HardwareCatalogError("catalog must define values for the 'unknown' GPU tier")

            return cls(
                version=int(raw.get("version", 1)),
                gpu_tiers=[
                    GPUTierEntry(
                        pattern=str(e["pattern"]),
                        tier=GPUTier(e["tier"]),
                        vendor=e.get("vendor", "other"),
                        watts=e.get("watts"),
                    )
                    for e in raw["gpu_tiers"]
                ],
                gpu_tier_scores=tier_scores,
                gpu_tier_default_watts=default_watts,
                nvenc_generations=[
                    EncoderGeneration(str(e["pattern"]), EncoderQuality(e["quality"]), e["encoder"])
                    for e in raw.get("nvenc_generations", [])
                ],
                cpu_watts=list(raw["cpu_watts"]),
                gpu_upgrade_tiers=[
                    PricedPart(
                        label=e["label"],
                        cost=int(e["price_low"]),
                        notes=e.get("notes", ""),
                        price_high=e.get("price_high"),
                        example_parts=e.get("example_parts"),
                    )
                    for e in raw["gpu_upgrade_tiers"]
                ],
                gpu_best_pick=PricedPart(
                    label=raw["gpu_best_pick"]["label"],
                    cost=int(raw["gpu_best_pick"]["price_low"]),
                    notes=raw["gpu_best_pick"].get("notes", ""),
                    price_high=raw["gpu_best_pick"].get("price_high"),
                ),
                storage_options=[cls._part(e) for e in raw["storage_options"]],
                psu_tiers=sorted(
                    (PSUTier(int(e["max_watts"]), e["label"], int(e["cost"])) for e in raw["psu_tiers"]),
                    key=lambda t: t.max_watts,
                ),
                cooling_options=[cls._part(e) for e in raw["cooling_options"]],
                cooling_monitor_option=cls._part(raw["cooling_monitor_option"]),
                source=source,
            )
        except HardwareCatalogError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise HardwareCatalogError(f"Malformed hardware catalog: {e}") from e

    @staticmethod
    def _part(entry: Dict[str, Any]) -> PricedPart:
        return PricedPart(label=entry["label"], cost=int(entry["cost"]), notes=entry.get("notes", ""))


DEFAULT_CATALOG_PATH = Path(__file__).parent.parent / "data" / "hardware_catalog.yaml"


def load_catalog(path: Optional[Path] = None) -> HardwareCatalog:
    """
    Load the hardware catalog from YAML.

    Raises:
        HardwareCatalogError: If the file is missing, unparsable or malformed
    """
    path = Path(path or DEFAULT_CATALOG_PATH)
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        log.error(f"Hardware catalog not found: {path}")
        raise HardwareCatalogError(f"Hardware catalog not found: {path}") from e
    except yaml.YAMLError as e:
        log.error(f"Failed to parse hardware catalog: {e}")
        raise HardwareCatalogError(f"Failed to parse hardware catalog: {e}") from e

    catalog = HardwareCatalog.from_dict(raw, source=path)
    log.debug(f"Loaded hardware catalog v{catalog.version} ({len(catalog.gpu_tiers)} GPU patterns)")
    return catalog


# =============================================================================
# Singleton Access
# =============================================================================

_default_catalog: Optional[HardwareCatalog] = None


def get_hardware_catalog() -> HardwareCatalog:
    """Return the default catalog, loading it on first call."""
    global _default_catalog

    if _default_catalog is None:
        _default_catalog = load_catalog()

    return _default_catalog


def reload_hardware_catalog(path: Optional[Path] = None) -> HardwareCatalog:
    """Reload the default catalog from disk."""
    global _default_catalog

    _default_catalog = load_catalog(path)
    return _default_catalog
