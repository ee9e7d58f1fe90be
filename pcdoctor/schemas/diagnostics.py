"""
Diagnostic result schemas: use cases, bottlenecks, scores and upgrade recommendations.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Tuple

from pcdoctor.errors import InvalidInputError
from pcdoctor.schemas.hardware import SystemSnapshot

# --- Invocation ---

class UseCase(Enum):
    GAMING = "gaming"
    RECORDING = "recording"
    BOTH = "both"

    @property
    def requires_recording(self) -> bool:
        return self in (UseCase.RECORDING, UseCase.BOTH)

    @property
    def requires_gaming(self) -> bool:
        return self in (UseCase.GAMING, UseCase.BOTH)

    @classmethod
    def parse(cls, value: Any) -> "UseCase":
        """Accept a UseCase or its name/value ("Gaming", "recording", ...)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if member.value == key:
                    return member
        raise InvalidInputError(
            f"Unknown use case {value!r}; expected one of {[m.value for m in cls]}"
        )


# --- Ordering primitives ---

class Severity(IntEnum):
    """Ordered severity; comparisons and max() follow rank."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name


# Recommendation priority uses the same ordered scale
Priority = Severity


class Component(Enum):
    CPU = "cpu"
    RAM = "ram"
    GPU = "gpu"
    STORAGE = "storage"


class Category(Enum):
    RAM = "ram"
    GPU = "gpu"
    STORAGE = "storage"
    PSU = "psu"
    COOLING = "cooling"


COMPONENT_ORDER = {c: i for i, c in enumerate(Component)}
CATEGORY_ORDER = tuple(Category)

# --- Classifier output ---

@dataclass(frozen=True)
class Bottleneck:
    component: Component
    severity: Severity
    issue: str
    current_spec: str
    recommendation: str


@dataclass(frozen=True)
class PerformanceScores:
    """Linear heuristic scores in [0, 100]; used to rank, not to predict FPS."""
    gaming: float
    recording: float
    multitasking: float
    # Components that were unavailable and contributed nothing to the scores
    missing_inputs: Tuple[str, ...] = ()


# --- Recommendation output ---

WITHIN_BUDGET = "within budget"
OVER_BUDGET = "over budget"


@dataclass(frozen=True)
class UpgradeOption:
    label: str
    estimated_cost_usd: int
    notes: str = ""
    within_budget: Optional[bool] = None  # None until tagged against a budget

    @property
    def budget_tag(self) -> Optional[str]:
        if self.within_budget is None:
            return None
        return WITHIN_BUDGET if self.within_budget else OVER_BUDGET


@dataclass(frozen=True)
class UpgradeRecommendation:
    category: Category
    priority: Priority
    reason: str
    options: Tuple[UpgradeOption, ...] = ()
    critical_warning: Optional[str] = None
    # Set when the category's telemetry was unavailable
    status_unknown: bool = False
    best_pick: Optional[UpgradeOption] = None
    details: Dict[str, Any] = field(default_factory=dict)


# --- Full report ---

@dataclass
class DiagnosticReport:
    """Everything handed to a ReportSink for one diagnostic run."""
    snapshot: SystemSnapshot
    bottlenecks: List[Bottleneck]
    scores: PerformanceScores
    recommendations: List[UpgradeRecommendation]
    use_case: UseCase
    budget_usd: int
    target_fps: int
    target_bitrate_kbps: Optional[int] = None
    warnings: List[str] = field(default_factory=list)
    generated_at: Optional[str] = None

    def recommendation_for(self, category: Category) -> Optional[UpgradeRecommendation]:
        for rec in self.recommendations:
            if rec.category == category:
                return rec
        return None
