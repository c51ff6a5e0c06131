from dataclasses import dataclass, field
from typing import Dict


@dataclass
class CoverageMetrics:
    active_signals_count: int = 0
    modelled_confidence: int = 0        # 0-100
    estimated_match_coverage: int = 0   # 0-100


@dataclass
class DerivedStats:
    """Audience size and confidence mix implied by the scale/accuracy dial."""
    derived_audience_size: int
    confidence_high: float
    confidence_medium: float
    confidence_low: float


@dataclass
class TierSummary:
    counts: Dict[str, int] = field(default_factory=dict)
    total_units: int = 0
    avg_score: float = 0.0
