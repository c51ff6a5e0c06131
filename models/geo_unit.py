from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class SignalDriver:
    signal_type: str
    weight: float
    contribution: float
    inferred: bool = False

    def to_dict(self) -> dict:
        return {
            "signal_type": self.signal_type,
            "weight": self.weight,
            "contribution": self.contribution,
            "inferred": self.inferred,
        }


@dataclass(frozen=True)
class ScoringDrivers:
    """Per-signal breakdown behind a geo unit score."""
    signals: List[SignalDriver] = field(default_factory=list)
    total_score: float = 0.0
    spatial_bias_applied: Optional[str] = None

    def to_dict(self) -> dict:
        out = {
            "signals": [s.to_dict() for s in self.signals],
            "total_score": self.total_score,
        }
        if self.spatial_bias_applied is not None:
            out["spatial_bias_applied"] = self.spatial_bias_applied
        return out


@dataclass(frozen=True)
class ScoringResult:
    score: int                     # 0-100
    confidence_tier: str           # "high", "medium", "low", "discarded"
    drivers: ScoringDrivers


@dataclass
class GeoUnit:
    geo_id: str
    geo_type: str = "h3"
    score: int = 0
    confidence_tier: str = "low"
    drivers: ScoringDrivers = field(default_factory=ScoringDrivers)
    geometry: Optional[dict] = None
    centroid_lat: Optional[float] = None
    centroid_lng: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "geo_id": self.geo_id,
            "geo_type": self.geo_type,
            "score": self.score,
            "confidence_tier": self.confidence_tier,
            "drivers": self.drivers.to_dict(),
            "geometry": self.geometry,
        }
