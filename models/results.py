from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional


@dataclass
class HouseholdEstimate:
    estimated_households: int = 0
    districts_with_data: int = 0
    districts_fallback: int = 0
    failed_batches: int = 0


@dataclass
class ValidationProviderStats:
    agreeing_districts: int = 0
    provider_segment_label: Optional[str] = None


@dataclass
class ValidatedDistrict:
    district: str
    centroid_lat: float
    centroid_lng: float
    agreement_count: int
    avg_confidence: float
    agreeing_providers: List[str] = field(default_factory=list)


@dataclass
class ValidationTotals:
    districts_included: int = 0
    eligible_districts: int = 0
    contributing_providers_count: int = 0
    confidence_band: str = "Low"   # "Low", "Med", "High"
    avg_agreement: float = 0.0
    estimated_households: int = 0


@dataclass
class ValidationResult:
    included_districts: List[ValidatedDistrict] = field(default_factory=list)
    included_district_ids: List[str] = field(default_factory=list)
    eligible_district_ids: List[str] = field(default_factory=list)
    agreement_by_district: Dict[str, int] = field(default_factory=dict)
    provider_stats: Dict[str, ValidationProviderStats] = field(default_factory=dict)
    max_agreement: int = 1
    totals: ValidationTotals = field(default_factory=ValidationTotals)
    join_missing_count: int = 0
    missing_centroid_count: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ProviderImpactStats:
    provider: str
    display_name: str = ""
    provider_label_for_segments: Dict[str, str] = field(default_factory=dict)
    districts_supporting: int = 0
    incremental_districts: int = 0
    overlap_districts: int = 0
    overlap_pct: float = 0.0
    avg_provider_confidence: float = 0.0


@dataclass
class ExtendedDistrict:
    district: str
    centroid_lat: float
    centroid_lng: float
    agreement_count: int           # Number of supporting providers
    supporting_providers: List[str] = field(default_factory=list)
    avg_confidence: float = 0.0


@dataclass
class ExtensionTotals:
    base_districts: int = 0
    included_districts: int = 0
    estimated_households: int = 0
    avg_confidence: float = 0.0


@dataclass
class ExtensionResult:
    totals: ExtensionTotals = field(default_factory=ExtensionTotals)
    provider_stats: List[ProviderImpactStats] = field(default_factory=list)
    included_districts: List[ExtendedDistrict] = field(default_factory=list)
    included_district_ids: List[str] = field(default_factory=list)
    eligible_districts_count: int = 0
    missing_centroids_count: int = 0

    def to_dict(self) -> dict:
        return asdict(self)
