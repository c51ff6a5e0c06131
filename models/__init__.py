from models.signal import DistrictSignal
from models.geography import GeoDistrict
from models.settings import ConstructionSettings, SignalConfig, SignalDefinition
from models.geo_unit import GeoUnit, ScoringDrivers, ScoringResult, SignalDriver
from models.results import (
    ExtendedDistrict, ExtensionResult, ExtensionTotals, HouseholdEstimate,
    ProviderImpactStats, ValidatedDistrict, ValidationProviderStats,
    ValidationResult, ValidationTotals,
)
from models.profile import CoverageMetrics, DerivedStats, TierSummary
from models.segment import (
    AvailableSegment, ExtensionSuggestion, ProviderSegmentAlias, SegmentLibraryEntry,
)
