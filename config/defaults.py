"""Default configuration constants for the Audience Construction engine."""

# Construction modes
CONSTRUCTION_MODES = ["validation", "extension"]
AGREEMENT_MODES = ["threshold", "majority", "unanimous"]
DEFAULT_AGREEMENT_MODE = "threshold"
DEFAULT_MIN_AGREEMENT = 1

# Anchor / base universe
ANCHOR_PROVIDER = "CCS"
BASE_UNIVERSE_THRESHOLD = 0.5        # Fixed eligibility threshold for the base universe
DEFAULT_CONFIDENCE_THRESHOLD = 0.5   # Extension support threshold (caller-adjustable)
UNSCORED_SIGNAL_CONFIDENCE = 0.5     # Confidence recorded for presence-only rows

# Confidence band cut-offs (min_agreement / provider_count)
CONFIDENCE_BAND_HIGH = 0.7
CONFIDENCE_BAND_MED = 0.4

# Household estimation
HOUSEHOLD_FALLBACK = 2500            # Households assumed for a district with no data

# Repository IO
PAGE_SIZE = 1000                     # Backend per-request row cap
LOOKUP_BATCH_SIZE = 500              # Keys per IN (...) lookup

# Geo unit scoring
SIGNAL_SCALE = 50                    # base_weight 0-1 => contribution 0-50
INFERRED_SIGNAL_FACTOR = 0.4
VALIDATION_MODE_FACTOR = 0.9
PLANNING_SUBURBAN_BOOST = 1.3
AFFLUENCE_BOOST = 1.1
MAX_SCORE = 100

# Geo unit spatial bias split (hash % 100)
URBAN_CUTOFF = 30                    # 0-29 urban
SUBURBAN_CUTOFF = 80                 # 30-79 suburban, 80-99 rural

# Spatial match multipliers
SPATIAL_MATCH_EXACT = 1.0
SPATIAL_MATCH_URBAN_SUBURBAN = 0.7
SPATIAL_MATCH_RURAL_SUBURBAN = 0.8
SPATIAL_MATCH_URBAN_RURAL = 0.5

# Confidence tier thresholds: base - (100 - scale_accuracy) * slope
TIER_HIGH_BASE = 70
TIER_HIGH_SLOPE = 0.3
TIER_MEDIUM_BASE = 40
TIER_MEDIUM_SLOPE = 0.2

CONFIDENCE_TIERS = ["high", "medium", "low", "discarded"]
SPATIAL_BIASES = ["urban", "suburban", "rural"]

# Geo unit generation
DEFAULT_GEO_UNIT_COUNT = 200
GEO_UNIT_JITTER_DEG = 0.4
GEO_UNIT_HALF_SIZE_DEG = 0.01
UK_POPULATION_CENTRES = [
    ("London", 51.5074, -0.1278),
    ("Manchester", 53.4808, -2.2426),
    ("Birmingham", 52.4862, -1.8904),
    ("Leeds", 53.8008, -1.5491),
    ("Cardiff", 51.4816, -3.1791),
    ("Nottingham", 52.9548, -1.1581),
    ("Southampton", 50.9097, -1.4044),
    ("Liverpool", 53.4084, -2.9916),
    ("Edinburgh", 55.9533, -3.1883),
    ("Newcastle", 54.9783, -1.6178),
]

# Profile stats
DEFAULT_BASE_AUDIENCE_SIZE = 5_000_000

# Extension segment discovery
MIN_SEGMENT_DISTRICTS = 200          # Districts a segment needs to be offered as an extension
DEFAULT_ADJACENCY_SCORE = 0.5
ADJACENCY_TIE_TOLERANCE = 0.001
RANK_MATCH_PERCENTAGES = [92, 86, 79, 73, 67, 61, 55, 49]
RANK_MATCH_STEP = 6
RANK_MATCH_FLOOR = 40
