from dataclasses import dataclass
from typing import Optional

from config.defaults import UNSCORED_SIGNAL_CONFIDENCE


@dataclass(frozen=True)
class DistrictSignal:
    """One provider's claim about one postcode district for one segment."""
    segment_key: str
    provider: str
    district: str                    # Raw code as supplied by the provider
    sectors_count: int
    has_score: bool = False
    district_score_norm: Optional[float] = None   # 0-1, only meaningful if has_score
    provider_segment_label: Optional[str] = None

    @property
    def has_presence(self) -> bool:
        return self.sectors_count > 0

    @property
    def confidence(self) -> float:
        """Confidence recorded for a supporting row (0.5 when unscored)."""
        if self.has_score:
            return self.district_score_norm if self.district_score_norm is not None else 0.0
        return UNSCORED_SIGNAL_CONFIDENCE

    def passes(self, threshold: float) -> bool:
        """Presence plus, for scored rows, a normalised score >= threshold."""
        if not self.has_presence:
            return False
        if not self.has_score:
            return True
        score = self.district_score_norm if self.district_score_norm is not None else 0.0
        return score >= threshold
