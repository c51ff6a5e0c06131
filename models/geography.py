from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GeoDistrict:
    """Reference geography row, keyed by normalised district code."""
    district: str
    centroid_lat: Optional[float] = None
    centroid_lng: Optional[float] = None
    households: Optional[int] = None
    geometry: Optional[dict] = None   # GeoJSON

    @property
    def has_centroid(self) -> bool:
        return self.centroid_lat is not None and self.centroid_lng is not None

    @property
    def has_households(self) -> bool:
        return self.households is not None and self.households > 0
