"""Base-universe eligibility shared by the Validation and Extension engines."""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set

from config.defaults import BASE_UNIVERSE_THRESHOLD
from engine.normalizer import normalize_district
from models.signal import DistrictSignal


def group_by_provider(signals: Iterable[DistrictSignal]) -> Dict[str, List[DistrictSignal]]:
    grouped: Dict[str, List[DistrictSignal]] = defaultdict(list)
    for s in signals:
        grouped[s.provider].append(s)
    return dict(grouped)


def index_by_district(signals: Iterable[DistrictSignal]) -> Dict[str, DistrictSignal]:
    """Normalised district -> row. Later rows for the same district win."""
    return {normalize_district(s.district): s for s in signals}


def compute_eligible_universe(
    signals: Iterable[DistrictSignal],
    base_provider: str,
    segment_key: Optional[str] = None,
    threshold: float = BASE_UNIVERSE_THRESHOLD,
) -> List[str]:
    """Normalised districts where the base provider passes presence + threshold.

    Order follows first appearance in ``signals`` so results are reproducible.
    """
    eligible: Dict[str, None] = {}
    for s in signals:
        if s.provider != base_provider:
            continue
        if segment_key is not None and s.segment_key != segment_key:
            continue
        if s.passes(threshold):
            d = normalize_district(s.district)
            if d:
                eligible[d] = None
    return list(eligible)


def distinct_districts(signals: Iterable[DistrictSignal]) -> Set[str]:
    return {d for d in (normalize_district(s.district) for s in signals) if d}
