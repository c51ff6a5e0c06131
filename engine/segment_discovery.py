"""Extension segment discovery: which segments have data, and which to suggest for an anchor.

Suggestions come from the anchor's adjacency list in the segment library and
are kept only when the signal rows cover enough districts to be worth
extending into.
"""

from functools import cmp_to_key
from typing import Dict, Iterable, List, Optional, Set, Tuple

from loguru import logger

from config.defaults import (
    ADJACENCY_TIE_TOLERANCE, DEFAULT_ADJACENCY_SCORE, MIN_SEGMENT_DISTRICTS,
    RANK_MATCH_FLOOR, RANK_MATCH_PERCENTAGES, RANK_MATCH_STEP,
)
from engine.normalizer import normalize_district
from engine.scoring_engine import round_half_up
from models.segment import (
    AvailableSegment, ExtensionSuggestion, ProviderSegmentAlias, SegmentLibraryEntry,
)
from models.signal import DistrictSignal


def segment_coverage(signals: Iterable[DistrictSignal]) -> Dict[str, Tuple[Set[str], Set[str]]]:
    """segment_key -> (distinct normalised districts, distinct providers)."""
    coverage: Dict[str, Tuple[Set[str], Set[str]]] = {}
    for s in signals:
        if not s.segment_key:
            continue
        districts, providers = coverage.setdefault(s.segment_key, (set(), set()))
        district = normalize_district(s.district)
        if district:
            districts.add(district)
        if s.provider:
            providers.add(s.provider)
    return coverage


def available_segments(
    signals: Iterable[DistrictSignal],
    min_districts: int = MIN_SEGMENT_DISTRICTS,
) -> List[AvailableSegment]:
    """Segments covering at least ``min_districts`` districts, widest first."""
    available = [
        AvailableSegment(key, len(districts), len(providers))
        for key, (districts, providers) in segment_coverage(signals).items()
        if len(districts) >= min_districts
    ]
    available.sort(key=lambda a: (-a.districts, a.segment_key))
    return available


def available_segment_keys(
    signals: Iterable[DistrictSignal],
    min_districts: int = MIN_SEGMENT_DISTRICTS,
) -> List[str]:
    return sorted(a.segment_key for a in available_segments(signals, min_districts))


def match_percent(adjacency_score: float, rank: int) -> int:
    """Adjacency as a percentage; scores outside (0, 1] fall back to a rank-based value."""
    if 0 < adjacency_score <= 1:
        return round_half_up(adjacency_score * 100)
    if rank < len(RANK_MATCH_PERCENTAGES):
        return RANK_MATCH_PERCENTAGES[rank]
    return max(RANK_MATCH_FLOOR, RANK_MATCH_PERCENTAGES[0] - rank * RANK_MATCH_STEP)


def _matches_filters(
    entry: SegmentLibraryEntry,
    q: Optional[str],
    tags: Optional[List[str]],
    provider: Optional[str],
) -> bool:
    if q:
        needle = q.lower()
        haystacks = [entry.label or "", entry.description or ""]
        if not any(needle in h.lower() for h in haystacks):
            return False
    if tags and not set(tags) <= set(entry.tags):
        return False
    if provider and entry.provider != provider:
        return False
    return True


def _compare_suggestions(a: ExtensionSuggestion, b: ExtensionSuggestion) -> int:
    # Scores within the tolerance count as tied and fall through to the label.
    if abs(a.adjacency_score - b.adjacency_score) > ADJACENCY_TIE_TOLERANCE:
        return -1 if a.adjacency_score > b.adjacency_score else 1
    if a.label == b.label:
        return 0
    return -1 if a.label < b.label else 1


def get_extension_suggestions(
    anchor_key: str,
    library: List[SegmentLibraryEntry],
    signals: List[DistrictSignal],
    q: Optional[str] = None,
    tags: Optional[List[str]] = None,
    provider: Optional[str] = None,
    aliases: Optional[List[ProviderSegmentAlias]] = None,
    min_districts: int = MIN_SEGMENT_DISTRICTS,
) -> List[ExtensionSuggestion]:
    """Segments adjacent to the anchor that are backed by enough signal data.

    Sorted by adjacency score descending, then label ascending.
    """
    active = [e for e in library if e.is_active]
    anchor = next((e for e in active if e.segment_key == anchor_key), None)
    if anchor is None or not anchor.related_segments:
        logger.debug("No adjacency recorded for anchor {}", anchor_key)
        return []

    related = set(anchor.related_segments)
    rows = [
        e for e in active
        if e.segment_key in related and _matches_filters(e, q, tags, provider)
    ]
    if not rows:
        return []

    # Step 1: collapse per-provider library rows into one candidate per segment
    first_row: Dict[str, SegmentLibraryEntry] = {}
    providers_by_segment: Dict[str, List[str]] = {}
    for e in rows:
        first_row.setdefault(e.segment_key, e)
        names = providers_by_segment.setdefault(e.segment_key, [])
        if e.provider and e.provider not in names:
            names.append(e.provider)
    for alias in aliases or []:
        names = providers_by_segment.get(alias.canonical_key)
        if names is not None and alias.provider not in names:
            names.append(alias.provider)

    # Step 2: keep only data-backed segments
    coverage = segment_coverage(signals)
    candidates = [
        e for e in first_row.values()
        if len(coverage.get(e.segment_key, (set(), set()))[0]) >= min_districts
    ]

    # Step 3: score; rank is the candidate's position before sorting
    suggestions = []
    for rank, e in enumerate(candidates):
        score = e.adjacency_score or DEFAULT_ADJACENCY_SCORE
        percent = match_percent(score, rank)
        districts, segment_providers = coverage[e.segment_key]
        suggestions.append(ExtensionSuggestion(
            segment_key=e.segment_key,
            label=e.label,
            adjacency_score=score,
            match_percent=percent,
            rationale=e.rationale or (
                f'Behaviourally adjacent to "{anchor_key}" with a {percent}% match score; '
                f"extends the anchor's reach into similar households."
            ),
            description=e.description,
            tags=list(e.tags),
            providers=providers_by_segment[e.segment_key],
            districts_available_count=len(districts),
            providers_available_count=len(segment_providers),
        ))

    suggestions.sort(key=cmp_to_key(_compare_suggestions))
    logger.debug(
        "Anchor {}: {} related segments, {} with >= {} districts",
        anchor_key, len(first_row), len(suggestions), min_districts,
    )
    return suggestions


def suggest_extensions(
    repository,
    anchor_key: str,
    q: Optional[str] = None,
    tags: Optional[List[str]] = None,
    provider: Optional[str] = None,
    min_districts: int = MIN_SEGMENT_DISTRICTS,
    rule_config: Optional[dict] = None,
) -> List[ExtensionSuggestion]:
    """Read the library, aliases and the related segments' rows, then suggest."""
    cfg = rule_config or {}
    library = repository.get_segment_library()
    anchor = next((e for e in library if e.is_active and e.segment_key == anchor_key), None)
    if anchor is None or not anchor.related_segments:
        return []

    signals = repository.fetch_signals(anchor.related_segments, page_size=cfg.get("page_size"))
    suggestions = get_extension_suggestions(
        anchor_key, library, signals,
        q=q, tags=tags, provider=provider,
        aliases=repository.get_segment_aliases(),
        min_districts=min_districts,
    )
    logger.info("Anchor {}: {} extension suggestions", anchor_key, len(suggestions))
    return suggestions
