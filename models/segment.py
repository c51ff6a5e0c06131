from dataclasses import asdict, dataclass, field
from typing import List, Optional


@dataclass
class SegmentLibraryEntry:
    """One segment_library row. A segment may appear once per provider."""
    segment_key: str
    label: str
    provider: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    related_segments: List[str] = field(default_factory=list)
    adjacency_score: Optional[float] = None
    rationale: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_dict(cls, raw: dict) -> "SegmentLibraryEntry":
        if not raw.get("segment_key"):
            raise ValueError(f"Segment library entry without segment_key: {raw}")
        adjacency = raw.get("adjacency") or {}
        score = adjacency.get("adjacency_score")
        return cls(
            segment_key=raw["segment_key"],
            label=raw.get("label") or raw["segment_key"],
            provider=raw.get("provider"),
            description=raw.get("description"),
            tags=list(raw.get("tags") or []),
            related_segments=list(adjacency.get("related_segments") or []),
            adjacency_score=float(score) if score is not None else None,
            rationale=adjacency.get("evidence") or adjacency.get("why_suggested") or adjacency.get("rationale"),
            is_active=bool(raw.get("is_active", True)),
        )


@dataclass(frozen=True)
class ProviderSegmentAlias:
    canonical_key: str
    provider: str
    provider_segment_label: str


@dataclass
class AvailableSegment:
    segment_key: str
    districts: int
    providers: int


@dataclass
class ExtensionSuggestion:
    segment_key: str
    label: str
    adjacency_score: float
    match_percent: int                 # 0-100
    rationale: str
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    providers: List[str] = field(default_factory=list)
    districts_available_count: int = 0
    providers_available_count: int = 0

    def to_dict(self) -> dict:
        return asdict(self)
