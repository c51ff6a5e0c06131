from dataclasses import dataclass, field
from typing import Dict, List, Optional

from config.defaults import (
    AGREEMENT_MODES, CONSTRUCTION_MODES, DEFAULT_AGREEMENT_MODE,
    DEFAULT_MIN_AGREEMENT, SPATIAL_BIASES,
)


@dataclass(frozen=True)
class SignalConfig:
    enabled: bool = False
    base_weight: float = 0.0           # 0-1
    confidence: float = 0.0            # 0-1
    spatial_bias: Optional[str] = None  # "urban", "suburban", "rural"

    @classmethod
    def from_dict(cls, signal_id: str, raw: dict) -> "SignalConfig":
        bias = raw.get("spatial_bias")
        if bias is not None and bias not in SPATIAL_BIASES:
            raise ValueError(f"Signal '{signal_id}': unknown spatial_bias '{bias}'")
        return cls(
            enabled=bool(raw.get("enabled", False)),
            base_weight=float(raw.get("base_weight", 0.0)),
            confidence=float(raw.get("confidence", 0.0)),
            spatial_bias=bias,
        )

    def to_dict(self) -> dict:
        out = {
            "enabled": self.enabled,
            "base_weight": self.base_weight,
            "confidence": self.confidence,
        }
        if self.spatial_bias is not None:
            out["spatial_bias"] = self.spatial_bias
        return out


@dataclass
class ConstructionSettings:
    """Per-audience construction configuration. Read-only to the engines."""
    construction_mode: str  # "validation" or "extension"
    active_signals: Dict[str, SignalConfig] = field(default_factory=dict)
    validation_min_agreement: int = DEFAULT_MIN_AGREEMENT
    validation_agreement_mode: str = DEFAULT_AGREEMENT_MODE  # "threshold", "majority", "unanimous"
    audience_intent: Optional[str] = None

    def __post_init__(self):
        if self.construction_mode not in CONSTRUCTION_MODES:
            raise ValueError(
                f"Unknown construction_mode '{self.construction_mode}'. "
                f"Expected one of: {CONSTRUCTION_MODES}"
            )
        if self.validation_agreement_mode not in AGREEMENT_MODES:
            raise ValueError(
                f"Unknown validation_agreement_mode '{self.validation_agreement_mode}'. "
                f"Expected one of: {AGREEMENT_MODES}"
            )

    @property
    def enabled_signals(self) -> List[tuple]:
        return [(sid, cfg) for sid, cfg in self.active_signals.items() if cfg.enabled]

    @classmethod
    def from_dict(cls, raw: dict) -> "ConstructionSettings":
        """Parse a JSON-shaped settings record. The construction mode is required."""
        if not raw or "construction_mode" not in raw:
            raise ValueError("Settings record is missing 'construction_mode'.")
        signals = {
            sid: SignalConfig.from_dict(sid, cfg or {})
            for sid, cfg in (raw.get("active_signals") or {}).items()
        }
        min_agreement = raw.get("validation_min_agreement")
        return cls(
            construction_mode=raw["construction_mode"],
            active_signals=signals,
            validation_min_agreement=int(min_agreement) if min_agreement is not None else DEFAULT_MIN_AGREEMENT,
            validation_agreement_mode=raw.get("validation_agreement_mode") or DEFAULT_AGREEMENT_MODE,
            audience_intent=raw.get("audience_intent"),
        )

    def to_dict(self) -> dict:
        return {
            "construction_mode": self.construction_mode,
            "active_signals": {sid: cfg.to_dict() for sid, cfg in self.active_signals.items()},
            "validation_min_agreement": self.validation_min_agreement,
            "validation_agreement_mode": self.validation_agreement_mode,
            "audience_intent": self.audience_intent,
        }


@dataclass(frozen=True)
class SignalDefinition:
    id: str
    label: str
    description: str
    default_weight: float
    default_confidence: float
    default_spatial_bias: Optional[str] = None
    applicable_intents: Optional[tuple] = None   # None = applies to every intent
    source_provider: Optional[str] = None
