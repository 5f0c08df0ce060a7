"""Pipeline configuration - per-stage settings in one place.

Each stage owns a dataclass with its defaults; TranscriptionConfig bundles
them and can be loaded from a JSON file with one section per stage:

    {
        "target_sr": 44100,
        "onset": {"energy_ratio": 1.4},
        "model": {"velocity_threshold": 0.3}
    }
"""

import json
from dataclasses import dataclass, field, fields, replace, asdict
from pathlib import Path
from typing import Any, Dict, Optional

from .analysis.onset import OnsetConfig
from .analysis.pitch import PitchConfig
from .analysis.tempo import TempoConfig
from .core.constants import DEFAULT_SR, MAX_CLIP_DURATION
from .output.tab import TabConfig
from .processing.cleanup import ArticulationConfig, DedupConfig
from .processing.consolidate import ConsolidationConfig
from .processing.fretboard import Tuning
from .transcription.model import ModelConfig

# Onset sensitivity presets
SENSITIVITY_PRESETS: Dict[str, Dict[str, float]] = {
    "low": {"energy_ratio": 1.5, "noise_floor": 0.005},
    "medium": {"energy_ratio": 1.3, "noise_floor": 0.002},
    "high": {"energy_ratio": 1.2, "noise_floor": 0.001},
}


@dataclass
class TranscriptionConfig:
    """All settings for one TranscriptionPipeline."""

    target_sr: int = DEFAULT_SR
    max_duration: Optional[float] = MAX_CLIP_DURATION
    use_model: bool = False
    key_chunk_seconds: float = 0.1
    onset: OnsetConfig = field(default_factory=OnsetConfig)
    pitch: PitchConfig = field(default_factory=PitchConfig)
    tempo: TempoConfig = field(default_factory=TempoConfig)
    consolidation: ConsolidationConfig = field(default_factory=ConsolidationConfig)
    articulation: ArticulationConfig = field(default_factory=ArticulationConfig)
    dedup: DedupConfig = field(default_factory=DedupConfig)
    tab: TabConfig = field(default_factory=TabConfig)
    model: ModelConfig = field(default_factory=ModelConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptionConfig":
        """
        Build from nested dictionaries.

        Raises:
            ValueError: On unknown sections or keys
        """
        sections = {f.name: f for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key not in sections:
                raise ValueError(f"Unknown config key: {key}")
            section_type = _SECTION_TYPES.get(key)
            if section_type is None:
                kwargs[key] = value
            else:
                kwargs[key] = _build_section(key, section_type, value)
        return cls(**kwargs)

    @classmethod
    def from_file(cls, path: str) -> "TranscriptionConfig":
        """Load a JSON config file."""
        with open(Path(path), encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def with_sensitivity(self, level: str) -> "TranscriptionConfig":
        """Copy with onset thresholds from a sensitivity preset."""
        level = level.lower()
        if level not in SENSITIVITY_PRESETS:
            raise ValueError(
                f"Unknown sensitivity {level!r}; choose from {', '.join(SENSITIVITY_PRESETS)}"
            )
        return replace(self, onset=replace(self.onset, **SENSITIVITY_PRESETS[level]))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


_SECTION_TYPES = {
    "onset": OnsetConfig,
    "pitch": PitchConfig,
    "tempo": TempoConfig,
    "consolidation": ConsolidationConfig,
    "articulation": ArticulationConfig,
    "dedup": DedupConfig,
    "tab": TabConfig,
    "model": ModelConfig,
}


def _build_section(name: str, section_type, values: Dict[str, Any]):
    if not isinstance(values, dict):
        raise ValueError(f"Config section {name!r} must be an object")
    values = dict(values)
    if section_type is TabConfig and "tuning" in values:
        tuning = values["tuning"]
        values["tuning"] = Tuning(
            labels=tuple(tuning["labels"]),
            open_pitches=tuple(tuning["open_pitches"]),
        )
    try:
        return section_type(**values)
    except TypeError as exc:
        raise ValueError(f"Invalid {name!r} config: {exc}") from exc
