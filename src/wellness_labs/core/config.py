"""Configuration management with dataclasses and YAML loading."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class MotorConfig:
    """Finger-tapping and tremor test configuration."""

    test_duration_s: float = 5.0
    tick_ms: int = 100
    threshold_fraction: float = 0.05  # of min(frame width, height)
    refractory_ms: float = 200.0
    tremor_capacity: int = 300
    interval_capacity: int = 600
    min_tremor_samples: int = 6


@dataclass
class VoiceConfig:
    """Sustained-vowel recording configuration."""

    recording_duration_s: float = 5.0
    tick_ms: int = 100
    frame_size: int = 1024
    silence_rms: float = 0.001
    min_correlation: float = 0.01
    min_pitch_hz: float = 50.0
    max_pitch_hz: float = 800.0
    fallback_min_hz: float = 80.0
    # Byte level 50 on an analyser spanning -100..-30 dB
    fallback_min_db: float = -100.0 + 50.0 / 255.0 * 70.0
    pitch_history: int = 100
    jitter_min_history: int = 10
    analysis_delay_ms: int = 2000
    fabricate_missing: bool = False
    seed: int | None = None

    def __post_init__(self) -> None:
        """Allow the fallback policy to be switched from the environment."""
        env = os.getenv("WELLNESS_LABS_FABRICATE_MISSING")
        if env is not None:
            self.fabricate_missing = env.strip().lower() in ("1", "true", "yes")


@dataclass
class CognitionConfig:
    """Eye & cognition battery configuration."""

    total_trials: int = 20
    n_back: int = 2
    lead_in_ms: int = 4000
    inter_trial_ms: int = 400
    saccade_timeout_ms: int = 2000
    stroop_timeout_ms: int = 3000
    nback_soa_ms: int = 1600
    nback_stimulus_on_ms: int = 800
    target_radius_px: float = 22.0
    nback_target_rate: float = 0.3
    colors: list[str] = field(default_factory=lambda: ["red", "blue", "green", "yellow"])
    letters: list[str] = field(default_factory=lambda: list("ABCDEFGH"))


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    log_file: str | None = None

    def __post_init__(self) -> None:
        """Load level from environment if set."""
        self.level = os.getenv("WELLNESS_LABS_LOG_LEVEL", self.level)


@dataclass
class Settings:
    """Main application settings."""

    motor: MotorConfig = field(default_factory=MotorConfig)
    voice: VoiceConfig = field(default_factory=VoiceConfig)
    cognition: CognitionConfig = field(default_factory=CognitionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from YAML file."""
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create Settings from dictionary."""
        return cls(
            motor=MotorConfig(**data.get("motor", {})),
            voice=VoiceConfig(**data.get("voice", {})),
            cognition=CognitionConfig(**data.get("cognition", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Serialize settings to a YAML document."""
        return yaml.safe_dump(self.to_dict(), sort_keys=False)


# Global settings instance
_settings: Settings | None = None


def get_settings(config_path: str | Path | None = None) -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        if config_path is None:
            # Default config paths to check
            for candidate in [
                Path("config/settings.yaml"),
                Path.home() / ".config/wellness-labs/settings.yaml",
            ]:
                if candidate.exists():
                    config_path = candidate
                    break

        _settings = Settings.from_yaml(config_path) if config_path else Settings()

    return _settings


def reload_settings(config_path: str | Path | None = None) -> Settings:
    """Force reload settings from file."""
    global _settings
    _settings = None
    return get_settings(config_path)
