"""
WordScreen Configuration

Central settings loaded from environment variables, plus the
per-controller screening configuration derived from them.
"""

import os
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    # --- Screening ---
    ENABLED: bool = os.getenv("WORDSCREEN_ENABLED", "true").lower() == "true"
    # Comma-separated initial dictionary
    DICTIONARY: str = os.getenv("WORDSCREEN_DICTIONARY", "")
    DEBOUNCE_MS: int = int(os.getenv("WORDSCREEN_DEBOUNCE_MS", "500"))


settings = Settings()


@dataclass(frozen=True)
class ScreeningConfig:
    """What a ScreeningController needs at attach time."""

    enabled: bool = True
    dictionary: tuple[str, ...] = field(default_factory=tuple)
    debounce_ms: int = 500

    @classmethod
    def from_settings(cls, source: Settings = settings) -> "ScreeningConfig":
        words = tuple(w.strip() for w in source.DICTIONARY.split(",") if w.strip())
        return cls(
            enabled=source.ENABLED,
            dictionary=words,
            debounce_ms=max(0, source.DEBOUNCE_MS),
        )

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0
