"""Core configuration for the wormhole engine."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ETHER = 10**18


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="WORMHOLE_",
        case_sensitive=False,
    )

    # ── App ──────────────────────────────────────────────────────────────
    app_env: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    chain_id: int = 1

    # ── Commitment tree ──────────────────────────────────────────────────
    tree_depth: int = Field(default=32, ge=1, le=64)
    # None keeps every root ever produced; an int keeps only the latest N
    root_history_size: Optional[int] = Field(default=None, ge=1)
    append_zero_change: bool = True

    # ── Value rules ──────────────────────────────────────────────────────
    max_deposit_value: int = Field(default=32 * ETHER, ge=0)
    value_bits: int = Field(default=256, ge=1, le=256)

    # ── Anti-collision gate ──────────────────────────────────────────────
    pow_difficulty: int = Field(default=24, ge=0, le=256)

    @property
    def max_value(self) -> int:
        """Largest value representable in the configured integer width."""
        return (1 << self.value_bits) - 1


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
