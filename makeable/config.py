from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_BASE_URL = "https://api.anthropic.com"
DEFAULT_JWT_SECRET = "makeable-secret-key-change-in-production"
DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    anthropic_api_key: str
    anthropic_base_url: str
    model: str
    max_tokens: int
    max_turns: int
    llm_timeout: float
    llm_timeout_retries: int
    max_image_bytes: int
    jwt_secret: str
    token_ttl_days: int
    log_level: str

    @property
    def projects_dir(self) -> Path:
        return self.data_dir / "projects"

    @property
    def db_path(self) -> Path:
        return self.data_dir / "makeable.db"


def get_settings() -> Settings:
    """Read settings from the environment; called per use so tests can monkeypatch."""
    return Settings(
        data_dir=Path(os.getenv("MAKEABLE_DATA_DIR", "data")),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", "").strip(),
        anthropic_base_url=os.getenv("ANTHROPIC_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
        model=os.getenv("MAKEABLE_MODEL", DEFAULT_MODEL),
        max_tokens=int(os.getenv("MAKEABLE_MAX_TOKENS", "16000")),
        max_turns=int(os.getenv("MAKEABLE_MAX_TURNS", "10")),
        llm_timeout=float(os.getenv("MAKEABLE_LLM_TIMEOUT", "300")),
        llm_timeout_retries=int(os.getenv("MAKEABLE_LLM_TIMEOUT_RETRIES", "2")),
        max_image_bytes=int(os.getenv("MAKEABLE_MAX_IMAGE_BYTES", str(DEFAULT_MAX_IMAGE_BYTES))),
        jwt_secret=os.getenv("MAKEABLE_JWT_SECRET", DEFAULT_JWT_SECRET),
        token_ttl_days=int(os.getenv("MAKEABLE_TOKEN_TTL_DAYS", "30")),
        log_level=os.getenv("MAKEABLE_LOG_LEVEL", "INFO").upper(),
    )
