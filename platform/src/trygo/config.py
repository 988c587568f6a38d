"""Configuration loading from environment variables with validation."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Anchor all paths to the platform/ directory (two levels up from this file)
_PLATFORM_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TRYGO_",
        case_sensitive=False,
    )

    # Secrets (loaded separately, no prefix)
    anthropic_api_key: str = ""
    gemini_api_key: str = ""
    wordpress_app_password: str = ""

    # Content generation model
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 8000
    temperature: float = 0.7
    # Adapter failures are reported, not retried, unless this is raised
    llm_max_attempts: int = 1

    # Image generation (Imagen over the Generative Language REST API)
    image_model: str = "imagen-4.0-generate-001"
    image_api_base: str = "https://generativelanguage.googleapis.com/v1beta"

    # WordPress publishing
    wordpress_base_url: str = ""
    wordpress_username: str = ""
    wordpress_post_type: str = "post"
    wordpress_default_category_id: int | None = None
    wordpress_default_tag_ids: list[int] = []

    # Blocking HTTP calls (image + WordPress)
    http_timeout: float = 30.0

    # Storage paths (absolute, anchored to platform/)
    db_path: Path = _PLATFORM_DIR / "data" / "trygo.db"
    context_dir: Path = _PLATFORM_DIR / "data" / "context"

    # Logging
    log_level: str = "INFO"

    @property
    def wordpress_configured(self) -> bool:
        return bool(
            self.wordpress_base_url
            and self.wordpress_username
            and self.wordpress_app_password
        )


def get_settings() -> Settings:
    """Load settings from environment and .env file."""
    # Load .env from the platform/ directory regardless of cwd
    load_dotenv(_PLATFORM_DIR / ".env")
    return Settings(
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
        gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
        wordpress_app_password=os.getenv("WORDPRESS_APP_PASSWORD", ""),
    )
