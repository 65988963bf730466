from pydantic_settings import BaseSettings
from functools import lru_cache
import os


class Settings(BaseSettings):
    anthropic_api_key: str = ""

    # Oracle
    oracle_model: str = "claude-sonnet-4-5-20250929"
    oracle_max_tokens: int = 4000
    oracle_timeout: float = 90.0  # seconds, per call
    oracle_max_attempts: int = 2
    oracle_backoff_unit: float = 1.0  # seconds, multiplied by attempt number
    oracle_image_max_width: int = 1280
    oracle_image_max_height: int = 7800  # Claude rejects images taller than 8000px
    oracle_image_quality: int = 75

    # Browser
    headless: bool = True
    desktop_viewport_width: int = 1280
    desktop_viewport_height: int = 900
    mobile_viewport_width: int = 375
    mobile_viewport_height: int = 812
    navigation_wait_until: str = "domcontentloaded"
    navigation_timeout: int = 20000  # milliseconds
    navigation_attempts: int = 3
    navigation_retry_delay: float = 2.0  # seconds, constant
    capture_attempts: int = 3
    capture_backoff_unit: float = 1.0  # seconds, multiplied by attempt number
    mobile_settle_delay: float = 2.0  # seconds

    # Sections
    min_clip_size: int = 10
    dedup_enabled: bool = True
    dedup_threshold: float = 20.0  # percent of page height
    analysis_concurrency: int = 1  # >1 overlaps oracle calls, never captures

    # Whole-request deadline
    request_timeout: float = 600.0

    class Config:
        # Look for .env in the repo root (two levels up from backend/pagelens/)
        # In containers, env vars are injected directly - .env is optional
        _env_path = os.path.join(os.path.dirname(__file__), "..", "..", ".env")
        env_file = _env_path if os.path.exists(_env_path) else None
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings():
    return Settings()
