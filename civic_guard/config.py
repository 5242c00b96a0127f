"""CivicGuard Service Configuration"""
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Service
    service_name: str = "civic-guard"
    service_port: int = 8000
    debug: bool = False

    # OpenAI-compatible endpoint (summaries, authenticity, emotion, assistant)
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    openai_audio_model: str = "gpt-4o-audio-preview"
    openai_timeout_seconds: float = 30.0

    # Whisper (speech channel for the guided report)
    openai_whisper_key: Optional[str] = None  # falls back to openai_api_key
    whisper_model: str = "whisper-1"

    # Reference data
    location_data_path: str = ""  # empty = bundled sample dataset
    boundaries_path: str = ""

    # Evidence capture limits
    max_photos: int = 3
    video_max_seconds: float = 30.0
    audio_max_seconds: float = 120.0
    photo_gps_timeout_seconds: float = 10.0
    fallback_gps_timeout_seconds: float = 8.0
    display_timezone: str = "Asia/Kolkata"  # overlay timestamps

    # Authenticity classifier
    classifier_retries: int = 1

    # Mock login
    leader_email: str = "leader@civic.com"
    seed_demo_data: bool = True

    # CORS
    allowed_origins: List[str] = [
        *[f"http://localhost:{port}" for port in range(3000, 3004)],
        "http://localhost:5173",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
