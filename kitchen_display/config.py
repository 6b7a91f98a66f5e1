"""
Application configuration using Pydantic Settings
"""

from datetime import timezone, tzinfo
from typing import List
from zoneinfo import ZoneInfo
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Restaurant served by this kitchen screen
    restaurant_id: str = "default"
    # IANA zone the kitchen's working day is counted in
    restaurant_timezone: str = "UTC"

    # Order service
    order_service_url: str = "http://localhost:3000"
    order_service_token: str = ""
    accept_timeout_seconds: float = 8.0
    status_timeout_seconds: float = 10.0
    item_timeout_seconds: float = 8.0
    fetch_timeout_seconds: float = 15.0

    # Role notifications (front-of-house, managers)
    notification_roles: str = "Restaurant,Restaurant_manager,Restaurant_supervisor"

    # Redis (real-time channel and Celery broker)
    redis_url: str = "redis://localhost:6379/0"
    realtime_channel_prefix: str = "kitchen"

    # Voice commands
    wake_word: str = "code work"
    voice_active_minutes: int = 60
    command_timeout_seconds: float = 10.0
    voice_confidence_threshold: float = 0.7

    # Speech-to-intent: "http" calls intent_service_url, "llm" uses the LLM adapter
    intent_backend: str = "http"
    intent_service_url: str = "http://localhost:3000/api/voice/intent"
    intent_timeout_seconds: float = 8.0

    # LLM Providers
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    gemini_api_key: str = ""

    default_llm_provider: str = "gemini"
    default_llm_model: str = "gemini-1.5-flash"
    fallback_llm_provider: str = "openai"
    fallback_llm_model: str = "gpt-4o-mini"

    # Undo behaviour: "local" restores the screen only, "compensating" also
    # patches the order service
    undo_mode: str = "local"

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    cors_origins: str = "http://localhost:3000"

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def notification_roles_list(self) -> List[str]:
        """Parse notification roles from comma-separated string"""
        return [role.strip() for role in self.notification_roles.split(",") if role.strip()]

    @property
    def restaurant_tz(self) -> tzinfo:
        if self.restaurant_timezone.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.restaurant_timezone)

    @property
    def voice_active_seconds(self) -> float:
        return self.voice_active_minutes * 60.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
