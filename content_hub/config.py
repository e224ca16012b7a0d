"""Settings loaded from environment variables (and a local .env file)."""

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel

# Load environment variables
load_dotenv()

# Settings field -> environment variable
_ENV_VARS = {
    "supabase_url": "SUPABASE_URL",
    "supabase_key": "SUPABASE_KEY",
    "ai_api_key": "AI_API_KEY",
    "ai_base_url": "AI_BASE_URL",
    "ai_model": "AI_MODEL",
    "ai_temperature": "AI_TEMPERATURE",
    "chat_url": "CONTENT_HUB_CHAT_URL",
    "chat_key": "CONTENT_HUB_CHAT_KEY",
    "stream_timeout": "CONTENT_HUB_STREAM_TIMEOUT",
    "rollback_on_failure": "CONTENT_HUB_ROLLBACK_ON_FAILURE",
    "require_auth": "CONTENT_HUB_REQUIRE_AUTH",
    "log_level": "LOG_LEVEL",
}


class Settings(BaseModel):
    """Runtime configuration for the content hub service."""

    supabase_url: str | None = None
    supabase_key: str | None = None

    # OpenAI-compatible chat completions gateway used by the assistant backend
    ai_api_key: str | None = None
    ai_base_url: str | None = None
    ai_model: str = "gpt-4o"
    ai_temperature: float = 0.4

    # Streaming assistant endpoint consumed by the chat service
    chat_url: str | None = None
    chat_key: str | None = None
    stream_timeout: float = 120.0

    rollback_on_failure: bool = True
    require_auth: bool = True
    log_level: str = "INFO"

    @property
    def assistant_endpoint(self) -> str | None:
        """URL of the streaming assistant endpoint."""
        if self.chat_url:
            return self.chat_url
        if self.supabase_url:
            return f"{self.supabase_url.rstrip('/')}/functions/v1/ai-content-hub"
        return None

    @property
    def assistant_key(self) -> str | None:
        """Bearer key sent to the assistant endpoint."""
        return self.chat_key or self.supabase_key

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the process environment.

        Unset or empty variables fall back to the field defaults.

        Returns:
            Settings instance
        """
        values = {field: os.getenv(var) for field, var in _ENV_VARS.items()}
        return cls(**{field: value for field, value in values.items() if value})


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings."""
    return Settings.from_env()
