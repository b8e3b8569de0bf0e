import os
from dataclasses import dataclass
from functools import lru_cache

import httpx
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Client settings loaded from environment variables."""

    # API
    api_url: str = os.getenv("ENTITY_API_URL", "http://localhost:8000/api")
    api_token: str | None = os.getenv("ENTITY_API_TOKEN")

    # HTTP
    http_timeout: float = float(os.getenv("ENTITY_HTTP_TIMEOUT", "30.0"))
    http_max_connections: int = int(os.getenv("ENTITY_HTTP_MAX_CONNECTIONS", "100"))
    http_max_keepalive: int = int(os.getenv("ENTITY_HTTP_MAX_KEEPALIVE", "20"))

    # Attach the API token unless a request opts out via with_credentials=False
    send_credentials: bool = os.getenv("ENTITY_SEND_CREDENTIALS", "true").lower() == "true"

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if not self.api_url.startswith(("http://", "https://")):
            raise ValueError(f"ENTITY_API_URL must be an http(s) URL, got {self.api_url!r}")

        if self.http_timeout <= 0:
            raise ValueError("ENTITY_HTTP_TIMEOUT must be positive")

        if self.http_max_keepalive > self.http_max_connections:
            raise ValueError(
                f"ENTITY_HTTP_MAX_KEEPALIVE ({self.http_max_keepalive}) cannot exceed "
                f"ENTITY_HTTP_MAX_CONNECTIONS ({self.http_max_connections})"
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_http_client() -> httpx.AsyncClient:
    """Create an async HTTP client configured from settings."""
    return httpx.AsyncClient(
        timeout=settings.http_timeout,
        limits=httpx.Limits(
            max_connections=settings.http_max_connections,
            max_keepalive_connections=settings.http_max_keepalive,
        ),
    )
