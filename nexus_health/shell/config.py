"""Configuration - Environment-driven settings for the service."""

import os
from dataclasses import dataclass, field


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class AppConfig:
    """Runtime settings.

    Attributes:
        host: Interface uvicorn binds to
        port: Port uvicorn listens on
        log_level: Root logging level name
        firestore_project: GCP project ID (None for default)
        firestore_database: Firestore database name
        cors_origins: Origins allowed to call the HTTP API
    """

    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    firestore_project: str | None = None
    firestore_database: str = "nexus-health"
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build settings from environment variables, falling back to defaults."""
        defaults = cls()
        return cls(
            host=os.environ.get("HOST", defaults.host),
            port=int(os.environ.get("PORT", defaults.port)),
            log_level=os.environ.get("LOG_LEVEL", defaults.log_level).upper(),
            firestore_project=os.environ.get("FIRESTORE_PROJECT") or None,
            firestore_database=os.environ.get("FIRESTORE_DATABASE", defaults.firestore_database),
            cors_origins=_split_csv(os.environ.get("CORS_ORIGINS", ""))
            or defaults.cors_origins,
        )
