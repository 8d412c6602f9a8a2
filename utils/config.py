"""
Configuration management.
"""

import os
from dataclasses import dataclass, field
from typing import List


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    production: bool = field(
        default_factory=lambda: (
            os.getenv("RAILWAY_ENVIRONMENT") is not None
            or os.getenv("PRODUCTION", "").lower() == "true"
        )
    )
    allowed_origins: List[str] = field(
        default_factory=lambda: _split_origins(os.getenv("ALLOWED_ORIGINS", ""))
    )

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # CMA engine
    # assume_colocated | exclude
    missing_coordinates: str = field(
        default_factory=lambda: os.getenv("CMA_MISSING_COORDINATES", "assume_colocated").lower()
    )

    def __post_init__(self):
        """Never run debug mode in production."""
        if self.production:
            self.debug = False
        if not self.allowed_origins and not self.production:
            # Development fallback only
            self.allowed_origins = [
                f"http://localhost:{self.port}",
                f"http://127.0.0.1:{self.port}",
            ]

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "production": self.production,
            "allowed_origins": list(self.allowed_origins),
            "log_level": self.log_level,
            "missing_coordinates": self.missing_coordinates,
        }
