"""Load generator settings."""

from __future__ import annotations

import socket
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.models.cluster import DEFAULT_CEPH_CONF, DEFAULT_POOL, CephConnection


def get_default_source() -> str:
    """Identify this load generator in published events."""
    return f"loadgen_{socket.gethostname()}"


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="OMAP_LOADGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = "omap-loadgen"
    app_version: str = "1.0.0"
    source_id: str = Field(default_factory=get_default_source)

    # Ceph connection defaults
    ceph_conf: str = DEFAULT_CEPH_CONF
    ceph_user: str = ""
    ceph_keyring: Optional[str] = None
    pool: str = DEFAULT_POOL
    connect_timeout: int = 30  # seconds

    # Progress events (disabled when unset)
    redis_url: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def connection(self) -> CephConnection:
        """Connection defaults as a model."""
        return CephConnection(
            conf_path=self.ceph_conf,
            user=self.ceph_user,
            keyring_path=self.ceph_keyring,
            pool=self.pool,
            connect_timeout=self.connect_timeout,
        )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def init_settings(**kwargs) -> Settings:
    """Initialize settings with custom values."""
    global _settings
    _settings = Settings(**kwargs)
    return _settings
