"""Cluster connection models."""

from __future__ import annotations

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


DEFAULT_CEPH_CONF = "/etc/ceph/ceph.conf"
DEFAULT_POOL = "omap-loadgen"


class CephConnection(BaseModel):
    """Ceph cluster connection configuration."""
    model_config = ConfigDict(frozen=True)

    conf_path: str = Field(
        default=DEFAULT_CEPH_CONF,
        description="Path to ceph.conf"
    )
    user: str = Field(
        default="",
        description="Ceph user id without the 'client.' prefix (empty for the conf default)"
    )
    keyring_path: Optional[str] = Field(
        default=None,
        description="Path to keyring file (defaults to whatever ceph.conf names)"
    )
    pool: str = Field(default=DEFAULT_POOL, min_length=1, description="Pool holding target objects")
    connect_timeout: int = Field(default=30, ge=1, description="Connect timeout in seconds")

    @property
    def conf_overrides(self) -> dict[str, str]:
        """Extra options passed to the RADOS handle."""
        if self.keyring_path:
            return {"keyring": self.keyring_path}
        return {}
