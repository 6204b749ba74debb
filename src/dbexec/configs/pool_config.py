"""
Pool configuration model.

A PoolConfig fully describes one named pool: which driver to use, how to reach
the database, and how the pool sizes and queues. It is frozen once built; a
pool never sees its configuration change underneath it.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from dbexec.connections.constants import (
    DEFAULT_ALIAS,
    ORACLE_CONNECTION_DEFAULTS,
    POOL_DEFAULTS,
)


class PoolConfig(BaseModel):
    """
    Configuration for one connection pool.

    Example:
        ```python
        config = PoolConfig(
            alias="reports",
            driver="oracle",
            user="hr",
            password="hr",
            connect_string="dbhost:1521/XEPDB1",
            pool_min=2,
            pool_max=8,
        )
        ```
    """

    model_config = ConfigDict(frozen=True)

    alias: str = Field(default=DEFAULT_ALIAS, min_length=1)
    driver: str = Field(default="oracle", description="Registered driver name")

    user: Optional[str] = Field(default=ORACLE_CONNECTION_DEFAULTS.user)
    password: Optional[str] = Field(
        default=ORACLE_CONNECTION_DEFAULTS.password, repr=False
    )
    connect_string: str = Field(default=ORACLE_CONNECTION_DEFAULTS.connect_string)

    pool_min: int = Field(default=POOL_DEFAULTS.pool_min, ge=0)
    pool_max: int = Field(default=POOL_DEFAULTS.pool_max, ge=1)
    pool_increment: int = Field(default=POOL_DEFAULTS.pool_increment, ge=0)
    pool_ping_interval: int = Field(default=POOL_DEFAULTS.pool_ping_interval)
    queue_max: int = Field(default=POOL_DEFAULTS.queue_max, ge=-1)
    queue_timeout: int = Field(default=POOL_DEFAULTS.queue_timeout, ge=0)

    options: Dict[str, Any] = Field(
        default_factory=dict, description="Driver-specific connection options"
    )

    @field_validator("driver")
    @classmethod
    def normalize_driver(cls, v: str) -> str:
        """Driver names are case-insensitive."""
        return v.strip().lower()

    @model_validator(mode="after")
    def validate_sizing(self) -> "PoolConfig":
        if self.pool_min > self.pool_max:
            raise ValueError(
                f"pool_min ({self.pool_min}) cannot exceed pool_max ({self.pool_max})"
            )
        return self

    @property
    def queue_timeout_seconds(self) -> Optional[float]:
        """Queue timeout in seconds, or None to wait forever."""
        if self.queue_timeout == 0:
            return None
        return self.queue_timeout / 1000

    def with_alias(self, alias: str) -> "PoolConfig":
        """Copy of this config registered under another alias."""
        return self.model_copy(update={"alias": alias})
