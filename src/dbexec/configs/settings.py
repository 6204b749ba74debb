"""
Process-level settings for dbexec.

Settings are read once at start-up, either from environment variables or from
a YAML file, and handed to a Database explicitly. Nothing in dbexec reads the
environment after that.
"""
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from dbexec.connections.constants import ORACLE_CONNECTION_DEFAULTS, POOL_DEFAULTS
from dbexec.utility.exceptions import ConfigError

from .pool_config import PoolConfig

DEFAULT_DEV_ENVIRONMENTS = ["dev", "devel", "development"]

# Environment variable -> PoolConfig field, with the type to parse it as
_POOL_ENV_FIELDS = {
    "DB_DRIVER": ("driver", str),
    "ORA_USR": ("user", str),
    "ORA_PWD": ("password", str),
    "ORA_CONSTR": ("connect_string", str),
    "POOL_MIN": ("pool_min", int),
    "POOL_MAX": ("pool_max", int),
    "POOL_INCREMENT": ("pool_increment", int),
    "POOL_ALIAS": ("alias", str),
    "POOL_PING_INTERVAL": ("pool_ping_interval", int),
    "QUEUE_MAX": ("queue_max", int),
    "QUEUE_TIMEOUT": ("queue_timeout", int),
}

_ENV_VAR_PATTERN = re.compile(r"\$\{([^:}]+)(?::-([^}]*))?\}")


def _parse_int(value: Optional[str], default: int) -> int:
    """Parse an integer env value, keeping the default when it is not a number."""
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in ("false", "0", "no"):
        return False
    if lowered in ("true", "1", "yes"):
        return True
    return default


def expand_env_vars(data: Any, environ: Optional[Mapping[str, str]] = None) -> Any:
    """
    Recursively expand environment variables in configuration data.

    Supports patterns like ${VAR_NAME} and ${VAR_NAME:-default_value}

    Raises:
        ConfigError: If environment variable is not set and no default provided
    """
    environ = os.environ if environ is None else environ

    if isinstance(data, str):

        def replace_env_var(match):
            var_name = match.group(1)
            default_value = match.group(2)
            env_value = environ.get(var_name)
            if env_value is not None:
                return env_value
            if default_value is not None:
                return default_value
            raise ConfigError(
                f"Environment variable '{var_name}' is not set and no default"
            )

        return _ENV_VAR_PATTERN.sub(replace_env_var, data)

    if isinstance(data, dict):
        return {key: expand_env_vars(value, environ) for key, value in data.items()}

    if isinstance(data, list):
        return [expand_env_vars(item, environ) for item in data]

    return data


class DbExecSettings(BaseModel):
    """
    Settings for one dbexec process.

    ``environment`` is compared against ``dev_environments`` to decide whether
    bound statements are written to the log.
    """

    pool: PoolConfig = Field(default_factory=PoolConfig)
    pool_closing_time: int = Field(
        default=POOL_DEFAULTS.pool_closing_time,
        ge=0,
        description="Seconds to wait for leases before force-closing a pool",
    )
    thin_mode: bool = Field(
        default=ORACLE_CONNECTION_DEFAULTS.thin_mode,
        description="python-oracledb thin mode; False loads the Oracle client",
    )
    environment: str = Field(default="dev")
    dev_environments: List[str] = Field(
        default_factory=lambda: list(DEFAULT_DEV_ENVIRONMENTS)
    )

    @field_validator("dev_environments", mode="before")
    @classmethod
    def split_environments(cls, v):
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @property
    def is_development(self) -> bool:
        """True when bound statements should be logged."""
        known = {env.lower() for env in self.dev_environments}
        return self.environment.strip().lower() in known

    @classmethod
    def load_from_env(
        cls, environ: Optional[Mapping[str, str]] = None
    ) -> "DbExecSettings":
        """
        Load settings from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ`` (for tests)

        Raises:
            ConfigError: If the resulting configuration is invalid
        """
        environ = os.environ if environ is None else environ
        defaults = PoolConfig()

        pool_data: Dict[str, Any] = {}
        for var_name, (field_name, kind) in _POOL_ENV_FIELDS.items():
            raw = environ.get(var_name)
            if raw is None:
                continue
            if kind is int:
                pool_data[field_name] = _parse_int(raw, getattr(defaults, field_name))
            else:
                pool_data[field_name] = raw

        thin_mode = _parse_bool(
            environ.get("THIN_MODE"), ORACLE_CONNECTION_DEFAULTS.thin_mode
        )
        pool_data["options"] = {"thin_mode": thin_mode}

        data: Dict[str, Any] = {
            "pool": pool_data,
            "pool_closing_time": _parse_int(
                environ.get("POOL_CLOSING_TIME"), POOL_DEFAULTS.pool_closing_time
            ),
            "thin_mode": thin_mode,
            "environment": environ.get("DBEXEC_ENV", "dev"),
        }
        if environ.get("DBEXEC_DEV_ENVIRONMENTS"):
            data["dev_environments"] = environ["DBEXEC_DEV_ENVIRONMENTS"]

        return cls._build(data, source="environment")

    @classmethod
    def load_from_yaml(
        cls, path: Union[str, Path], environ: Optional[Mapping[str, str]] = None
    ) -> "DbExecSettings":
        """
        Load settings from a YAML file.

        The file mirrors the model layout::

            environment: production
            pool_closing_time: 10
            pool:
              alias: default
              driver: oracle
              user: ${ORA_USR}
              password: ${ORA_PWD}
              connect_string: ${ORA_CONSTR:-localhost:1521/XEPDB1}

        Raises:
            ConfigError: If the file is missing, unreadable or invalid
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {str(e)}") from e

        if not isinstance(raw, dict):
            raise ConfigError(f"Configuration in {path} must be a mapping")

        data = expand_env_vars(raw, environ)
        pool_data = data.setdefault("pool", {}) or {}
        if "thin_mode" in data:
            options = dict(pool_data.get("options") or {})
            options.setdefault("thin_mode", data["thin_mode"])
            pool_data["options"] = options
        data["pool"] = pool_data

        return cls._build(data, source=str(path))

    @classmethod
    def _build(cls, data: Dict[str, Any], source: str) -> "DbExecSettings":
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration from {source}: {str(e)}") from e
