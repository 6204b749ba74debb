"""
Configuration models for dbexec.
"""
from .pool_config import PoolConfig
from .settings import DbExecSettings, expand_env_vars

__all__ = ["PoolConfig", "DbExecSettings", "expand_env_vars"]
