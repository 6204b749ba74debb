"""
Tests for PoolConfig validation and defaults.
"""
import pytest
from pydantic import ValidationError

from dbexec.configs import PoolConfig
from dbexec.connections import get_pool_defaults


def test_defaults():
    """Test defaults match the documented pool settings."""
    config = PoolConfig()

    assert config.alias == "default"
    assert config.driver == "oracle"
    assert config.user == "hr"
    assert config.password == "hr"
    assert config.connect_string == "localhost:1521/XEPDB1"
    assert config.pool_min == 10
    assert config.pool_max == 10
    assert config.pool_increment == 0
    assert config.pool_ping_interval == 60
    assert config.queue_max == 500
    assert config.queue_timeout == 60000


def test_defaults_shared_with_constants():
    defaults = get_pool_defaults()
    config = PoolConfig()

    for field in ("pool_min", "pool_max", "pool_increment", "queue_max", "queue_timeout"):
        assert getattr(config, field) == defaults[field]


def test_driver_is_normalized():
    assert PoolConfig(driver=" SQLite ").driver == "sqlite"


def test_pool_min_cannot_exceed_pool_max():
    with pytest.raises(ValidationError, match="cannot exceed pool_max"):
        PoolConfig(pool_min=5, pool_max=2)


@pytest.mark.parametrize(
    "field,value",
    [
        ("alias", ""),
        ("pool_max", 0),
        ("pool_min", -1),
        ("queue_max", -2),
        ("queue_timeout", -1),
    ],
)
def test_invalid_values_rejected(field, value):
    with pytest.raises(ValidationError):
        PoolConfig(**{field: value})


def test_queue_timeout_seconds():
    assert PoolConfig(queue_timeout=1500).queue_timeout_seconds == 1.5
    assert PoolConfig(queue_timeout=0).queue_timeout_seconds is None


def test_config_is_frozen():
    config = PoolConfig()

    with pytest.raises(ValidationError):
        config.pool_max = 20


def test_with_alias():
    config = PoolConfig(pool_min=1, pool_max=4)

    copy = config.with_alias("reports")

    assert copy.alias == "reports"
    assert copy.pool_max == 4
    assert config.alias == "default"


def test_password_hidden_from_repr():
    assert "secret" not in repr(PoolConfig(password="secret"))
