"""
Tests for DbExecSettings loading from the environment and YAML.
"""
import pytest

from dbexec.configs import DbExecSettings, expand_env_vars
from dbexec.utility.exceptions import ConfigError


class TestLoadFromEnv:
    def test_empty_environment_uses_defaults(self):
        settings = DbExecSettings.load_from_env({})

        assert settings.pool.user == "hr"
        assert settings.pool.connect_string == "localhost:1521/XEPDB1"
        assert settings.pool.pool_max == 10
        assert settings.pool_closing_time == 0
        assert settings.thin_mode is True
        assert settings.pool.options == {"thin_mode": True}
        assert settings.environment == "dev"

    def test_reads_pool_variables(self):
        settings = DbExecSettings.load_from_env(
            {
                "ORA_USR": "scott",
                "ORA_PWD": "tiger",
                "ORA_CONSTR": "db.example.com:1521/ORCL",
                "POOL_MIN": "2",
                "POOL_MAX": "8",
                "POOL_INCREMENT": "2",
                "POOL_ALIAS": "reports",
                "POOL_PING_INTERVAL": "30",
                "QUEUE_MAX": "50",
                "QUEUE_TIMEOUT": "5000",
                "POOL_CLOSING_TIME": "10",
                "THIN_MODE": "false",
                "DBEXEC_ENV": "production",
            }
        )

        pool = settings.pool
        assert pool.user == "scott"
        assert pool.password == "tiger"
        assert pool.connect_string == "db.example.com:1521/ORCL"
        assert (pool.pool_min, pool.pool_max, pool.pool_increment) == (2, 8, 2)
        assert pool.alias == "reports"
        assert pool.pool_ping_interval == 30
        assert pool.queue_max == 50
        assert pool.queue_timeout == 5000
        assert pool.options == {"thin_mode": False}
        assert settings.pool_closing_time == 10
        assert settings.thin_mode is False
        assert not settings.is_development

    def test_unparseable_numbers_fall_back_to_defaults(self):
        settings = DbExecSettings.load_from_env(
            {"POOL_MAX": "lots", "QUEUE_TIMEOUT": "", "POOL_CLOSING_TIME": "soon"}
        )

        assert settings.pool.pool_max == 10
        assert settings.pool.queue_timeout == 60000
        assert settings.pool_closing_time == 0

    def test_zero_is_respected(self):
        settings = DbExecSettings.load_from_env({"POOL_MIN": "0", "QUEUE_MAX": "0"})

        assert settings.pool.pool_min == 0
        assert settings.pool.queue_max == 0

    def test_invalid_combination_raises_config_error(self):
        with pytest.raises(ConfigError, match="environment"):
            DbExecSettings.load_from_env({"POOL_MIN": "20", "POOL_MAX": "5"})

    def test_driver_selection(self):
        settings = DbExecSettings.load_from_env({"DB_DRIVER": "SQLite"})

        assert settings.pool.driver == "sqlite"


class TestDevelopmentMode:
    @pytest.mark.parametrize("env", ["dev", "DEV", "development", " devel "])
    def test_dev_environments(self, env):
        assert DbExecSettings(environment=env).is_development

    @pytest.mark.parametrize("env", ["prod", "production", "staging", "devops"])
    def test_other_environments(self, env):
        assert not DbExecSettings(environment=env).is_development

    def test_custom_dev_environments_from_env(self):
        settings = DbExecSettings.load_from_env(
            {"DBEXEC_ENV": "local", "DBEXEC_DEV_ENVIRONMENTS": "local, sandbox"}
        )

        assert settings.dev_environments == ["local", "sandbox"]
        assert settings.is_development


class TestLoadFromYaml:
    def test_load_with_env_expansion(self, tmp_path):
        path = tmp_path / "dbexec.yml"
        path.write_text(
            """
environment: production
pool_closing_time: 5
thin_mode: false
pool:
  alias: reports
  user: ${DB_USER}
  password: ${DB_PASSWORD:-changeme}
  connect_string: dbhost:1521/XEPDB1
  pool_min: 1
  pool_max: 4
"""
        )

        settings = DbExecSettings.load_from_yaml(path, environ={"DB_USER": "app"})

        assert settings.environment == "production"
        assert settings.pool_closing_time == 5
        assert settings.pool.alias == "reports"
        assert settings.pool.user == "app"
        assert settings.pool.password == "changeme"
        assert settings.pool.options == {"thin_mode": False}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            DbExecSettings.load_from_yaml(tmp_path / "missing.yml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yml"
        path.write_text("pool: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            DbExecSettings.load_from_yaml(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- one\n- two\n")

        with pytest.raises(ConfigError, match="must be a mapping"):
            DbExecSettings.load_from_yaml(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("pool:\n  pool_max: 0\n")

        with pytest.raises(ConfigError, match="Invalid configuration"):
            DbExecSettings.load_from_yaml(path)

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")

        settings = DbExecSettings.load_from_yaml(path)

        assert settings.pool.alias == "default"


class TestExpandEnvVars:
    def test_nested_structures(self):
        data = {"a": "${X}", "b": ["${Y:-fallback}", 3], "c": {"d": "pre-${X}-post"}}

        result = expand_env_vars(data, environ={"X": "1"})

        assert result == {"a": "1", "b": ["fallback", 3], "c": {"d": "pre-1-post"}}

    def test_unset_without_default(self):
        with pytest.raises(ConfigError, match="MISSING_VAR"):
            expand_env_vars("${MISSING_VAR}", environ={})

    def test_empty_default(self):
        assert expand_env_vars("${UNSET:-}", environ={}) == ""
