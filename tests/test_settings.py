"""
Tests for config loading, defaults and DSN translation.
"""

import os

import pytest

from mysql_readonly_mcp.config.settings import MySQLSettings, load_settings, normalize_list
from mysql_readonly_mcp.sql.policy import QueryPolicy
from mysql_readonly_mcp.utils.errors import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep host MYSQLMCP_* variables and any local .env out of these tests"""
    for key in list(os.environ):
        if key.upper().startswith("MYSQLMCP_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


def write_config(tmp_path, body: str):
    path = tmp_path / "config.toml"
    path.write_text(body)
    return path


def test_normalize_list():
    assert normalize_list(["  SELECT ", "", "Show", "  \t", "Describe"]) == ["select", "show", "describe"]


class TestLoadSettings:
    """load_settings() defaults and overrides"""

    def test_defaults(self, tmp_path):
        path = write_config(tmp_path, '[mysql]\ndsn = "user:pass@tcp(127.0.0.1:3306)/app"\n')

        settings = load_settings(path)

        assert settings.server.name == "mysql-readonly"
        assert settings.server.version == "v1.0.0"
        assert settings.mysql.query_timeout_seconds == 30
        assert settings.mysql.max_rows == 1000
        assert settings.mysql.allow_statement_prefixes == ["select", "show", "describe", "explain"]
        assert settings.mysql.deny_substrings == [
            " into outfile",
            " into dumpfile",
            " for update",
            " lock in share mode",
        ]
        assert settings.logging.level == "INFO"

    def test_overrides(self, tmp_path):
        path = write_config(
            tmp_path,
            """
[server]
name = "custom"
version = "v2"

[mysql]
dsn = "user:pass@tcp(db:3306)/app"
query_timeout_seconds = 5
max_rows = 10
allow_statement_prefixes = ["select"]
deny_substrings = [" for update"]
""",
        )

        settings = load_settings(path)

        assert settings.server.name == "custom"
        assert settings.server.version == "v2"
        assert settings.mysql.query_timeout_seconds == 5
        assert settings.mysql.max_rows == 10
        assert settings.mysql.allow_statement_prefixes == ["select"]
        assert settings.mysql.deny_substrings == [" for update"]

    def test_blank_values_fall_back(self, tmp_path):
        path = write_config(
            tmp_path,
            """
[server]
name = ""
version = "  "

[mysql]
dsn = "user@tcp(db:3306)/app"
allow_statement_prefixes = []
deny_substrings = []
""",
        )

        settings = load_settings(path)

        assert settings.server.name == "mysql-readonly"
        assert settings.server.version == "v1.0.0"
        assert settings.mysql.allow_statement_prefixes == ["select", "show", "describe", "explain"]
        assert len(settings.mysql.deny_substrings) == 4

    def test_environment_wins_over_file(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, '[mysql]\ndsn = "user@tcp(db:3306)/app"\nmax_rows = 10\n')
        monkeypatch.setenv("MYSQLMCP_MYSQL__MAX_ROWS", "5")

        settings = load_settings(path)

        assert settings.mysql.max_rows == 5
        assert settings.mysql.dsn == "user@tcp(db:3306)/app"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_settings(tmp_path / "nope.toml")

    def test_malformed_file(self, tmp_path):
        path = write_config(tmp_path, "[mysql\ndsn = ")
        with pytest.raises(ConfigurationError):
            load_settings(path)

    def test_invalid_value(self, tmp_path):
        path = write_config(tmp_path, '[mysql]\nmax_rows = "many"\n')
        with pytest.raises(ConfigurationError, match="invalid config"):
            load_settings(path)


class TestConnectionString:
    """get_connection_string() accepts Go-style DSNs and SQLAlchemy URLs"""

    def test_missing_dsn(self):
        with pytest.raises(ConfigurationError, match="mysql.dsn is required"):
            MySQLSettings().get_connection_string()

    def test_go_tcp_dsn(self):
        url = MySQLSettings(dsn="reader:s3cret@tcp(10.0.0.5:3307)/shop?parseTime=true").get_connection_string()

        assert url.drivername == "mysql+aiomysql"
        assert url.username == "reader"
        assert url.password == "s3cret"
        assert url.host == "10.0.0.5"
        assert url.port == 3307
        assert url.database == "shop"
        assert url.query["charset"] == "utf8mb4"

    def test_go_unix_dsn(self):
        url = MySQLSettings(dsn="reader@unix(/var/run/mysqld/mysqld.sock)/shop").get_connection_string()

        assert url.host is None
        assert url.query["unix_socket"] == "/var/run/mysqld/mysqld.sock"

    def test_sqlalchemy_url_gets_async_driver(self):
        url = MySQLSettings(dsn="mysql+pymysql://u:p@db/shop").get_connection_string()
        assert url.drivername == "mysql+aiomysql"
        assert url.host == "db"

        url = MySQLSettings(dsn="sqlite:///tmp/x.db").get_connection_string()
        assert url.drivername == "sqlite+aiosqlite"

    def test_unsupported_backend(self):
        with pytest.raises(ConfigurationError, match="unsupported"):
            MySQLSettings(dsn="postgresql://u:p@db/shop").get_connection_string()

    def test_unrecognized_dsn(self):
        with pytest.raises(ConfigurationError):
            MySQLSettings(dsn="not a dsn").get_connection_string()


class TestPoolOptions:
    """Pool limits become create_async_engine arguments"""

    def test_defaults(self):
        assert MySQLSettings().pool_options() == {"pool_pre_ping": True}

    def test_limits(self):
        options = MySQLSettings(
            max_open_conns=10,
            max_idle_conns=5,
            conn_max_lifetime_seconds=3600,
            conn_max_idle_time_seconds=300,
        ).pool_options()

        assert options["pool_size"] == 5
        assert options["max_overflow"] == 5
        assert options["pool_recycle"] == 300

    def test_open_only(self):
        options = MySQLSettings(max_open_conns=4).pool_options()
        assert options["pool_size"] == 4
        assert options["max_overflow"] == 0


def test_policy_from_settings_normalizes():
    policy = QueryPolicy.from_settings(
        MySQLSettings(deny_substrings=["  FOR UPDATE", ""], allow_statement_prefixes=[" Select "], max_rows=7)
    )

    assert policy.deny_substrings == ("for update",)
    assert policy.allowed_statement_prefixes == ("select",)
    assert policy.row_limit == 7
