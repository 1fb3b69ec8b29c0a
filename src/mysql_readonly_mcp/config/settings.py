"""
Configuration management for the gateway.
Loads settings from a TOML file, environment variables and an optional .env.
"""

import re
from pathlib import Path
from typing import List, Tuple, Type, Union

from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from mysql_readonly_mcp.config.constants import (
    DEFAULT_ALLOW_STATEMENT_PREFIXES,
    DEFAULT_DENY_SUBSTRINGS,
    DEFAULT_QUERY_TIMEOUT_SECONDS,
    DEFAULT_MAX_ROWS,
    DEFAULT_SERVER_NAME,
    DEFAULT_SERVER_VERSION,
)
from mysql_readonly_mcp.utils.errors import ConfigurationError


# user:pass@tcp(host:3306)/db?param=value
_GO_DSN_RE = re.compile(
    r"^(?:(?P<user>[^:@/]*)(?::(?P<password>[^@]*))?@)?"
    r"(?:(?P<net>\w+)\((?P<addr>[^)]*)\))?"
    r"/(?P<database>[^?]*)"
    r"(?:\?(?P<params>.*))?$"
)

_ASYNC_DRIVERS = {
    "mysql": "mysql+aiomysql",
    "sqlite": "sqlite+aiosqlite",
}


def normalize_list(values: List[str]) -> List[str]:
    """Trim and lower-case each entry, dropping blanks."""
    out = []
    for value in values:
        trimmed = value.strip().lower()
        if trimmed:
            out.append(trimmed)
    return out


def _parse_go_dsn(dsn: str) -> URL:
    match = _GO_DSN_RE.match(dsn)
    if not match:
        raise ConfigurationError(f"unrecognized mysql dsn: {dsn!r}")

    query = {"charset": "utf8mb4"}
    for pair in (match.group("params") or "").split("&"):
        key, _, value = pair.partition("=")
        if key == "charset" and value:
            query["charset"] = value

    host, port = None, None
    addr = match.group("addr") or ""
    if match.group("net") == "unix":
        query["unix_socket"] = addr
    elif addr:
        host, _, port_text = addr.rpartition(":") if ":" in addr else (addr, "", "")
        port = int(port_text) if port_text else None

    return URL.create(
        "mysql+aiomysql",
        username=match.group("user") or None,
        password=match.group("password") or None,
        host=host or None,
        port=port,
        database=match.group("database") or None,
        query=query,
    )


class ServerSettings(BaseModel):
    """MCP server identity"""
    name: str = DEFAULT_SERVER_NAME
    version: str = DEFAULT_SERVER_VERSION

    @field_validator("name", "version")
    @classmethod
    def _default_when_blank(cls, value: str, info) -> str:
        if value.strip():
            return value
        return DEFAULT_SERVER_NAME if info.field_name == "name" else DEFAULT_SERVER_VERSION


class MySQLSettings(BaseModel):
    """MySQL connection, pool and query-policy configuration"""
    dsn: str = ""
    max_open_conns: int = 0
    max_idle_conns: int = 0
    conn_max_lifetime_seconds: int = 0
    conn_max_idle_time_seconds: int = 0
    query_timeout_seconds: int = DEFAULT_QUERY_TIMEOUT_SECONDS
    max_rows: int = DEFAULT_MAX_ROWS
    allow_statement_prefixes: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOW_STATEMENT_PREFIXES)
    )
    deny_substrings: List[str] = Field(default_factory=lambda: list(DEFAULT_DENY_SUBSTRINGS))

    @field_validator("allow_statement_prefixes")
    @classmethod
    def _default_prefixes(cls, value: List[str]) -> List[str]:
        return list(value) if value else list(DEFAULT_ALLOW_STATEMENT_PREFIXES)

    @field_validator("deny_substrings")
    @classmethod
    def _default_deny(cls, value: List[str]) -> List[str]:
        # Kept as configured; QueryPolicy normalizes them
        return list(value) if value else list(DEFAULT_DENY_SUBSTRINGS)

    def get_connection_string(self) -> URL:
        """
        Build an async SQLAlchemy URL from the configured DSN.

        Accepts SQLAlchemy URLs (any mysql/sqlite driver is swapped for its
        asyncio counterpart) and Go-style ``user:pass@tcp(host:port)/db`` DSNs.
        """
        dsn = self.dsn.strip()
        if not dsn:
            raise ConfigurationError("mysql.dsn is required in config")

        if "://" not in dsn:
            return _parse_go_dsn(dsn)

        try:
            url = make_url(dsn)
        except ArgumentError as e:
            raise ConfigurationError(f"invalid mysql dsn: {e}") from e

        backend = url.get_backend_name()
        if backend not in _ASYNC_DRIVERS:
            raise ConfigurationError(f"unsupported database backend: {backend}")
        return url.set(drivername=_ASYNC_DRIVERS[backend])

    def pool_options(self) -> dict:
        """Translate connection-pool limits into create_async_engine keyword arguments"""
        options = {"pool_pre_ping": True}

        if self.max_open_conns > 0:
            pool_size = self.max_open_conns
            if 0 < self.max_idle_conns < self.max_open_conns:
                pool_size = self.max_idle_conns
            options["pool_size"] = pool_size
            options["max_overflow"] = self.max_open_conns - pool_size
        elif self.max_idle_conns > 0:
            options["pool_size"] = self.max_idle_conns

        # QueuePool has no idle timeout; recycle on the tighter of the two limits
        limits = [s for s in (self.conn_max_lifetime_seconds, self.conn_max_idle_time_seconds) if s > 0]
        if limits:
            options["pool_recycle"] = min(limits)

        return options


class LoggingSettings(BaseModel):
    """loguru sink configuration"""
    level: str = "INFO"
    file: str = ""


class Settings(BaseSettings):
    """Gateway settings from config file and environment variables."""

    server: ServerSettings = Field(default_factory=ServerSettings)
    mysql: MySQLSettings = Field(default_factory=MySQLSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_prefix="MYSQLMCP_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # Environment wins over the TOML file
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
        )


def load_settings(config_path: Union[str, Path]) -> Settings:
    """
    Load settings once at startup.

    Args:
        config_path: Path to the TOML config file

    Returns:
        Settings instance with defaults applied

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    path = Path(config_path)
    if not path.is_file():
        raise ConfigurationError(f"config file not found: {path}")

    # Pick up MYSQLMCP_* variables from a local .env without overriding the real environment
    load_dotenv(override=False)

    class _FileSettings(Settings):
        model_config = SettingsConfigDict(toml_file=path)

    try:
        settings = _FileSettings()
    except ValidationError as e:
        raise ConfigurationError(f"invalid config {path}: {e}") from e
    except ValueError as e:
        # tomllib.TOMLDecodeError is a ValueError
        raise ConfigurationError(f"failed to parse config {path}: {e}") from e

    logger.debug(f"Loaded config from: {path}")
    return settings
