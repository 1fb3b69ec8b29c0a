"""
Shared fixtures: a seeded SQLite file served through the async pool.

SQLite stands in for MySQL here; the Database class selects the matching
read-only session and transaction statements for each dialect.
"""

import pytest
import pytest_asyncio
from sqlalchemy import create_engine

from mysql_readonly_mcp.config.settings import MySQLSettings
from mysql_readonly_mcp.infra.database import Database
from mysql_readonly_mcp.sql.execution.executor import BoundedExecutor
from mysql_readonly_mcp.sql.policy import QueryPolicy


USERS = [
    (1, "alice", 9.5, b"\x01avatar"),
    (2, "bob", 7.25, None),
    (3, "carol", 8.0, b"plain"),
]


@pytest.fixture
def sqlite_path(tmp_path):
    """SQLite file with a small users table"""
    path = tmp_path / "gateway.db"
    engine = create_engine(f"sqlite:///{path}")
    with engine.begin() as conn:
        conn.exec_driver_sql(
            "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, score REAL, avatar BLOB)"
        )
        for row in USERS:
            conn.exec_driver_sql("INSERT INTO users VALUES (?, ?, ?, ?)", row)
        conn.exec_driver_sql("CREATE TABLE numbers (n INTEGER)")
        for n in range(25):
            conn.exec_driver_sql("INSERT INTO numbers VALUES (?)", (n,))
    engine.dispose()
    return path


@pytest.fixture
def mysql_settings(sqlite_path):
    return MySQLSettings(dsn=f"sqlite:///{sqlite_path}")


@pytest_asyncio.fixture(scope="function")
async def database(mysql_settings):
    db = Database(mysql_settings)
    yield db
    await db.dispose()


@pytest.fixture
def policy():
    return QueryPolicy(timeout_seconds=5, max_rows=10)


@pytest.fixture
def executor(database, policy):
    return BoundedExecutor(database, policy)
