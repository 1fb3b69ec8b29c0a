"""
Tests for catalog locator routing.
"""

import json

import pytest

from mysql_readonly_mcp.resources.router import ResourceRouter, is_identifier
from mysql_readonly_mcp.sql.execution.result import BoundedQueryResult
from mysql_readonly_mcp.utils.errors import ResourceNotFoundError


class RecordingExecutor:
    """Stands in for BoundedExecutor; records the SQL it is asked to run"""

    def __init__(self, result=None):
        self.queries = []
        self.result = result or BoundedQueryResult(
            columns=["Database"], rows=[["app"], ["mysql"]], row_count=2
        )

    async def execute(self, query):
        self.queries.append(query)
        return self.result


@pytest.fixture
def router():
    return ResourceRouter(RecordingExecutor())


class TestResolve:
    """resolve() maps locators onto canned catalog queries"""

    def test_databases(self, router):
        assert router.resolve("mysql://databases").sql == "SHOW DATABASES"

    def test_tables(self, router):
        assert router.resolve("mysql://tables/my_db").sql == "SHOW TABLES FROM `my_db`"

    def test_schema(self, router):
        query = router.resolve("mysql://schema/app/users")
        assert query.sql == "DESCRIBE `app`.`users`"
        assert query.uri == "mysql://schema/app/users"

    def test_scheme_and_host_case_insensitive(self, router):
        assert router.resolve("MYSQL://DATABASES").sql == "SHOW DATABASES"
        assert router.resolve("mysql://Tables/App").sql == "SHOW TABLES FROM `App`"

    @pytest.mark.parametrize(
        "uri",
        [
            "mysql://tables/my-db; drop",
            "mysql://tables/my-db",
            "mysql://tables/db`x",
            "mysql://tables/my%2Ddb",
            "mysql://tables/a%60b",
            "mysql://schema/app/users;drop",
            "mysql://schema/app/us ers",
            "mysql://schema/app/a%2Fb",
        ],
    )
    def test_invalid_identifiers(self, router, uri):
        with pytest.raises(ResourceNotFoundError, match="Resource not found"):
            router.resolve(uri)

    @pytest.mark.parametrize(
        "uri",
        [
            "mysql://tables",
            "mysql://tables/",
            "mysql://tables/app/users",
            "mysql://schema/app",
            "mysql://schema/app/users/extra",
            "mysql://databases/app",
            "mysql://views/app",
            "http://databases",
            "databases",
            "",
        ],
    )
    def test_unknown_shapes(self, router, uri):
        with pytest.raises(ResourceNotFoundError) as exc_info:
            router.resolve(uri)
        assert exc_info.value.uri == uri
        assert exc_info.value.code == "not_found"


class TestRead:
    """read() runs the canned query through the executor"""

    @pytest.mark.asyncio
    async def test_read_returns_json(self):
        executor = RecordingExecutor()
        router = ResourceRouter(executor)

        body = json.loads(await router.read("mysql://databases"))

        assert executor.queries == ["SHOW DATABASES"]
        assert body == {
            "columns": ["Database"],
            "rows": [["app"], ["mysql"]],
            "rowCount": 2,
            "truncated": False,
        }

    @pytest.mark.asyncio
    async def test_invalid_locator_never_executes(self):
        executor = RecordingExecutor()
        router = ResourceRouter(executor)

        with pytest.raises(ResourceNotFoundError):
            await router.read("mysql://tables/x;drop table y")

        assert executor.queries == []


def test_is_identifier():
    assert is_identifier("orders_2024")
    assert not is_identifier("")
    assert not is_identifier("a.b")
    assert not is_identifier("name\n")
