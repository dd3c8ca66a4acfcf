"""Tests for the PostgreSQL legacy record store adapter.

NOTE: These tests mock asyncpg so no PostgreSQL instance is needed. They
check the SQL issued and the row parsing, not PostgreSQL itself.
"""

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from wings.adapters.store.postgresql import PostgreSQLLegacyStore
from wings.core.models import AccessLevel, LegacyPermission, SubjectType
from wings.core.registry import ModelRegistry
from wings.core.resources import LegacyAccessControl, register_defaults
from wings.core.schema import model_path
from wings.tests.fakes import Book, BookResource, Monograph


class _AsyncContext:
    """Async context manager yielding a fixed object."""

    def __init__(self, value):
        self.value = value

    async def __aenter__(self):
        return self.value

    async def __aexit__(self, *exc_info):
        return False


@pytest.fixture
def registry() -> ModelRegistry:
    registry = register_defaults(ModelRegistry())
    registry.register(BookResource, Book)
    return registry


@pytest.fixture
def conn() -> MagicMock:
    conn = MagicMock()
    conn.execute = AsyncMock(return_value="DELETE 1")
    conn.executemany = AsyncMock()
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchval = AsyncMock(return_value=None)
    conn.transaction = MagicMock(return_value=_AsyncContext(None))
    return conn


@pytest.fixture
def pool(conn) -> MagicMock:
    pool = MagicMock()
    pool.acquire = MagicMock(return_value=_AsyncContext(conn))
    pool.close = AsyncMock()
    return pool


@pytest.fixture
def store(pool, registry):
    with patch(
        "wings.adapters.store.postgresql.asyncpg.create_pool",
        new=AsyncMock(return_value=pool),
    ):
        yield PostgreSQLLegacyStore(registry=registry)


class TestPostgreSQLStoreInitialization:
    def test_default_configuration(self):
        store = PostgreSQLLegacyStore()

        assert store.host == "localhost"
        assert store.port == 5432
        assert store.database == "wings"
        assert store.user == "wings"

    def test_custom_configuration(self):
        store = PostgreSQLLegacyStore(
            host="db", port=6543, database="repo", user="u", password="p"
        )

        assert (store.host, store.port, store.database, store.user, store.password) == (
            "db",
            6543,
            "repo",
            "u",
            "p",
        )


class TestPostgreSQLStoreOperations:
    @pytest.mark.asyncio
    async def test_schema_created_once(self, store, conn):
        await store.get("a")
        await store.get("b")

        create_calls = [c for c in conn.execute.call_args_list if "CREATE TABLE" in c.args[0]]
        assert len(create_calls) == 2  # records + permissions

    @pytest.mark.asyncio
    async def test_save_writes_record_and_permissions(self, store, conn):
        record = Book(
            id="book-1",
            attributes={"title": "Comet in Moominland"},
            permissions=[
                LegacyPermission(
                    access=AccessLevel.EDIT,
                    agent_name="editors",
                    subject_type=SubjectType.GROUP,
                    access_to_id="book-1",
                )
            ],
        )

        saved = await store.save(record)

        insert = next(c for c in conn.execute.call_args_list if "INSERT INTO records" in c.args[0])
        assert insert.args[1] == "book-1"
        assert insert.args[2] == model_path(Book)
        assert json.loads(insert.args[3]) == {"title": ["Comet in Moominland"]}

        (rows,) = conn.executemany.call_args.args[1:]
        assert rows[0][1:] == ("book-1", 0, "edit", "editors", "group", "book-1")
        assert saved.new_record is False
        assert saved.permissions[0].id is not None
        conn.transaction.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_parses_rows(self, store, conn):
        created = datetime(2024, 1, 1, tzinfo=UTC)
        conn.fetchrow.return_value = {
            "id": "book-1",
            "model": model_path(Book),
            "attributes": json.dumps({"title": ["Comet"], "author": ["Tove"]}),
            "create_date": created,
            "modified_date": created,
        }
        conn.fetch.return_value = [
            {
                "id": "perm-1",
                "access": "read",
                "agent_name": "public",
                "subject_type": "group",
                "access_to_id": None,
            }
        ]

        record = await store.get("book-1")

        assert type(record) is Book
        assert record.attributes == {"title": ("Comet",), "author": ("Tove",)}
        assert record.new_record is False
        assert record.permissions == [
            LegacyPermission(
                id="perm-1",
                access=AccessLevel.READ,
                agent_name="public",
                subject_type=SubjectType.GROUP,
                new_record=False,
            )
        ]

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        assert await store.get("missing") is None

    @pytest.mark.asyncio
    async def test_malformed_row_raises_value_error(self, store, conn):
        conn.fetchrow.return_value = {
            "id": "book-1",
            "model": model_path(Book),
            "attributes": "{}",
            "create_date": None,
            "modified_date": None,
        }
        conn.fetch.return_value = [
            {
                "id": "perm-1",
                "access": "own",
                "agent_name": "x",
                "subject_type": "person",
                "access_to_id": None,
            }
        ]

        with pytest.raises(ValueError):
            await store.get("book-1")

    @pytest.mark.asyncio
    async def test_unregistered_model_row_raises_value_error(self, store, conn):
        conn.fetchrow.return_value = {
            "id": "mono-1",
            "model": model_path(Monograph),
            "attributes": "{}",
            "create_date": None,
            "modified_date": None,
        }

        with pytest.raises(ValueError, match="Unknown model"):
            await store.get("mono-1")

    @pytest.mark.asyncio
    async def test_find_by_access_to_none(self, store, conn):
        assert await store.find_by_access_to("work-1", LegacyAccessControl) is None
        conn.fetchval.assert_awaited_once()
        conn.fetchrow.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_find_by_access_to_filters_type_in_first_stored_order(self, store, conn):
        await store.find_by_access_to("book-1", LegacyAccessControl)

        sql, *args = conn.fetchval.call_args.args
        assert "records.model = $2" in sql
        assert "ORDER BY records.seq" in sql
        assert args == ["book-1", model_path(LegacyAccessControl)]

    @pytest.mark.asyncio
    async def test_records_table_has_insertion_sequence(self, store, conn):
        await store.get("a")

        records_ddl = next(
            c.args[0]
            for c in conn.execute.call_args_list
            if "CREATE TABLE IF NOT EXISTS records" in c.args[0]
        )
        assert "seq BIGSERIAL" in records_ddl

    @pytest.mark.asyncio
    async def test_find_by_access_to_loads_match(self, store, conn):
        conn.fetchval.return_value = "acl-1"
        conn.fetchrow.return_value = {
            "id": "acl-1",
            "model": model_path(LegacyAccessControl),
            "attributes": "{}",
            "create_date": None,
            "modified_date": None,
        }
        conn.fetch.return_value = [
            {
                "id": "perm-1",
                "access": "edit",
                "agent_name": "editors",
                "subject_type": "group",
                "access_to_id": "book-1",
            }
        ]

        found = await store.find_by_access_to("book-1", LegacyAccessControl)

        assert type(found) is LegacyAccessControl
        assert found.permissions[0].access_to_id == "book-1"

    @pytest.mark.asyncio
    async def test_delete(self, store, conn):
        assert await store.delete("book-1") is True

        conn.execute.return_value = "DELETE 0"
        assert await store.delete("book-1") is False

    @pytest.mark.asyncio
    async def test_close_pool(self, store, pool):
        await store.get("a")
        await store.close_pool()

        pool.close.assert_awaited_once()
