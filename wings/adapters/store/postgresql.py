"""PostgreSQL legacy record store adapter.

Implements LegacyStorePort using PostgreSQL with asyncpg for async access.
Each save runs in one transaction so a record and its permission list
are always written together.
"""

import asyncio
import json
import logging
import uuid
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

import asyncpg

from wings.core.models import AccessLevel, LegacyPermission, LegacyRecord, SubjectType
from wings.core.ports import LegacyStorePort
from wings.core.registry import ModelRegistry
from wings.core.schema import model_path, registered_legacy_type

logger = logging.getLogger(__name__)


class PostgreSQLLegacyStore(LegacyStorePort):
    """PostgreSQL-backed legacy record store with connection pooling and async access."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "wings",
        user: str = "wings",
        password: str = "",
        registry: ModelRegistry | None = None,
        pool_size: int = 10,
    ):
        """Initialize PostgreSQL store with connection pooling.

        Args:
            host: PostgreSQL server hostname.
            port: PostgreSQL server port.
            database: Database name.
            user: Database user.
            password: Database password.
            registry: Registry resolving stored model paths to legacy types
                at read time. Rows of unregistered types fail to load.
            pool_size: Number of connections to maintain in the pool.
        """
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.registry = registry if registry is not None else ModelRegistry()
        self._pool: asyncpg.Pool | None = None
        self._pool_size = pool_size
        self._schema_lock = asyncio.Lock()
        self._schema_initialized = False

    async def _init_pool(self) -> None:
        """Initialize the connection pool on first use."""
        if self._pool is not None:
            return

        self._pool = await asyncpg.create_pool(
            host=self.host,
            port=self.port,
            database=self.database,
            user=self.user,
            password=self.password,
            min_size=1,
            max_size=self._pool_size,
        )

    async def close_pool(self) -> None:
        """Close all pooled connections."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def _init_schema(self) -> None:
        """Initialize database schema on first use.

        Only runs once per instance. Subsequent calls are no-ops.
        """
        if self._schema_initialized:
            return

        async with self._schema_lock:
            if self._schema_initialized:
                return

            await self._init_pool()
            assert self._pool is not None

            async with self._pool.acquire() as conn:
                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS records (
                        id TEXT PRIMARY KEY,
                        seq BIGSERIAL,
                        model TEXT NOT NULL,
                        attributes JSONB NOT NULL DEFAULT '{}'::jsonb,
                        create_date TIMESTAMPTZ,
                        modified_date TIMESTAMPTZ
                    )
                    """
                )
                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS permissions (
                        id TEXT PRIMARY KEY,
                        record_id TEXT NOT NULL
                            REFERENCES records(id) ON DELETE CASCADE,
                        position INTEGER NOT NULL,
                        access TEXT NOT NULL,
                        agent_name TEXT NOT NULL,
                        subject_type TEXT NOT NULL,
                        access_to_id TEXT
                    )
                    """
                )
                await conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_permissions_record ON permissions(record_id)"
                )
                await conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_permissions_access_to ON permissions(access_to_id)"
                )

                self._schema_initialized = True

    async def _load(self, conn: Any, record_id: str) -> LegacyRecord | None:
        row = await conn.fetchrow(
            "SELECT id, model, attributes, create_date, modified_date "
            "FROM records WHERE id = $1",
            record_id,
        )
        if row is None:
            return None
        permission_rows = await conn.fetch(
            "SELECT id, access, agent_name, subject_type, access_to_id "
            "FROM permissions WHERE record_id = $1 ORDER BY position",
            record_id,
        )
        return self._row_to_record(row, permission_rows)

    async def get(self, record_id: str) -> LegacyRecord | None:
        """Look up a record and its permissions by id."""
        await self._init_schema()
        assert self._pool is not None

        async with self._pool.acquire() as conn:
            return await self._load(conn, record_id)

    async def get_many(self, record_ids: Sequence[str]) -> list[LegacyRecord]:
        """Look up several records, keeping the requested order."""
        await self._init_schema()
        assert self._pool is not None

        records = []
        async with self._pool.acquire() as conn:
            for record_id in record_ids:
                record = await self._load(conn, record_id)
                if record is not None:
                    records.append(record)
        return records

    async def find_by_access_to(
        self, target_id: str, legacy_type: type[LegacyRecord]
    ) -> LegacyRecord | None:
        """Return the first-stored ``legacy_type`` record with a permission on ``target_id``."""
        await self._init_schema()
        assert self._pool is not None

        async with self._pool.acquire() as conn:
            # seq is assigned on first insert only; upserts leave it alone
            record_id = await conn.fetchval(
                "SELECT records.id FROM records "
                "JOIN permissions ON permissions.record_id = records.id "
                "WHERE permissions.access_to_id = $1 AND records.model = $2 "
                "ORDER BY records.seq LIMIT 1",
                target_id,
                model_path(legacy_type),
            )
            if record_id is None:
                return None
            return await self._load(conn, record_id)

    async def save(self, record: LegacyRecord) -> LegacyRecord:
        """Create or update a record, replacing its permission list."""
        await self._init_schema()
        assert self._pool is not None

        now = datetime.now(record.create_date.tzinfo if record.create_date else timezone.utc)
        record_id = record.id or str(uuid.uuid4())
        create_date = record.create_date or now
        modified_date = max(now, create_date)
        permissions = [
            replace(p, id=p.id or str(uuid.uuid4()), new_record=False)
            for p in record.permissions
        ]

        async with self._pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute(
                    """
                    INSERT INTO records (id, model, attributes, create_date, modified_date)
                    VALUES ($1, $2, $3::jsonb, $4, $5)
                    ON CONFLICT (id) DO UPDATE SET
                        model = $2,
                        attributes = $3::jsonb,
                        create_date = $4,
                        modified_date = $5
                    """,
                    record_id,
                    model_path(type(record)),
                    json.dumps({name: list(values) for name, values in record.attributes.items()}),
                    create_date,
                    modified_date,
                )
                await conn.execute("DELETE FROM permissions WHERE record_id = $1", record_id)
                await conn.executemany(
                    """
                    INSERT INTO permissions
                    (id, record_id, position, access, agent_name, subject_type, access_to_id)
                    VALUES ($1, $2, $3, $4, $5, $6, $7)
                    """,
                    [
                        (
                            p.id,
                            record_id,
                            position,
                            p.access.value,
                            p.agent_name,
                            p.subject_type.value,
                            p.access_to_id,
                        )
                        for position, p in enumerate(permissions)
                    ],
                )

        return replace(
            record,
            id=record_id,
            new_record=False,
            create_date=create_date,
            modified_date=modified_date,
            permissions=permissions,
        )

    async def delete(self, record_id: str) -> bool:
        """Delete a record; its permissions go with it."""
        await self._init_schema()
        assert self._pool is not None

        async with self._pool.acquire() as conn:
            status = await conn.execute("DELETE FROM records WHERE id = $1", record_id)
        # asyncpg returns the command tag, e.g. "DELETE 1"
        return status.split()[-1] != "0"

    def _row_to_record(self, row: Any, permission_rows: Sequence[Any]) -> LegacyRecord:
        """Convert database rows to a LegacyRecord.

        Raises:
            ValueError: If a row is malformed or contains invalid data.
        """
        try:
            legacy_type = registered_legacy_type(self.registry, row["model"])

            attributes = row["attributes"]
            if isinstance(attributes, str):
                attributes = json.loads(attributes)

            permissions = [
                LegacyPermission(
                    id=p["id"],
                    access=AccessLevel(p["access"]),
                    agent_name=p["agent_name"],
                    subject_type=SubjectType(p["subject_type"]),
                    access_to_id=p["access_to_id"],
                    new_record=False,
                )
                for p in permission_rows
            ]

            return legacy_type(
                id=row["id"],
                attributes={name: tuple(values) for name, values in attributes.items()},
                new_record=False,
                create_date=row["create_date"],
                modified_date=row["modified_date"],
                permissions=permissions,
            )

        except ValueError as e:
            logger.error(f"Failed to parse database row: {e}", exc_info=True)
            raise
        except Exception as e:
            logger.error(f"Unexpected error parsing database row: {e}", exc_info=True)
            raise ValueError(f"Row parsing failed: {e}") from e
