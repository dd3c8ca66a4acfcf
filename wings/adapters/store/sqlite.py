"""SQLite legacy record store adapter.

Implements LegacyStorePort using SQLite with aiosqlite for async access.
Records and their permission lists are kept in two tables; a record's
permissions are replaced as a whole on every save.
"""

import asyncio
import json
import logging
import uuid
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite

from wings.core.models import AccessLevel, LegacyPermission, LegacyRecord, SubjectType
from wings.core.ports import LegacyStorePort
from wings.core.registry import ModelRegistry
from wings.core.schema import model_path, registered_legacy_type

logger = logging.getLogger(__name__)


class SQLiteLegacyStore(LegacyStorePort):
    """SQLite-backed legacy record store with connection pooling and async access."""

    def __init__(
        self,
        db_path: str,
        registry: ModelRegistry | None = None,
        pool_size: int = 5,
    ):
        """Initialize SQLite store with connection pooling.

        Args:
            db_path: Path to SQLite database file.
            registry: Registry resolving stored model paths to legacy types
                at read time. Rows of unregistered types fail to load.
            pool_size: Number of connections to maintain in the pool.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.registry = registry if registry is not None else ModelRegistry()
        self._pool: list[aiosqlite.Connection] = []
        self._pool_lock = asyncio.Lock()
        self._schema_lock = asyncio.Lock()
        self._pool_size = pool_size
        self._schema_initialized = False

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get a connection from the pool or create a new one."""
        async with self._pool_lock:
            if self._pool:
                return self._pool.pop()
        conn = await aiosqlite.connect(str(self.db_path))
        await conn.execute("PRAGMA foreign_keys = ON")
        return conn

    async def _return_connection(self, conn: aiosqlite.Connection) -> None:
        """Return a connection to the pool."""
        async with self._pool_lock:
            if len(self._pool) < self._pool_size:
                self._pool.append(conn)
                return
        await conn.close()

    async def close_pool(self) -> None:
        """Close all pooled connections."""
        async with self._pool_lock:
            for conn in self._pool:
                await conn.close()
            self._pool.clear()

    async def _init_schema(self) -> None:
        """Initialize database schema on first use.

        Only runs once per instance. Subsequent calls are no-ops.
        """
        if self._schema_initialized:
            return

        async with self._schema_lock:
            if self._schema_initialized:
                return

            conn = await self._get_connection()
            try:
                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS records (
                        id TEXT PRIMARY KEY,
                        model TEXT NOT NULL,
                        attributes_json TEXT NOT NULL DEFAULT '{}',
                        create_date TIMESTAMP,
                        modified_date TIMESTAMP
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
                await conn.commit()
                self._schema_initialized = True
            finally:
                await self._return_connection(conn)

    async def _load(
        self, conn: aiosqlite.Connection, record_id: str
    ) -> LegacyRecord | None:
        cursor = await conn.execute(
            "SELECT id, model, attributes_json, create_date, modified_date "
            "FROM records WHERE id = ?",
            (record_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        cursor = await conn.execute(
            "SELECT id, access, agent_name, subject_type, access_to_id "
            "FROM permissions WHERE record_id = ? ORDER BY position",
            (record_id,),
        )
        permission_rows = await cursor.fetchall()
        return self._row_to_record(tuple(row), [tuple(r) for r in permission_rows])

    async def get(self, record_id: str) -> LegacyRecord | None:
        """Look up a record and its permissions by id."""
        await self._init_schema()

        conn = await self._get_connection()
        try:
            return await self._load(conn, record_id)
        finally:
            await self._return_connection(conn)

    async def get_many(self, record_ids: Sequence[str]) -> list[LegacyRecord]:
        """Look up several records, keeping the requested order."""
        await self._init_schema()

        conn = await self._get_connection()
        try:
            records = []
            for record_id in record_ids:
                record = await self._load(conn, record_id)
                if record is not None:
                    records.append(record)
            return records
        finally:
            await self._return_connection(conn)

    async def find_by_access_to(
        self, target_id: str, legacy_type: type[LegacyRecord]
    ) -> LegacyRecord | None:
        """Return the first-stored ``legacy_type`` record with a permission on ``target_id``."""
        await self._init_schema()

        conn = await self._get_connection()
        try:
            # An upsert keeps the record's rowid, so rowid is first-insert order
            cursor = await conn.execute(
                "SELECT records.id FROM records "
                "JOIN permissions ON permissions.record_id = records.id "
                "WHERE permissions.access_to_id = ? AND records.model = ? "
                "ORDER BY records.rowid LIMIT 1",
                (target_id, model_path(legacy_type)),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return await self._load(conn, row[0])
        finally:
            await self._return_connection(conn)

    async def save(self, record: LegacyRecord) -> LegacyRecord:
        """Create or update a record, replacing its permission list."""
        await self._init_schema()

        # Match the caller's timezone awareness so the two dates stay comparable
        now = datetime.now(record.create_date.tzinfo if record.create_date else timezone.utc)
        record_id = record.id or str(uuid.uuid4())
        create_date = record.create_date or now
        modified_date = max(now, create_date)
        permissions = [
            replace(p, id=p.id or str(uuid.uuid4()), new_record=False)
            for p in record.permissions
        ]

        conn = await self._get_connection()
        try:
            await conn.execute(
                """
                INSERT INTO records (id, model, attributes_json, create_date, modified_date)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    model = excluded.model,
                    attributes_json = excluded.attributes_json,
                    create_date = excluded.create_date,
                    modified_date = excluded.modified_date
                """,
                (
                    record_id,
                    model_path(type(record)),
                    self._serialize_attributes(record.attributes),
                    create_date.isoformat(),
                    modified_date.isoformat(),
                ),
            )
            await conn.execute("DELETE FROM permissions WHERE record_id = ?", (record_id,))
            await conn.executemany(
                """
                INSERT INTO permissions
                (id, record_id, position, access, agent_name, subject_type, access_to_id)
                VALUES (?, ?, ?, ?, ?, ?, ?)
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
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise
        finally:
            await self._return_connection(conn)

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

        conn = await self._get_connection()
        try:
            cursor = await conn.execute("DELETE FROM records WHERE id = ?", (record_id,))
            await conn.commit()
            return cursor.rowcount > 0
        finally:
            await self._return_connection(conn)

    def _row_to_record(
        self, row: tuple[Any, ...], permission_rows: list[tuple[Any, ...]]
    ) -> LegacyRecord:
        """Convert database rows to a LegacyRecord.

        Raises:
            ValueError: If a row is malformed or contains invalid data.
        """
        try:
            record_id, model, attributes_json, create_date, modified_date = row

            try:
                create_dt = datetime.fromisoformat(create_date) if create_date else None
                modified_dt = datetime.fromisoformat(modified_date) if modified_date else None
            except (ValueError, TypeError) as e:
                raise ValueError(f"Invalid date format: {e}") from e

            permissions = [
                LegacyPermission(
                    id=perm_id,
                    access=AccessLevel(access),
                    agent_name=agent_name,
                    subject_type=SubjectType(subject_type),
                    access_to_id=access_to_id,
                    new_record=False,
                )
                for perm_id, access, agent_name, subject_type, access_to_id in permission_rows
            ]

            return registered_legacy_type(self.registry, model)(
                id=record_id,
                attributes=self._deserialize_attributes(attributes_json),
                new_record=False,
                create_date=create_dt,
                modified_date=modified_dt,
                permissions=permissions,
            )

        except ValueError as e:
            logger.error(f"Failed to parse database row: {e}")
            raise
        except Exception as e:
            logger.error(f"Unexpected error parsing database row: {e}")
            raise ValueError(f"Row parsing failed: {e}") from e

    @staticmethod
    def _serialize_attributes(attributes: dict[str, tuple[Any, ...]]) -> str:
        """Serialize an attribute mapping to JSON."""
        return json.dumps({name: list(values) for name, values in attributes.items()})

    @staticmethod
    def _deserialize_attributes(attributes_json: str) -> dict[str, tuple[Any, ...]]:
        """Deserialize an attribute mapping from JSON."""
        data = json.loads(attributes_json)
        return {name: tuple(values) for name, values in data.items()}
