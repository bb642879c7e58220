"""Durable per-key storage for booking session state."""

import json
from typing import Any, Optional

from pydantic_core import to_jsonable_python
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.observability import get_logger, metrics_collector
from ..models.stored_value import StoredValue

logger = get_logger(__name__)


class Absent:
    """Marker for a key with no usable stored value."""

    _instance: Optional["Absent"] = None

    def __new__(cls) -> "Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = Absent()


class PersistenceAdapter:
    """
    Key-value snapshots under one scope, one row per key.

    Each snapshot commits in its own transaction, so a value is either fully
    written or not written at all. Nothing spans keys: after a restart some
    keys may be present and others not.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], scope: str):
        if not scope:
            raise ValueError("scope must not be empty")
        self.session_factory = session_factory
        self.scope = scope

    async def snapshot(self, key: str, value: Any) -> None:
        """Serialize value and store it under key, replacing any previous value."""
        payload = json.dumps(to_jsonable_python(value))

        async with self.session_factory() as db:
            async with db.begin():
                stmt = select(StoredValue).where(StoredValue.scope == self.scope, StoredValue.key == key)
                row = (await db.execute(stmt)).scalar_one_or_none()
                if row is None:
                    db.add(StoredValue(scope=self.scope, key=key, value=payload))
                else:
                    row.value = payload

        logger.debug("snapshot_written", scope=self.scope, key=key, size=len(payload))

    async def restore(self, key: str) -> Any:
        """
        Read the value stored under key.

        Returns:
            The decoded value, or ABSENT when nothing is stored or the stored
            text cannot be decoded
        """
        async with self.session_factory() as db:
            stmt = select(StoredValue.value).where(StoredValue.scope == self.scope, StoredValue.key == key)
            payload = (await db.execute(stmt)).scalar_one_or_none()

        if payload is None:
            return ABSENT

        try:
            return json.loads(payload)
        except ValueError as e:
            self.report_corrupt(key, str(e))
            return ABSENT

    def report_corrupt(self, key: str, reason: str) -> None:
        """Log and count a stored value that is treated as absent."""
        logger.warning("snapshot_corrupt_treated_as_absent", scope=self.scope, key=key, reason=reason)
        metrics_collector.record_restore_failure(key)

    async def clear(self, key: str) -> None:
        """Remove the value under key. Clearing a missing key is a no-op."""
        async with self.session_factory() as db:
            async with db.begin():
                await db.execute(
                    delete(StoredValue).where(StoredValue.scope == self.scope, StoredValue.key == key)
                )

    async def clear_all(self) -> None:
        """Remove every value in this scope."""
        async with self.session_factory() as db:
            async with db.begin():
                await db.execute(delete(StoredValue).where(StoredValue.scope == self.scope))
        logger.debug("scope_cleared", scope=self.scope)

    async def keys(self) -> list[str]:
        """Keys currently stored in this scope, for inspecting what a draft left behind."""
        async with self.session_factory() as db:
            stmt = select(StoredValue.key).where(StoredValue.scope == self.scope).order_by(StoredValue.key)
            return list((await db.execute(stmt)).scalars())
