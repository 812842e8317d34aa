import asyncio
import logging
import time
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from pathlib import Path
from uuid import uuid4

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rootsy.config import Settings
from rootsy.core.errors import StorageError, WriteFailedError
from rootsy.db.database import Database
from rootsy.db.models import LogGroupRecord, LogRecord, SessionRecord
from rootsy.models.common import CloudProvider, LogGroupStatus, SessionStatus
from rootsy.models.logs import Log, LogGroup
from rootsy.models.sessions import Session

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


class RecordStore:
    """Durable storage for sessions, logs and log groups.

    Every mutating call runs in its own transaction and writes through
    immediately. Writes on one instance are serialized, so a transaction
    always completes before the next one begins. Reads are not serialized.
    """

    def __init__(self, db_path: Path, echo: bool = False) -> None:
        self._db = Database(db_path, echo=echo)
        self._write_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "RecordStore":
        return cls(settings.database_path, echo=settings.DATABASE_ECHO)

    @property
    def db_path(self) -> Path:
        return self._db.db_path

    async def initialize(self) -> None:
        await self._db.initialize()

    async def close(self) -> None:
        await self._db.close()

    @asynccontextmanager
    async def _transaction(self, action: str) -> AsyncIterator[AsyncSession]:
        """Run a block as one serialized, all-or-nothing transaction."""
        async with self._write_lock, self._db.session() as db:
            try:
                async with db.begin():
                    yield db
            except SQLAlchemyError as e:
                logger.warning(f"{action} rolled back: {e}")
                raise WriteFailedError(f"{action} failed: {e}") from e

    @asynccontextmanager
    async def _reader(self) -> AsyncIterator[AsyncSession]:
        async with self._db.session() as db:
            try:
                yield db
            except SQLAlchemyError as e:
                raise StorageError(f"Query failed: {e}") from e

    # Sessions

    async def create_session(
        self,
        name: str,
        cloud_provider: CloudProvider | str,
        start_time: int,
        end_time: int,
    ) -> Session:
        """Create a new debugging session with status ``new``."""
        now = now_ms()
        session = Session(
            id=str(uuid4()),
            name=name,
            created_at=now,
            updated_at=now,
            cloud_provider=CloudProvider(cloud_provider),
            start_time=start_time,
            end_time=end_time,
            status=SessionStatus.NEW,
        )
        async with self._transaction("create_session") as db:
            db.add(SessionRecord(**session.model_dump(mode="json")))
        logger.debug(f"Created session {session.id} ({session.name})")
        return session

    async def get_session(self, session_id: str) -> Session | None:
        async with self._reader() as db:
            rec = await db.get(SessionRecord, session_id)
            if rec is None:
                return None
            return Session.model_validate(rec, from_attributes=True)

    async def get_all_sessions(self) -> list[Session]:
        """List all sessions, most recently updated first."""
        async with self._reader() as db:
            result = await db.execute(
                select(SessionRecord).order_by(SessionRecord.updated_at.desc())
            )
            return [
                Session.model_validate(rec, from_attributes=True) for rec in result.scalars()
            ]

    async def update_session(self, session: Session) -> Session:
        """Overwrite a session's mutable fields.

        ``updated_at`` is always replaced by the current time and is kept
        strictly greater than the stored value, whatever the caller passed.

        Returns:
            A copy of ``session`` carrying the ``updated_at`` that was written.
        """
        async with self._transaction("update_session") as db:
            stored = await db.scalar(
                select(SessionRecord.updated_at).where(SessionRecord.id == session.id)
            )
            updated_at = now_ms()
            if stored is not None and updated_at <= stored:
                updated_at = stored + 1
            await db.execute(
                update(SessionRecord)
                .where(SessionRecord.id == session.id)
                .values(
                    name=session.name,
                    updated_at=updated_at,
                    cloud_provider=str(session.cloud_provider),
                    start_time=session.start_time,
                    end_time=session.end_time,
                    status=str(session.status),
                )
            )
        if stored is None:
            logger.debug(f"update_session: no session {session.id}, nothing written")
        return session.model_copy(update={"updated_at": updated_at})

    async def delete_session(self, session_id: str) -> None:
        """Delete a session together with its logs and log groups.

        Logs go first, then groups, then the session, all in one transaction.
        Logs from other sessions that were assigned to one of these groups
        become unassigned.
        """
        async with self._transaction("delete_session") as db:
            group_ids = select(LogGroupRecord.id).where(LogGroupRecord.session_id == session_id)
            await db.execute(delete(LogRecord).where(LogRecord.session_id == session_id))
            await db.execute(
                update(LogRecord).where(LogRecord.group_id.in_(group_ids)).values(group_id=None)
            )
            await db.execute(delete(LogGroupRecord).where(LogGroupRecord.session_id == session_id))
            await db.execute(delete(SessionRecord).where(SessionRecord.id == session_id))
        logger.debug(f"Deleted session {session_id}")

    # Logs

    async def save_logs(self, logs: Sequence[Log]) -> None:
        """Insert a batch of logs atomically.

        Raises:
            WriteFailedError: If any row fails (duplicate id, unknown session
                or group). No row of the batch is kept.
        """
        if not logs:
            return
        async with self._transaction("save_logs") as db:
            for log in logs:
                await db.execute(insert(LogRecord).values(**log.model_dump()))
        logger.debug(f"Saved {len(logs)} logs")

    async def get_session_logs(self, session_id: str) -> list[Log]:
        async with self._reader() as db:
            result = await db.execute(
                select(LogRecord)
                .where(LogRecord.session_id == session_id)
                .order_by(LogRecord.timestamp.asc())
            )
            return [Log.model_validate(rec, from_attributes=True) for rec in result.scalars()]

    async def count_session_logs(self, session_id: str) -> int:
        async with self._reader() as db:
            count = await db.scalar(
                select(func.count(LogRecord.id)).where(LogRecord.session_id == session_id)
            )
            return count or 0

    # Log groups

    async def create_log_group(
        self, session_id: str, name: str, description: str | None = None
    ) -> LogGroup:
        group = LogGroup(
            id=str(uuid4()),
            session_id=session_id,
            name=name,
            description=description,
            status=LogGroupStatus.NEW,
        )
        async with self._transaction("create_log_group") as db:
            db.add(LogGroupRecord(**group.model_dump(mode="json")))
        logger.debug(f"Created log group {group.id} ({group.name}) in session {session_id}")
        return group

    async def get_log_group(self, group_id: str) -> LogGroup | None:
        async with self._reader() as db:
            rec = await db.get(LogGroupRecord, group_id)
            if rec is None:
                return None
            return LogGroup.model_validate(rec, from_attributes=True)

    async def get_session_log_groups(self, session_id: str) -> list[LogGroup]:
        """List a session's log groups ordered by name."""
        async with self._reader() as db:
            result = await db.execute(
                select(LogGroupRecord)
                .where(LogGroupRecord.session_id == session_id)
                .order_by(LogGroupRecord.name.asc())
            )
            return [
                LogGroup.model_validate(rec, from_attributes=True) for rec in result.scalars()
            ]

    async def update_log_group(self, group: LogGroup) -> LogGroup:
        """Overwrite a group's mutable fields. Any status value is accepted."""
        async with self._transaction("update_log_group") as db:
            await db.execute(
                update(LogGroupRecord)
                .where(LogGroupRecord.id == group.id)
                .values(
                    name=group.name,
                    description=group.description,
                    root_cause=group.root_cause,
                    suggested_fix=group.suggested_fix,
                    status=str(group.status),
                )
            )
        return group

    async def assign_logs_to_group(self, group_id: str, log_ids: Sequence[str]) -> None:
        """Point each named log at ``group_id`` in one transaction.

        A log already in another group is moved. Ids that match no log are
        skipped.
        """
        if not log_ids:
            return
        missing = 0
        async with self._transaction("assign_logs_to_group") as db:
            for log_id in log_ids:
                result = await db.execute(
                    update(LogRecord).where(LogRecord.id == log_id).values(group_id=group_id)
                )
                if result.rowcount == 0:
                    missing += 1
        if missing:
            logger.debug(f"assign_logs_to_group: {missing} unknown log ids for group {group_id}")

    async def get_group_logs(self, group_id: str) -> list[Log]:
        async with self._reader() as db:
            result = await db.execute(
                select(LogRecord)
                .where(LogRecord.group_id == group_id)
                .order_by(LogRecord.timestamp.asc())
            )
            return [Log.model_validate(rec, from_attributes=True) for rec in result.scalars()]
