import logging
from collections.abc import Iterable, Sequence
from uuid import uuid4

from rootsy.config import Settings
from rootsy.core.record_store import RecordStore
from rootsy.models.common import CloudProvider, LogGroupStatus
from rootsy.models.intake import LogGrouping, RawLogRecord
from rootsy.models.logs import Log, LogGroup
from rootsy.models.sessions import Session

logger = logging.getLogger(__name__)


class SessionCoordinator:
    """Tracks the current session and fronts the record store.

    One coordinator exists per running app. The current session pointer is
    process-local and starts as None; only ``set_current_session`` changes it.
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store
        self._current_session: Session | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionCoordinator":
        return cls(RecordStore.from_settings(settings))

    async def initialize(self) -> None:
        await self.store.initialize()

    async def close(self) -> None:
        await self.store.close()

    def get_current_session(self) -> Session | None:
        return self._current_session

    async def set_current_session(self, session_id: str) -> Session | None:
        """Make ``session_id`` the current session.

        Returns:
            The session, or None if it does not exist. A failed switch keeps
            the previous selection.
        """
        session = await self.store.get_session(session_id)
        if session is None:
            logger.info(f"Session {session_id} not found, keeping current selection")
            return None
        self._current_session = session
        logger.info(f"Switched to session {session.id} ({session.name})")
        return session

    # Store delegation

    async def create_session(
        self,
        name: str,
        cloud_provider: CloudProvider | str,
        start_time: int,
        end_time: int,
    ) -> Session:
        return await self.store.create_session(name, cloud_provider, start_time, end_time)

    async def get_session(self, session_id: str) -> Session | None:
        return await self.store.get_session(session_id)

    async def get_all_sessions(self) -> list[Session]:
        return await self.store.get_all_sessions()

    async def update_session(self, session: Session) -> Session:
        return await self.store.update_session(session)

    async def delete_session(self, session_id: str) -> None:
        await self.store.delete_session(session_id)

    async def save_logs(self, logs: Sequence[Log]) -> None:
        await self.store.save_logs(logs)

    async def get_session_logs(self, session_id: str) -> list[Log]:
        return await self.store.get_session_logs(session_id)

    async def count_session_logs(self, session_id: str) -> int:
        return await self.store.count_session_logs(session_id)

    async def create_log_group(
        self, session_id: str, name: str, description: str | None = None
    ) -> LogGroup:
        return await self.store.create_log_group(session_id, name, description)

    async def get_log_group(self, group_id: str) -> LogGroup | None:
        return await self.store.get_log_group(group_id)

    async def get_session_log_groups(self, session_id: str) -> list[LogGroup]:
        return await self.store.get_session_log_groups(session_id)

    async def update_log_group(self, group: LogGroup) -> LogGroup:
        return await self.store.update_log_group(group)

    async def assign_logs_to_group(self, group_id: str, log_ids: Sequence[str]) -> None:
        await self.store.assign_logs_to_group(group_id, log_ids)

    async def get_group_logs(self, group_id: str) -> list[Log]:
        return await self.store.get_group_logs(group_id)

    # Intake from the fetch, grouping and analysis steps

    async def ingest_logs(self, session_id: str, records: Iterable[RawLogRecord]) -> list[Log]:
        """Store fetched log records under a session, assigning fresh ids."""
        logs = [
            Log(
                id=str(uuid4()),
                session_id=session_id,
                log_content=record.content,
                timestamp=record.timestamp,
                service=record.service,
                log_level=record.level,
            )
            for record in records
        ]
        await self.store.save_logs(logs)
        logger.info(f"Ingested {len(logs)} logs into session {session_id}")
        return logs

    async def apply_groupings(
        self, session_id: str, groupings: Iterable[LogGrouping]
    ) -> list[LogGroup]:
        """Create one log group per grouping and attach its logs."""
        groups: list[LogGroup] = []
        for grouping in groupings:
            group = await self.store.create_log_group(
                session_id, grouping.name, grouping.description
            )
            await self.store.assign_logs_to_group(group.id, grouping.log_ids)
            groups.append(group)
        logger.info(f"Applied {len(groups)} groupings to session {session_id}")
        return groups

    async def record_analysis(
        self, group_id: str, root_cause: str, suggested_fix: str
    ) -> LogGroup | None:
        """Attach root cause and fix text to a group and mark it analyzed."""
        group = await self.store.get_log_group(group_id)
        if group is None:
            return None
        group = group.model_copy(
            update={
                "root_cause": root_cause,
                "suggested_fix": suggested_fix,
                "status": LogGroupStatus.ANALYZED,
            }
        )
        return await self.store.update_log_group(group)
