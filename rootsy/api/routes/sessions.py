import logging
from datetime import timedelta

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from rootsy.api.deps import CoordinatorDep, storage_http_error
from rootsy.config import get_settings
from rootsy.core.errors import StorageError
from rootsy.core.record_store import now_ms
from rootsy.core.session_coordinator import SessionCoordinator
from rootsy.models.common import CloudProvider, SessionStatus
from rootsy.models.intake import LogGrouping, RawLogRecord
from rootsy.models.logs import Log, LogGroup
from rootsy.models.sessions import Session, SessionSummary

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SessionCreate(_CamelModel):
    """Body for creating a session. Missing fields fall back to settings."""

    name: str
    cloud_provider: CloudProvider | None = None
    start_time: int | None = None
    end_time: int | None = None


class SessionUpdate(_CamelModel):
    name: str | None = None
    cloud_provider: CloudProvider | None = None
    start_time: int | None = None
    end_time: int | None = None
    status: SessionStatus | None = None


class SessionSwitch(_CamelModel):
    session_id: str


class LogGroupCreate(_CamelModel):
    name: str
    description: str | None = None


async def _require_session(coordinator: SessionCoordinator, session_id: str) -> Session:
    session = await coordinator.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.get("")
async def list_sessions(coordinator: CoordinatorDep) -> list[SessionSummary]:
    """List all sessions, most recently updated first, with log counts."""
    logger.debug("API: list_sessions called")
    try:
        sessions = await coordinator.get_all_sessions()
        return [
            SessionSummary(
                **session.model_dump(),
                log_count=await coordinator.count_session_logs(session.id),
            )
            for session in sessions
        ]
    except StorageError as e:
        logger.exception("Error in list_sessions: %s", e)
        raise storage_http_error(e) from e


@router.post("")
async def create_session(body: SessionCreate, coordinator: CoordinatorDep) -> Session:
    """Create a session covering the requested window (default: the last day)."""
    settings = get_settings()
    end_time = body.end_time if body.end_time is not None else now_ms()
    start_time = body.start_time
    if start_time is None:
        window = timedelta(hours=settings.DEFAULT_TIME_RANGE_HOURS)
        start_time = end_time - int(window.total_seconds() * 1000)
    if start_time > end_time:
        raise HTTPException(status_code=422, detail="startTime must not be after endTime")

    try:
        return await coordinator.create_session(
            body.name,
            body.cloud_provider or settings.DEFAULT_CLOUD_PROVIDER,
            start_time,
            end_time,
        )
    except StorageError as e:
        logger.exception("Error in create_session: %s", e)
        raise storage_http_error(e) from e


@router.get("/current")
async def get_current_session(coordinator: CoordinatorDep) -> Session:
    session = coordinator.get_current_session()
    if session is None:
        raise HTTPException(status_code=404, detail="No current session")
    return session


@router.put("/current")
async def switch_session(body: SessionSwitch, coordinator: CoordinatorDep) -> Session:
    """Make another session current. An unknown id leaves the selection as it was."""
    try:
        session = await coordinator.set_current_session(body.session_id)
    except StorageError as e:
        logger.exception("Error in switch_session: %s", e)
        raise storage_http_error(e) from e
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.get("/{session_id}")
async def get_session(session_id: str, coordinator: CoordinatorDep) -> Session:
    try:
        return await _require_session(coordinator, session_id)
    except StorageError as e:
        logger.exception("Error in get_session: %s", e)
        raise storage_http_error(e) from e


@router.put("/{session_id}")
async def update_session(
    session_id: str, body: SessionUpdate, coordinator: CoordinatorDep
) -> Session:
    """Apply the supplied fields to a session; omitted fields are kept."""
    try:
        session = await _require_session(coordinator, session_id)
        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        updated = session.model_copy(update=changes)
        if updated.start_time > updated.end_time:
            raise HTTPException(status_code=422, detail="startTime must not be after endTime")
        return await coordinator.update_session(updated)
    except StorageError as e:
        logger.exception("Error in update_session: %s", e)
        raise storage_http_error(e) from e


@router.delete("/{session_id}")
async def delete_session(session_id: str, coordinator: CoordinatorDep) -> dict[str, str]:
    """Delete a session with all of its logs and log groups.

    Raises:
        HTTPException: If the session is not found or deletion fails.
    """
    try:
        await _require_session(coordinator, session_id)
        await coordinator.delete_session(session_id)
        return {"status": "success", "message": f"Session {session_id} deleted"}
    except StorageError as e:
        logger.exception("Error in delete_session: %s", e)
        raise storage_http_error(e) from e


@router.get("/{session_id}/logs")
async def get_session_logs(session_id: str, coordinator: CoordinatorDep) -> list[Log]:
    try:
        await _require_session(coordinator, session_id)
        return await coordinator.get_session_logs(session_id)
    except StorageError as e:
        logger.exception("Error in get_session_logs: %s", e)
        raise storage_http_error(e) from e


@router.post("/{session_id}/logs")
async def ingest_logs(
    session_id: str, records: list[RawLogRecord], coordinator: CoordinatorDep
) -> list[Log]:
    """Store fetched log records in a session."""
    try:
        await _require_session(coordinator, session_id)
        return await coordinator.ingest_logs(session_id, records)
    except StorageError as e:
        logger.exception("Error in ingest_logs: %s", e)
        raise storage_http_error(e) from e


@router.get("/{session_id}/groups")
async def get_session_log_groups(session_id: str, coordinator: CoordinatorDep) -> list[LogGroup]:
    try:
        await _require_session(coordinator, session_id)
        return await coordinator.get_session_log_groups(session_id)
    except StorageError as e:
        logger.exception("Error in get_session_log_groups: %s", e)
        raise storage_http_error(e) from e


@router.post("/{session_id}/groups")
async def create_log_group(
    session_id: str, body: LogGroupCreate, coordinator: CoordinatorDep
) -> LogGroup:
    try:
        await _require_session(coordinator, session_id)
        return await coordinator.create_log_group(session_id, body.name, body.description)
    except StorageError as e:
        logger.exception("Error in create_log_group: %s", e)
        raise storage_http_error(e) from e


@router.post("/{session_id}/groupings")
async def apply_groupings(
    session_id: str, groupings: list[LogGrouping], coordinator: CoordinatorDep
) -> list[LogGroup]:
    """Create the proposed groups and attach their logs."""
    try:
        await _require_session(coordinator, session_id)
        return await coordinator.apply_groupings(session_id, groupings)
    except StorageError as e:
        logger.exception("Error in apply_groupings: %s", e)
        raise storage_http_error(e) from e
