import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from rootsy.api.deps import CoordinatorDep, storage_http_error
from rootsy.core.errors import StorageError
from rootsy.models.common import LogGroupStatus
from rootsy.models.intake import GroupAnalysis
from rootsy.models.logs import Log, LogGroup

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/groups", tags=["groups"])

# Fields a PUT may set back to null
_CLEARABLE_FIELDS = {"description", "root_cause", "suggested_fix"}


class LogGroupUpdate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str | None = None
    description: str | None = None
    root_cause: str | None = None
    suggested_fix: str | None = None
    status: LogGroupStatus | None = None


class LogAssignment(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    log_ids: list[str] = Field(min_length=1)


@router.get("/{group_id}")
async def get_log_group(group_id: str, coordinator: CoordinatorDep) -> LogGroup:
    try:
        group = await coordinator.get_log_group(group_id)
    except StorageError as e:
        logger.exception("Error in get_log_group: %s", e)
        raise storage_http_error(e) from e
    if group is None:
        raise HTTPException(status_code=404, detail="Log group not found")
    return group


@router.put("/{group_id}")
async def update_log_group(
    group_id: str, body: LogGroupUpdate, coordinator: CoordinatorDep
) -> LogGroup:
    """Apply the supplied fields to a group. Any status may be written.

    An explicit null clears description, rootCause or suggestedFix; omitted
    fields are kept.
    """
    try:
        group = await coordinator.get_log_group(group_id)
        if group is None:
            raise HTTPException(status_code=404, detail="Log group not found")
        changes = {
            key: value
            for key, value in body.model_dump(exclude_unset=True).items()
            if value is not None or key in _CLEARABLE_FIELDS
        }
        return await coordinator.update_log_group(group.model_copy(update=changes))
    except StorageError as e:
        logger.exception("Error in update_log_group: %s", e)
        raise storage_http_error(e) from e


@router.get("/{group_id}/logs")
async def get_group_logs(group_id: str, coordinator: CoordinatorDep) -> list[Log]:
    try:
        return await coordinator.get_group_logs(group_id)
    except StorageError as e:
        logger.exception("Error in get_group_logs: %s", e)
        raise storage_http_error(e) from e


@router.post("/{group_id}/logs")
async def assign_logs(
    group_id: str, body: LogAssignment, coordinator: CoordinatorDep
) -> list[Log]:
    """Move the listed logs into this group and return the group's logs."""
    try:
        if await coordinator.get_log_group(group_id) is None:
            raise HTTPException(status_code=404, detail="Log group not found")
        await coordinator.assign_logs_to_group(group_id, body.log_ids)
        return await coordinator.get_group_logs(group_id)
    except StorageError as e:
        logger.exception("Error in assign_logs: %s", e)
        raise storage_http_error(e) from e


@router.post("/{group_id}/analysis")
async def record_analysis(
    group_id: str, body: GroupAnalysis, coordinator: CoordinatorDep
) -> LogGroup:
    """Store root cause and suggested fix text and mark the group analyzed."""
    try:
        group = await coordinator.record_analysis(group_id, body.root_cause, body.suggested_fix)
    except StorageError as e:
        logger.exception("Error in record_analysis: %s", e)
        raise storage_http_error(e) from e
    if group is None:
        raise HTTPException(status_code=404, detail="Log group not found")
    return group
