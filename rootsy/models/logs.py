from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from rootsy.models.common import LogGroupStatus


class Log(BaseModel):
    """A single ingested log line."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    session_id: str
    log_content: str
    timestamp: int
    service: str | None = None
    log_level: str | None = None
    group_id: str | None = None  # None = unassigned

    @property
    def is_grouped(self) -> bool:
        return self.group_id is not None


class LogGroup(BaseModel):
    """A named cluster of logs believed to share one underlying issue."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    session_id: str
    name: str
    description: str | None = None
    root_cause: str | None = None
    suggested_fix: str | None = None
    status: LogGroupStatus = LogGroupStatus.NEW
