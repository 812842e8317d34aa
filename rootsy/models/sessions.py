from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from rootsy.models.common import CloudProvider, SessionStatus


class Session(BaseModel):
    """A debugging session scoped to a cloud provider and time range.

    Timestamps are epoch milliseconds.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    created_at: int
    updated_at: int
    cloud_provider: CloudProvider
    start_time: int
    end_time: int
    status: SessionStatus = SessionStatus.NEW


class SessionSummary(Session):
    """Session row for list views, with the number of logs it owns."""

    log_count: int = 0
