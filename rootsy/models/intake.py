"""Values handed to the core by the fetch, grouping and analysis steps."""

from typing import cast

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RawLogRecord(BaseModel):
    """A log line as returned by a cloud provider fetch."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    content: str
    timestamp: int
    service: str | None = None
    level: str | None = None


class LogGrouping(BaseModel):
    """One cluster proposed by the grouping step."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    description: str | None = None
    log_ids: list[str] = Field(default_factory=lambda: cast(list[str], []))


class GroupAnalysis(BaseModel):
    """Root cause and fix text produced for a log group."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    root_cause: str
    suggested_fix: str
