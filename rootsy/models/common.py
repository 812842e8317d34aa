from enum import StrEnum


class CloudProvider(StrEnum):
    """Cloud a session pulls its logs from."""

    AWS = "aws"
    AZURE = "azure"
    GCP = "gcp"


class SessionStatus(StrEnum):
    """Lifecycle of a debugging session.

    Transitions (new -> in_progress -> completed) are advisory; callers set
    them and nothing in the store checks them.
    """

    NEW = "new"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class LogGroupStatus(StrEnum):
    """Analysis progress of a log group."""

    NEW = "new"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"
    RESOLVED = "resolved"
