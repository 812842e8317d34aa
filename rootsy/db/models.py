from sqlalchemy import BigInteger, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rootsy.db.database import Base


class SessionRecord(Base):
    """Database model for debugging sessions."""

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    cloud_provider: Mapped[str] = mapped_column(String, nullable=False)
    start_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    end_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)

    logs: Mapped[list["LogRecord"]] = relationship("LogRecord", back_populates="session")
    log_groups: Mapped[list["LogGroupRecord"]] = relationship(
        "LogGroupRecord", back_populates="session"
    )


class LogGroupRecord(Base):
    """Database model for a cluster of related logs."""

    __tablename__ = "log_groups"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    session_id: Mapped[str] = mapped_column(
        String, ForeignKey("sessions.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    root_cause: Mapped[str | None] = mapped_column(Text, nullable=True)
    suggested_fix: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False)

    session: Mapped[SessionRecord] = relationship("SessionRecord", back_populates="log_groups")
    logs: Mapped[list["LogRecord"]] = relationship("LogRecord", back_populates="group")


class LogRecord(Base):
    """Database model for a single log line within a session."""

    __tablename__ = "logs"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    session_id: Mapped[str] = mapped_column(
        String, ForeignKey("sessions.id"), nullable=False, index=True
    )
    log_content: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    service: Mapped[str | None] = mapped_column(String, nullable=True)
    log_level: Mapped[str | None] = mapped_column(String, nullable=True)
    group_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("log_groups.id"), nullable=True, index=True
    )

    session: Mapped[SessionRecord] = relationship("SessionRecord", back_populates="logs")
    group: Mapped[LogGroupRecord | None] = relationship("LogGroupRecord", back_populates="logs")
