from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from fitstudio.db.database import Base
from fitstudio.models.enums import SessionStatus


class LiveSession(Base):
    """A scheduled live group session with a bounded roster."""

    __tablename__ = "live_sessions"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    session_type = Column(String(50), nullable=True)
    package_plan = Column(String(50), nullable=True, comment="Plan tag matched against package names")
    scheduled_at = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False, default=60)
    trainer_name = Column(String(200), nullable=True)
    max_capacity = Column(Integer, nullable=False, default=10)
    current_capacity = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=SessionStatus.UPCOMING.value)
    cloned_from_id = Column(Integer, ForeignKey("live_sessions.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    client_links = relationship(
        "SessionClient",
        back_populates="session",
        order_by="SessionClient.position",
        cascade="all, delete-orphan",
    )
    waitlist_entries = relationship(
        "SessionWaitlist",
        back_populates="session",
        order_by="SessionWaitlist.position",
        cascade="all, delete-orphan",
    )


class SessionClient(Base):
    """One seat in a session roster. ``position`` keeps assignment order."""

    __tablename__ = "session_clients"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("live_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    assigned_at = Column(DateTime, default=datetime.utcnow)

    session = relationship("LiveSession", back_populates="client_links")
    client = relationship("Client", back_populates="session_links")

    __table_args__ = (
        UniqueConstraint("session_id", "client_id", name="uq_session_client"),
        UniqueConstraint("session_id", "position", name="uq_session_position"),
    )


class SessionWaitlist(Base):
    """A client waiting for a seat. ``position`` is 1-based and kept contiguous."""

    __tablename__ = "session_waitlist"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("live_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    added_at = Column(DateTime, default=datetime.utcnow)

    session = relationship("LiveSession", back_populates="waitlist_entries")
    client = relationship("Client")

    __table_args__ = (
        UniqueConstraint("session_id", "client_id", name="uq_waitlist_client"),
    )
