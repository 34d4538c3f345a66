"""Event ORM model: the event registry."""
import enum

from sqlalchemy import CheckConstraint, Column, ForeignKey, String, Text, Enum as SAEnum
from sqlalchemy.orm import relationship

from app.database import Base, Identifier, UTCDateTime


class EventVisibility(str, enum.Enum):
    private = "private"
    shared = "shared"
    public = "public"


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_events_time_range"),
    )

    id = Column(Identifier, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_time = Column(UTCDateTime, nullable=False)
    end_time = Column(UTCDateTime, nullable=False)
    emoji = Column(String(32), nullable=True)
    visibility = Column(SAEnum(EventVisibility), nullable=False, default=EventVisibility.private)
    creator_id = Column(Identifier, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)

    creator = relationship("User", back_populates="created_events")
    participants = relationship("Participant", back_populates="event", cascade="all, delete-orphan")
