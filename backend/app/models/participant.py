"""Participant ORM model: one user's membership in one event."""
import enum

from sqlalchemy import Column, ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.orm import relationship

from app.database import Base, Identifier, UTCDateTime


class ParticipantRole(str, enum.Enum):
    owner = "owner"
    viewer = "viewer"


class ParticipantStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"


class Participant(Base):
    __tablename__ = "participants"
    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_participants_user_event"),
    )

    id = Column(Identifier, primary_key=True, autoincrement=True)
    user_id = Column(Identifier, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(Identifier, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(SAEnum(ParticipantRole), nullable=False, default=ParticipantRole.viewer)
    status = Column(SAEnum(ParticipantStatus), nullable=False, default=ParticipantStatus.pending)
    joined_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)

    user = relationship("User", back_populates="participations")
    event = relationship("Event", back_populates="participants")
