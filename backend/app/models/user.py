"""User ORM model: the identity store."""
from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from app.database import Base, Identifier, UTCDateTime


class User(Base):
    __tablename__ = "users"

    id = Column(Identifier, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(100), nullable=False)
    avatar_url = Column(String(500), nullable=True)
    external_id = Column(String(255), nullable=True, unique=True)  # identity-provider subject
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)

    # Cascades only fire on an explicit cascading delete; the service rejects
    # a plain delete while either collection is non-empty.
    created_events = relationship("Event", back_populates="creator", cascade="all, delete-orphan")
    participations = relationship("Participant", back_populates="user", cascade="all, delete-orphan")
