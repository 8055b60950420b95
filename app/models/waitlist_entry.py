import uuid
from sqlalchemy import Column, String, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from app.core.database import Base
from app.schemas.waitlist import EntryStatus


class WaitlistEntryRecord(Base):
    __tablename__ = "waitlist_entries"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    research_interests = Column(String(500), nullable=False)
    status = Column(String(32), nullable=False, default=EntryStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint('email', name='uq_waitlist_email'),
    )
