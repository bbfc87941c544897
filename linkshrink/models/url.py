import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.orm import relationship
from linkshrink.database.connection import Base


def utc_now() -> datetime:
    """Current time as naive UTC (the storage representation)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


class ShortLink(Base):
    """
    A short code pointing at a target URL.
    
    - short_code is unique and never changes after insert
    - clicks is only touched by the redirect path (relative UPDATE)
    - expired links stay in the table until a cleanup sweep removes them
    """
    __tablename__ = "urls"

    id = Column(String(36), primary_key=True, default=new_id)
    # unique=True creates the index as well
    short_code = Column(String(20), unique=True, nullable=False, index=True)
    original_url = Column(Text, nullable=False)
    clicks = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)
    expires_at = Column(DateTime, nullable=True)

    click_events = relationship(
        "ClickEvent",
        back_populates="url",
        cascade="all, delete-orphan",
        order_by="ClickEvent.clicked_at.desc()",
    )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at < (now or utc_now())

    def __repr__(self):
        return f"<ShortLink {self.short_code} -> {self.original_url}>"
