from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from linkshrink.database.connection import Base
from linkshrink.models.url import new_id, utc_now


class ClickEvent(Base):
    """
    One visit through a short code. Rows are written once and never updated.
    
    country/city are left empty by the redirect path; a separate enrichment
    step (GeoIP lookup) is expected to fill them.
    """
    __tablename__ = "url_clicks"

    id = Column(String(36), primary_key=True, default=new_id)
    url_id = Column(
        String(36),
        ForeignKey("urls.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    clicked_at = Column(DateTime, nullable=False, default=utc_now, index=True)
    referrer = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)
    ip_address = Column(String(45), nullable=True)  # IPv4 or IPv6
    country = Column(String, nullable=True)
    city = Column(String, nullable=True)

    url = relationship("ShortLink", back_populates="click_events")

    def __repr__(self):
        return f"<ClickEvent {self.id} for url {self.url_id}>"
