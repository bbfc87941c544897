from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, field_serializer

from linkshrink.schemas.url import CamelModel, LinkResponse, to_iso


class DailyClicks(CamelModel):
    date: str  # YYYY-MM-DD (UTC)
    count: int


class HourlyClicks(CamelModel):
    hour: int
    count: int


class ReferrerCount(CamelModel):
    referrer: str
    count: int


class CountryCount(CamelModel):
    country: str
    count: int


class RecentClick(CamelModel):
    """Visitor-facing view of a click: no user agent or IP"""
    clicked_at: datetime
    referrer: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None

    @field_serializer("clicked_at")
    def serialize_clicked_at(self, value: datetime) -> str:
        return to_iso(value)

    model_config = ConfigDict(from_attributes=True)


class AnalyticsReport(CamelModel):
    url: LinkResponse
    clicks_by_day: List[DailyClicks]
    clicks_by_hour: List[HourlyClicks]
    top_referrers: List[ReferrerCount]
    top_countries: List[CountryCount]
    recent_clicks: List[RecentClick]
