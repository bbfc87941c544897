"""
Click analytics aggregation.

Pure functions over an already-fetched click history: no DB access here,
so the grouping rules can be tested with plain objects.
"""

from collections import Counter
from typing import List, Sequence

from linkshrink.models import ClickEvent, ShortLink
from linkshrink.schemas.analytics import (
    AnalyticsReport,
    CountryCount,
    DailyClicks,
    HourlyClicks,
    RecentClick,
    ReferrerCount,
)
from linkshrink.schemas.url import LinkResponse, to_utc_naive


# Bucket names for clicks without a referrer / resolved country.
# They are part of the API contract, the dashboard shows them verbatim.
DIRECT_REFERRER = "Direct"
UNKNOWN_COUNTRY = "Unknown"

HOURS_PER_DAY = 24


def build_report(
    link: ShortLink,
    clicks: Sequence[ClickEvent],
    max_days: int = 30,
    top_n: int = 10,
    recent_limit: int = 50,
) -> AnalyticsReport:
    """
    Build the analytics report for one link.
    
    Args:
        link: The link the clicks belong to
        clicks: Click history, newest first
        max_days: Keep only the most recent N days that had clicks
        top_n: Length cap for the referrer and country rankings
        recent_limit: Number of raw events in the recent view
    
    Ties in the rankings keep first-seen order (newest click first),
    Counter.most_common sorts stably.
    """
    by_day: Counter = Counter()
    by_hour: Counter = Counter()
    referrers: Counter = Counter()
    countries: Counter = Counter()

    for click in clicks:
        clicked_at = to_utc_naive(click.clicked_at)
        by_day[clicked_at.date().isoformat()] += 1
        by_hour[clicked_at.hour] += 1
        referrers[click.referrer or DIRECT_REFERRER] += 1
        countries[click.country or UNKNOWN_COUNTRY] += 1

    # ISO dates sort chronologically as strings
    days = sorted(by_day.items())
    days = days[-max_days:] if max_days > 0 else []

    return AnalyticsReport(
        url=LinkResponse.model_validate(link),
        clicks_by_day=[DailyClicks(date=day, count=count) for day, count in days],
        clicks_by_hour=hourly_series(by_hour),
        top_referrers=[
            ReferrerCount(referrer=referrer, count=count)
            for referrer, count in referrers.most_common(top_n)
        ],
        top_countries=[
            CountryCount(country=country, count=count)
            for country, count in countries.most_common(top_n)
        ],
        recent_clicks=[RecentClick.model_validate(click) for click in clicks[:recent_limit]],
    )


def hourly_series(by_hour: Counter) -> List[HourlyClicks]:
    """All 24 hours in order, zero-filled"""
    return [HourlyClicks(hour=hour, count=by_hour.get(hour, 0)) for hour in range(HOURS_PER_DAY)]
