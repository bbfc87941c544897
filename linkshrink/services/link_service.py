import json
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from linkshrink.cache.strategies import CacheStrategy
from linkshrink.config import settings
from linkshrink.exceptions import CodeConflictError, LinkValidationError
from linkshrink.models import ClickEvent, ShortLink, utc_now
from linkshrink.schemas.analytics import AnalyticsReport
from linkshrink.schemas.url import GlobalStats, LinkCreate, PopularLink
from linkshrink.services.analytics import build_report
from linkshrink.services.short_code_strategies import (
    RandomShortCodeStrategy,
    ShortCodeStrategy,
)


logger = logging.getLogger(__name__)


class LinkService:
    """
    Link service: CRUD, redirect resolution, click recording, cleanup.
    
    Database and cache are injected so tests can hand in their own.
    Each storage write commits on its own; bulk create and cleanup are
    sequences of single-row commits, not one transaction.
    
    Methods are async because the cache is (Redis I/O); DB calls stay sync.
    """
    
    def __init__(
        self,
        db: Session,
        cache: Optional[CacheStrategy] = None,
        short_code_strategy: Optional[ShortCodeStrategy] = None
    ):
        self.db = db
        self.cache = cache
        self.short_code_strategy = short_code_strategy or RandomShortCodeStrategy(
            length=settings.short_code_length,
            max_retries=settings.max_retries
        )

    @staticmethod
    def _cache_key(short_code: str) -> str:
        return f"link:{short_code}"

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_link(
        self,
        original_url: str,
        custom_code: Optional[str] = None,
        expires_at: Optional[datetime] = None
    ) -> ShortLink:
        """Create one short link (custom code or a generated one)
        
        expires_at is stored as given, a past value is allowed.
        
        Raises:
            CodeConflictError: custom_code is already in the table
        """
        if custom_code and not await self.is_code_available(custom_code):
            raise CodeConflictError("This custom code is already taken")
        
        return self._insert_link(original_url, custom_code, expires_at)

    async def create_links_bulk(self, items: List[LinkCreate]) -> List[ShortLink]:
        """
        Create up to bulk_max_urls links.
        
        Every custom code is checked before the first insert, so a taken
        code rejects the whole batch. Once inserting starts, a failure on
        item N leaves items 1..N-1 committed.
        """
        if not 1 <= len(items) <= settings.bulk_max_urls:
            raise LinkValidationError(
                f"Batch must contain between 1 and {settings.bulk_max_urls} URLs"
            )
        
        seen = set()
        for item in items:
            code = item.custom_code
            if not code:
                continue
            if code in seen:
                raise CodeConflictError(f'Custom code "{code}" is used more than once')
            if not await self.is_code_available(code):
                raise CodeConflictError(f'Custom code "{code}" is already taken')
            seen.add(code)
        
        created = [
            self._insert_link(item.original_url, item.custom_code, item.expires_at)
            for item in items
        ]
        logger.info("Bulk created %d links", len(created))
        return created

    def _insert_link(
        self,
        original_url: str,
        custom_code: Optional[str],
        expires_at: Optional[datetime]
    ) -> ShortLink:
        short_code = custom_code or self.short_code_strategy.generate(self.db)
        
        link = ShortLink(
            original_url=original_url,
            short_code=short_code,
            expires_at=expires_at
        )
        self.db.add(link)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            if custom_code:
                # Lost a race with another request for the same alias
                raise CodeConflictError("This custom code is already taken") from None
            raise
        self.db.refresh(link)
        
        logger.info("Created short link %s -> %s", link.short_code, link.original_url)
        return link

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def list_links(self) -> List[ShortLink]:
        """All links, newest first (expired ones included)"""
        return self.db.query(ShortLink).order_by(ShortLink.created_at.desc()).all()

    async def get_link(self, link_id: str) -> Optional[ShortLink]:
        """Get link by id, no expiry filtering"""
        return self.db.query(ShortLink).filter(ShortLink.id == link_id).first()

    async def get_link_by_code(self, short_code: str) -> Optional[ShortLink]:
        """Get link by short code; an expired link reads as missing"""
        link = self.db.query(ShortLink).filter(ShortLink.short_code == short_code).first()
        if link is None or link.is_expired():
            return None
        return link

    async def is_code_available(self, short_code: str) -> bool:
        """True if no row uses the code; expired rows still hold it"""
        existing = self.db.query(ShortLink.id).filter(
            ShortLink.short_code == short_code
        ).first()
        return existing is None

    async def get_stats(self) -> GlobalStats:
        """Totals across all links plus the most clicked one"""
        total_urls, total_clicks = self.db.query(
            func.count(ShortLink.id),
            func.coalesce(func.sum(ShortLink.clicks), 0)
        ).one()
        
        top = self.db.query(ShortLink).order_by(
            ShortLink.clicks.desc(),
            ShortLink.created_at.asc()
        ).first()
        
        return GlobalStats(
            total_urls=total_urls,
            total_clicks=total_clicks,
            most_popular_url=PopularLink.model_validate(top) if top else None
        )

    async def get_analytics(self, link_id: str) -> Optional[AnalyticsReport]:
        """Aggregated click report for a link, None if the link is unknown"""
        link = await self.get_link(link_id)
        if link is None:
            return None
        
        clicks = self.db.query(ClickEvent).filter(
            ClickEvent.url_id == link.id
        ).order_by(ClickEvent.clicked_at.desc()).all()
        
        return build_report(
            link,
            clicks,
            max_days=settings.analytics_max_days,
            top_n=settings.analytics_top_n,
            recent_limit=settings.analytics_recent_clicks
        )

    # ------------------------------------------------------------------
    # Redirect
    # ------------------------------------------------------------------

    async def resolve_redirect(
        self,
        short_code: str,
        referrer: Optional[str] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None
    ) -> Optional[str]:
        """
        Resolve a short code for a visitor and count the visit.
        
        Flow:
        1. Look the code up (cache first, then DB), skip if expired
        2. Increment the counter and store a ClickEvent
        3. Return the target URL (None means "not found")
        """
        target = await self._lookup_redirect_target(short_code)
        if target is None:
            return None
        
        link_id, original_url = target
        if not self.record_click(link_id, short_code, referrer, user_agent, ip_address):
            # Cached entry for a row that is gone
            if self.cache:
                await self.cache.delete(self._cache_key(short_code))
            return None
        
        return original_url

    async def _lookup_redirect_target(self, short_code: str) -> Optional[Tuple[str, str]]:
        """Cache-aside lookup returning (link id, target URL)"""
        cache_key = self._cache_key(short_code)
        
        if self.cache:
            cached = await self.cache.get(cache_key)
            if cached:
                entry = json.loads(cached)
                expires_at = entry.get("expiresAt")
                if expires_at and datetime.fromisoformat(expires_at) < utc_now():
                    return None
                return entry["id"], entry["originalUrl"]
        
        link = await self.get_link_by_code(short_code)
        if link is None:
            return None
        
        if self.cache:
            entry = {
                "id": link.id,
                "originalUrl": link.original_url,
                "expiresAt": link.expires_at.isoformat() if link.expires_at else None,
            }
            await self.cache.set(cache_key, json.dumps(entry), ttl=settings.cache_ttl)
        
        return link.id, link.original_url

    def record_click(
        self,
        link_id: str,
        short_code: str,
        referrer: Optional[str] = None,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None
    ) -> bool:
        """
        Bump the counter and store one ClickEvent, in one commit.
        
        The counter is a relative UPDATE (clicks = clicks + 1) so
        concurrent redirects never lose increments.
        
        Matched on the row id, so a stale cached code never counts
        against a newer row that reuses the code.
        
        Returns:
            False if the link no longer exists
        """
        result = self.db.execute(
            update(ShortLink)
            .where(ShortLink.id == link_id)
            .values(clicks=ShortLink.clicks + 1)
        )
        if result.rowcount == 0:
            self.db.rollback()
            logger.info("Short code %s points at missing link %s", short_code, link_id)
            return False
        
        # country/city are filled by a later enrichment step
        self.db.add(ClickEvent(
            url_id=link_id,
            referrer=referrer or None,
            user_agent=user_agent or None,
            ip_address=ip_address or None,
        ))
        self.db.commit()
        return True

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete_link(self, link_id: str) -> bool:
        """Hard delete a link and (cascade) its clicks; False if unknown"""
        link = await self.get_link(link_id)
        if link is None:
            return False
        
        short_code = link.short_code
        self.db.delete(link)
        self.db.commit()
        
        if self.cache:
            await self.cache.delete(self._cache_key(short_code))
        
        logger.info("Deleted short link %s", short_code)
        return True

    async def cleanup_expired(self) -> int:
        """
        Delete every link whose expiry is in the past.
        
        One delete+commit per link. An error stops the sweep; links
        already removed stay removed.
        
        Returns:
            Number of links removed
        """
        now = utc_now()
        expired = self.db.query(ShortLink).filter(
            ShortLink.expires_at.isnot(None),
            ShortLink.expires_at < now
        ).all()
        
        removed_codes = []
        for link in expired:
            removed_codes.append(link.short_code)
            self.db.delete(link)
            self.db.commit()
        
        if self.cache and removed_codes:
            await self.cache.delete_many(self._cache_key(code) for code in removed_codes)
        
        if removed_codes:
            logger.info("Cleanup removed %d expired links", len(removed_codes))
        return len(removed_codes)
