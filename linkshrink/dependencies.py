"""
FastAPI dependencies for dependency injection.

The cache is a process-wide singleton; the service is built per request
around that request's DB session. Tests override get_db/get_cache.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from linkshrink.cache.factory import CacheFactory, CacheBackend
from linkshrink.cache.strategies import CacheStrategy
from linkshrink.config import settings
from linkshrink.database.connection import get_db
from linkshrink.services.link_service import LinkService


@lru_cache()
def get_cache() -> CacheStrategy:
    """
    Get cache instance (singleton).
    
    Returns:
        CacheStrategy instance based on settings.cache_backend
    """
    backend = CacheBackend(settings.cache_backend)
    return CacheFactory.create(backend)


def get_link_service(
    db: Session = Depends(get_db),
    cache: CacheStrategy = Depends(get_cache)
) -> LinkService:
    """Get LinkService with its infrastructure injected"""
    return LinkService(db=db, cache=cache)
