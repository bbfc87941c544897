from typing import List

from fastapi import APIRouter, Depends, status
from linkshrink.exceptions import LinkNotFoundError
from linkshrink.schemas.analytics import AnalyticsReport
from linkshrink.schemas.url import (
    BulkLinkCreate,
    CleanupResult,
    CodeAvailability,
    GlobalStats,
    LinkCreate,
    LinkResponse,
)
from linkshrink.services.link_service import LinkService
from linkshrink.dependencies import get_link_service

router = APIRouter(tags=["urls"])


@router.post("/urls", response_model=LinkResponse, status_code=status.HTTP_201_CREATED)
async def create_short_url(
    url_data: LinkCreate,
    link_service: LinkService = Depends(get_link_service)
):
    """Create a new short URL"""
    return await link_service.create_link(
        url_data.original_url,
        custom_code=url_data.custom_code,
        expires_at=url_data.expires_at
    )


@router.post("/urls/bulk", response_model=List[LinkResponse], status_code=status.HTTP_201_CREATED)
async def create_short_urls_bulk(
    bulk_data: BulkLinkCreate,
    link_service: LinkService = Depends(get_link_service)
):
    """Create 1-50 short URLs; any taken custom code rejects the batch"""
    return await link_service.create_links_bulk(bulk_data.urls)


@router.get("/urls", response_model=List[LinkResponse])
async def list_urls(link_service: LinkService = Depends(get_link_service)):
    """All short URLs, newest first"""
    return await link_service.list_links()


@router.get("/urls/{url_id}", response_model=LinkResponse)
async def get_url(
    url_id: str,
    link_service: LinkService = Depends(get_link_service)
):
    url = await link_service.get_link(url_id)
    if not url:
        raise LinkNotFoundError("URL not found")
    return url


@router.get("/urls/{url_id}/analytics", response_model=AnalyticsReport)
async def get_url_analytics(
    url_id: str,
    link_service: LinkService = Depends(get_link_service)
):
    """Click analytics for one short URL"""
    report = await link_service.get_analytics(url_id)
    if not report:
        raise LinkNotFoundError("URL not found")
    return report


@router.delete("/urls/{url_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_url(
    url_id: str,
    link_service: LinkService = Depends(get_link_service)
):
    """Delete a short URL and its click history"""
    if not await link_service.delete_link(url_id):
        raise LinkNotFoundError("URL not found")


@router.get("/stats", response_model=GlobalStats)
async def get_stats(link_service: LinkService = Depends(get_link_service)):
    return await link_service.get_stats()


@router.get("/check-code/{code}", response_model=CodeAvailability)
async def check_code(
    code: str,
    link_service: LinkService = Depends(get_link_service)
):
    """Is this custom code still free?"""
    return CodeAvailability(available=await link_service.is_code_available(code))


@router.post("/cleanup", response_model=CleanupResult)
async def cleanup_expired(link_service: LinkService = Depends(get_link_service)):
    """Purge all expired short URLs"""
    return CleanupResult(cleaned=await link_service.cleanup_expired())
