import logging
import re

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from linkshrink.exceptions import LinkNotFoundError
from linkshrink.services.link_service import LinkService
from linkshrink.dependencies import get_link_service

router = APIRouter(tags=["redirect"])

logger = logging.getLogger(__name__)

SHORT_CODE_RE = re.compile(r"^[A-Za-z0-9_-]{3,20}$")


@router.get("/{short_code}")
async def redirect_to_long_url(
    short_code: str,
    request: Request,
    link_service: LinkService = Depends(get_link_service)
):
    """
    Redirect a visitor to the original URL (301).
    
    Unknown, expired or malformed codes get the generic 404. So does any
    storage error: it is logged here and never shown to the visitor.
    """
    if not SHORT_CODE_RE.match(short_code):
        raise LinkNotFoundError("Not found")
    
    try:
        long_url = await link_service.resolve_redirect(
            short_code,
            referrer=request.headers.get("referer") or request.headers.get("referrer"),
            user_agent=request.headers.get("user-agent"),
            ip_address=request.client.host if request.client else None,
        )
    except Exception:
        logger.exception("Redirect failed for short code %s", short_code)
        long_url = None
    
    if not long_url:
        raise LinkNotFoundError("Not found")
    
    return RedirectResponse(url=long_url, status_code=status.HTTP_301_MOVED_PERMANENTLY)
