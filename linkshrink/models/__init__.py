"""
Database models for the link shortener.

A ShortLink owns its ClickEvents: deleting a link removes its click history.
"""

from .url import ShortLink, utc_now
from .click import ClickEvent

__all__ = ["ShortLink", "ClickEvent", "utc_now"]
