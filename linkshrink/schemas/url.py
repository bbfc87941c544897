import re
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import (
    BaseModel,
    AnyUrl,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    computed_field,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from linkshrink.config import settings


CUSTOM_CODE_RE = re.compile(r"^[A-Za-z0-9_-]+$")

_url_adapter = TypeAdapter(AnyUrl)


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize an incoming timestamp to naive UTC (how the DB stores it)"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Render a stored naive-UTC timestamp as ISO-8601 with offset"""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LinkCreate(CamelModel):
    original_url: str = Field(..., description="The original URL to be shortened")
    custom_code: Optional[str] = Field(None, description="Custom alias (3-20 chars)")
    expires_at: Optional[datetime] = Field(None, description="ISO-8601 expiry timestamp")

    @field_validator("original_url")
    @classmethod
    def validate_original_url(cls, value: str) -> str:
        try:
            _url_adapter.validate_python(value)
        except ValidationError:
            raise ValueError("Please enter a valid URL") from None
        return value

    @field_validator("custom_code")
    @classmethod
    def validate_custom_code(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        if len(value) < settings.custom_code_min_length:
            raise ValueError(
                f"Custom code must be at least {settings.custom_code_min_length} characters"
            )
        if len(value) > settings.custom_code_max_length:
            raise ValueError(
                f"Custom code must be at most {settings.custom_code_max_length} characters"
            )
        if not CUSTOM_CODE_RE.match(value):
            raise ValueError("Only letters, numbers, hyphens and underscores allowed")
        return value

    @field_validator("expires_at")
    @classmethod
    def normalize_expires_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_utc_naive(value)


class BulkLinkCreate(CamelModel):
    urls: List[LinkCreate]

    @field_validator("urls")
    @classmethod
    def validate_batch_size(cls, value: List[LinkCreate]) -> List[LinkCreate]:
        if len(value) < 1:
            raise ValueError("At least one URL is required")
        if len(value) > settings.bulk_max_urls:
            raise ValueError(f"Maximum {settings.bulk_max_urls} URLs at once")
        return value


class LinkResponse(CamelModel):
    """Serializes a ShortLink row straight from the ORM object"""
    id: str
    short_code: str
    original_url: str
    clicks: int
    created_at: datetime
    expires_at: Optional[datetime] = None

    @computed_field(alias="shortUrl")
    @property
    def short_url(self) -> str:
        return f"{settings.base_url}/{self.short_code}"

    @field_serializer("created_at", "expires_at")
    def serialize_timestamp(self, value: Optional[datetime]) -> Optional[str]:
        return to_iso(value)

    model_config = ConfigDict(from_attributes=True)


class PopularLink(CamelModel):
    short_code: str
    original_url: str
    clicks: int

    model_config = ConfigDict(from_attributes=True)


class GlobalStats(CamelModel):
    total_urls: int
    total_clicks: int
    most_popular_url: Optional[PopularLink] = None


class CodeAvailability(BaseModel):
    available: bool


class CleanupResult(BaseModel):
    cleaned: int
