from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire models: camelCase on the wire, snake_case attributes in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class MessageResponse(CamelModel):
    message: str
    affected: Optional[int] = None


class PageMeta(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int


def coerce_datetime(value):
    """Accept date-only strings ("2024-06-01" -> midnight) and store naive UTC."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    if isinstance(value, datetime) and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
