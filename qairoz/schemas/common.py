# schemas/common.py
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from qairoz.utils.timeutils import to_iso


# Datetime rendered as `2025-01-15T10:00:00.000Z` on the wire
IsoDatetime = Annotated[datetime, PlainSerializer(to_iso, return_type=str)]


class CamelModel(BaseModel):
    """Base for wire models: camelCase JSON, snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
