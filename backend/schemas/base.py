"""
Base schema definitions shared by the resource schemas.

API payloads use camelCase keys (bountyAmount, reporterEmail, createdTimeStamp)
to match the browser client. Python code uses snake_case attribute names;
request bodies accept either spelling.
"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that serializes to camelCase and accepts both spellings on input."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }
