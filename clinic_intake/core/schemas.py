"""
Shared Pydantic base schema.

API payloads use camelCase keys (patientId, createdAt, ...) while Python code
uses snake_case attributes; both spellings are accepted on input.
"""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serialising attributes under camelCase names."""

    class Config:
        """Configuration for Pydantic model"""
        alias_generator = to_camel
        populate_by_name = True
