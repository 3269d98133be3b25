from __future__ import annotations

"""
Shared schema building blocks.

Wire format is camelCase (`profilePic`, `isFeatured`, `viewCount`) while the
Python side stays snake_case; requests may use either spelling.
"""

from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Envelope(CamelModel, Generic[T]):
    """`{"success": true, "data": ...}` response body."""

    success: bool = True
    data: T


class ListEnvelope(CamelModel, Generic[T]):
    success: bool = True
    count: int
    data: List[T]


class MessageResponse(CamelModel):
    success: bool = True
    message: str


__all__ = ["CamelModel", "Envelope", "ListEnvelope", "MessageResponse"]
