"""
Shared response shapes.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class Page(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int
    has_more: bool

    @classmethod
    def build(cls, items: list, total: int, page: int, page_size: int) -> "Page":
        offset = (page - 1) * page_size
        return cls(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            has_more=offset + len(items) < total,
        )


class MessageResponse(BaseModel):
    message: str
