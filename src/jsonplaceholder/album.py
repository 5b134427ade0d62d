"""JSONPlaceholder Album resource."""

from typing import TypedDict


class Album(TypedDict):
    id: int
    title: str
    userId: int
