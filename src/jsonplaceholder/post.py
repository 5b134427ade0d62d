"""JSONPlaceholder Post resource."""

from typing import TypedDict


class Post(TypedDict):
    id: int
    title: str
    body: str
    userId: int
