"""JSONPlaceholder Comment resource."""

from typing import TypedDict


class Comment(TypedDict):
    id: int
    name: str
    email: str
    body: str
    postId: int
