"""JSONPlaceholder Photo resource."""

from typing import TypedDict


class Photo(TypedDict):
    id: int
    title: str
    url: str
    thumbnailUrl: str
    albumId: int
