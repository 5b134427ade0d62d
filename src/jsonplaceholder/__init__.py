"""JSONPlaceholder resource shapes."""

from typing import get_type_hints

from jsonplaceholder.album import Album
from jsonplaceholder.comment import Comment
from jsonplaceholder.photo import Photo
from jsonplaceholder.post import Post
from jsonplaceholder.todo import Todo
from jsonplaceholder.user import Address, Company, Geo, User

SCALAR_TYPES = (int, str, bool)


def record_fields(record_type: type) -> dict[str, type]:
    """
    Map each top-level field of a record type to the Python type its JSON holds.

    Nested records (a user's address or company) map to ``dict``.
    """
    return {
        name: kind if kind in SCALAR_TYPES else dict
        for name, kind in get_type_hints(record_type).items()
    }


__all__ = [
    "Address",
    "Album",
    "Comment",
    "Company",
    "Geo",
    "Photo",
    "Post",
    "Todo",
    "User",
    "record_fields",
]
