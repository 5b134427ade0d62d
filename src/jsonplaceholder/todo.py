"""JSONPlaceholder Todo resource."""

from typing import TypedDict


class Todo(TypedDict):
    id: int
    title: str
    completed: bool
    userId: int
