"""
Module: api_harness.placeholder_client

Resource-level convenience client for the JSONPlaceholder API.

:class:`JsonPlaceholderClient` holds an :class:`HttpClient` and exposes one
:class:`ResourceEndpoint` per resource type, so that steps can write::

    client.posts.get(1)
    client.posts.create({"title": "foo", "body": "bar", "userId": 1})
    client.comments.list(postId=1)
    client.user_todos(1)

Each method forwards to the transport with a constructed path and returns its
:class:`ApiResponse` unchanged.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

from api_harness.common.common import ApiError, ApiResponse
from api_harness.http_client import HttpClient

HEALTH_CHECK_PATH = "/posts/1"


@dataclass(frozen=True)
class HealthCheckResult:
    """
    Outcome of :meth:`JsonPlaceholderClient.health_check`.

    :param status: ``"healthy"`` if the probe succeeded.
    :param checked_at: When the probe completed.
    :param response: The probe response, when healthy.
    :param error: The probe failure, when unhealthy.
    """

    status: Literal["healthy", "unhealthy"]
    checked_at: datetime
    response: ApiResponse | None = None
    error: ApiError | None = None

    @property
    def is_healthy(self) -> bool:
        return self.status == "healthy"


class ResourceEndpoint:
    """CRUD calls for a single top-level collection such as ``/posts``."""

    def __init__(self, http: HttpClient, name: str) -> None:
        self.http = http
        self.name = name

    @property
    def path(self) -> str:
        return f"/{self.name}"

    def item_path(self, resource_id: int) -> str:
        return f"/{self.name}/{resource_id}"

    def list(self, **query: Any) -> ApiResponse:
        return self.http.get(self.path, params=query or None)

    def get(self, resource_id: int) -> ApiResponse:
        return self.http.get(self.item_path(resource_id))

    def create(self, payload: dict[str, Any]) -> ApiResponse:
        return self.http.post(self.path, payload)

    def update(self, resource_id: int, payload: dict[str, Any]) -> ApiResponse:
        return self.http.put(self.item_path(resource_id), payload)

    def patch(self, resource_id: int, payload: dict[str, Any]) -> ApiResponse:
        return self.http.patch(self.item_path(resource_id), payload)

    def delete(self, resource_id: int) -> ApiResponse:
        return self.http.delete(self.item_path(resource_id))


class JsonPlaceholderClient:
    """
    Client for https://jsonplaceholder.typicode.com and API-compatible services.

    Attributes:
        http (HttpClient): The transport every call goes through.
        posts, users, comments, albums, photos, todos (ResourceEndpoint):
            CRUD access to each collection.
    """

    def __init__(self, http: HttpClient) -> None:
        self.http = http
        self.posts = ResourceEndpoint(http, "posts")
        self.users = ResourceEndpoint(http, "users")
        self.comments = ResourceEndpoint(http, "comments")
        self.albums = ResourceEndpoint(http, "albums")
        self.photos = ResourceEndpoint(http, "photos")
        self.todos = ResourceEndpoint(http, "todos")

    def resource(self, name: str) -> ResourceEndpoint:
        """
        Look up an endpoint by collection name.

        :raises KeyError: If ``name`` is not a known collection.
        """
        endpoints = {
            "posts": self.posts,
            "users": self.users,
            "comments": self.comments,
            "albums": self.albums,
            "photos": self.photos,
            "todos": self.todos,
        }
        return endpoints[name]

    # Nested collections

    def post_comments(self, post_id: int) -> ApiResponse:
        return self.http.get(f"/posts/{post_id}/comments")

    def user_posts(self, user_id: int) -> ApiResponse:
        return self.http.get(f"/users/{user_id}/posts")

    def user_albums(self, user_id: int) -> ApiResponse:
        return self.http.get(f"/users/{user_id}/albums")

    def user_todos(self, user_id: int) -> ApiResponse:
        return self.http.get(f"/users/{user_id}/todos")

    def album_photos(self, album_id: int) -> ApiResponse:
        return self.http.get(f"/albums/{album_id}/photos")

    def health_check(self) -> HealthCheckResult:
        """Probe ``GET /posts/1`` once and report whether the API answered."""
        try:
            response = self.http.get(HEALTH_CHECK_PATH)
        except ApiError as err:
            return HealthCheckResult(
                status="unhealthy", checked_at=datetime.now(timezone.utc), error=err
            )
        return HealthCheckResult(
            status="healthy", checked_at=datetime.now(timezone.utc), response=response
        )
