"""
In-memory stub of the JSONPlaceholder REST API.

The stub mirrors the public service closely enough for the acceptance suite:

* ``/posts`` (100), ``/users`` (10), ``/comments`` (500), ``/albums`` (100),
  ``/photos`` (5000) and ``/todos`` (200) with the same id relationships
* ``/<resource>/{id}`` and the nested collections ``/posts/{id}/comments``,
  ``/users/{id}/posts|albums|todos`` and ``/albums/{id}/photos``
* query-string filtering on any field (``/comments?postId=1``)
* ``POST`` answers 201 with the payload and a new id, ``PUT``/``PATCH`` echo
  the merged record, ``DELETE`` answers ``{}``. Like the real service, nothing
  is persisted between calls.
* unknown routes and ids answer 404 with ``{}``

:class:`JsonPlaceholderStubAdapter` plugs the stub into a
:class:`requests.Session` so the harness can run without network access.
"""

import json
from http.client import responses as http_responses
from typing import Any
from urllib.parse import parse_qsl, urlsplit

from requests import PreparedRequest, Response
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from jsonplaceholder import Album, Comment, Photo, Post, Todo, User

JSON_CONTENT_TYPE = "application/json; charset=utf-8"

# Relationship of each collection to its parent: (parent collection, foreign key)
NESTED: dict[tuple[str, str], str] = {
    ("posts", "comments"): "postId",
    ("users", "posts"): "userId",
    ("users", "albums"): "userId",
    ("users", "todos"): "userId",
    ("albums", "photos"): "albumId",
}


def _create_response(
    status_code: int,
    body: Any,
    request: PreparedRequest | None = None,
) -> Response:
    """
    Create a :class:`requests.Response` carrying a JSON body.

    :param status_code: HTTP status code.
    :param body: JSON-serialisable body.
    :param request: The request being answered, attached to the response.
    :return: A :class:`requests.Response` instance.
    """
    response = Response()
    response.status_code = status_code
    response.headers = CaseInsensitiveDict({"Content-Type": JSON_CONTENT_TYPE})
    response._content = json.dumps(body).encode("utf-8")  # noqa: SLF001
    response.reason = http_responses.get(status_code, "")
    response.encoding = "utf-8"
    if request is not None:
        response.request = request
        response.url = request.url or ""
    return response


def _seed_users() -> list[User]:
    users: list[User] = [
        {
            "id": 1,
            "name": "Leanne Graham",
            "username": "Bret",
            "email": "Sincere@april.biz",
            "address": {
                "street": "Kulas Light",
                "suite": "Apt. 556",
                "city": "Gwenborough",
                "zipcode": "92998-3874",
                "geo": {"lat": "-37.3159", "lng": "81.1496"},
            },
            "phone": "1-770-736-8031 x56442",
            "website": "hildegard.org",
            "company": {
                "name": "Romaguera-Crona",
                "catchPhrase": "Multi-layered client-server neural-net",
                "bs": "harness real-time e-markets",
            },
        }
    ]
    for user_id in range(2, 11):
        users.append(
            {
                "id": user_id,
                "name": f"Stub User {user_id}",
                "username": f"stub{user_id}",
                "email": f"user{user_id}@example.com",
                "address": {
                    "street": f"{user_id} Stub Street",
                    "suite": f"Suite {user_id * 100}",
                    "city": "Stubville",
                    "zipcode": f"{user_id:05d}",
                    "geo": {"lat": f"{user_id}.0", "lng": f"-{user_id}.0"},
                },
                "phone": f"555-010-{user_id:04d}",
                "website": f"user{user_id}.example.com",
                "company": {
                    "name": f"Stub Company {user_id}",
                    "catchPhrase": "Deterministic fixture data",
                    "bs": "serve predictable records",
                },
            }
        )
    return users


def _seed_posts() -> list[Post]:
    posts: list[Post] = []
    for post_id in range(1, 101):
        posts.append(
            {
                "userId": (post_id - 1) // 10 + 1,
                "id": post_id,
                "title": f"stub post title {post_id}",
                "body": f"stub post body {post_id}",
            }
        )
    posts[0]["title"] = (
        "sunt aut facere repellat provident occaecati excepturi optio reprehenderit"
    )
    return posts


def _seed_comments() -> list[Comment]:
    return [
        {
            "postId": (comment_id - 1) // 5 + 1,
            "id": comment_id,
            "name": f"stub comment {comment_id}",
            "email": f"commenter{comment_id}@example.com",
            "body": f"stub comment body {comment_id}",
        }
        for comment_id in range(1, 501)
    ]


def _seed_albums() -> list[Album]:
    return [
        {
            "userId": (album_id - 1) // 10 + 1,
            "id": album_id,
            "title": f"stub album {album_id}",
        }
        for album_id in range(1, 101)
    ]


def _seed_photos() -> list[Photo]:
    return [
        {
            "albumId": (photo_id - 1) // 50 + 1,
            "id": photo_id,
            "title": f"stub photo {photo_id}",
            "url": f"https://via.placeholder.com/600/{photo_id:06x}",
            "thumbnailUrl": f"https://via.placeholder.com/150/{photo_id:06x}",
        }
        for photo_id in range(1, 5001)
    ]


def _seed_todos() -> list[Todo]:
    return [
        {
            "userId": (todo_id - 1) // 20 + 1,
            "id": todo_id,
            "title": f"stub todo {todo_id}",
            "completed": todo_id % 3 == 0,
        }
        for todo_id in range(1, 201)
    ]


class JsonPlaceholderStub:
    """
    Minimal in-memory stand-in for https://jsonplaceholder.typicode.com.

    Seeded deterministically on construction. Tests may replace or add records
    via :meth:`upsert`.
    """

    def __init__(self) -> None:
        self._collections: dict[str, list[Any]] = {
            "users": _seed_users(),
            "posts": _seed_posts(),
            "comments": _seed_comments(),
            "albums": _seed_albums(),
            "photos": _seed_photos(),
            "todos": _seed_todos(),
        }

    # ---------------------------
    # Public API for tests
    # ---------------------------

    def upsert(self, collection: str, record: dict[str, Any]) -> None:
        """
        Insert or replace a record, matched by ``id``.

        :raises KeyError: If ``collection`` is not one of the stub collections.
        """
        records = self._collections[collection]
        for index, existing in enumerate(records):
            if existing["id"] == record["id"]:
                records[index] = record
                return
        records.append(record)

    def handle(
        self,
        method: str,
        path: str,
        query: dict[str, str] | None = None,
        body: Any = None,
    ) -> tuple[int, Any]:
        """
        Route a request to the in-memory collections.

        :param method: HTTP method.
        :param path: URL path, e.g. ``/posts/1/comments``.
        :param query: Query-string filters, compared against record fields as
            strings.
        :param body: Decoded JSON body for write methods.
        :return: ``(status_code, json_body)``.
        """
        segments = [segment for segment in path.split("/") if segment]
        method = method.upper()

        if not segments or segments[0] not in self._collections:
            return 404, {}

        collection = segments[0]

        if len(segments) == 1:
            if method == "GET":
                return 200, self._filter(self._collections[collection], query)
            if method == "POST":
                created = dict(body or {})
                created["id"] = len(self._collections[collection]) + 1
                return 201, created
            return 404, {}

        record = self._find(collection, segments[1])

        if len(segments) == 3 and method == "GET":
            child = segments[2]
            foreign_key = NESTED.get((collection, child))
            if foreign_key is None or record is None:
                return 404, {}
            children = [
                item
                for item in self._collections[child]
                if item[foreign_key] == record["id"]
            ]
            return 200, self._filter(children, query)

        if len(segments) != 2:
            return 404, {}

        if method == "GET":
            return (200, record) if record is not None else (404, {})
        if method == "PUT":
            if record is None:
                return 500, {}
            return 200, {**dict(body or {}), "id": record["id"]}
        if method == "PATCH":
            if record is None:
                return 404, {}
            return 200, {**record, **dict(body or {}), "id": record["id"]}
        if method == "DELETE":
            return 200, {}
        return 404, {}

    # --------------- internal helpers -----------------

    def _find(self, collection: str, raw_id: str) -> dict[str, Any] | None:
        if not raw_id.isdigit():
            return None
        record_id = int(raw_id)
        for record in self._collections[collection]:
            if record["id"] == record_id:
                return record
        return None

    @staticmethod
    def _filter(
        records: list[dict[str, Any]], query: dict[str, str] | None
    ) -> list[dict[str, Any]]:
        if not query:
            return list(records)
        return [
            record
            for record in records
            if all(
                key in record and str(record[key]).lower() == value.lower()
                for key, value in query.items()
            )
        ]


class JsonPlaceholderStubAdapter(BaseAdapter):
    """
    A :mod:`requests` transport adapter answering from :class:`JsonPlaceholderStub`.

    Mount it on a session for the base URL being tested::

        session.mount("https://jsonplaceholder.typicode.com", adapter)
    """

    def __init__(self, stub: JsonPlaceholderStub | None = None) -> None:
        super().__init__()
        self.stub = stub or JsonPlaceholderStub()
        self.requests: list[PreparedRequest] = []

    def send(  # type: ignore[override]
        self,
        request: PreparedRequest,
        stream: bool = False,  # NOQA ARG002 (unused in stub)
        timeout: Any = None,  # NOQA ARG002 (unused in stub)
        verify: Any = True,  # NOQA ARG002 (unused in stub)
        cert: Any = None,  # NOQA ARG002 (unused in stub)
        proxies: Any = None,  # NOQA ARG002 (unused in stub)
    ) -> Response:
        self.requests.append(request)

        url = urlsplit(request.url or "")
        query = dict(parse_qsl(url.query))

        body: Any = None
        if request.body:
            raw = request.body
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            try:
                body = json.loads(raw)
            except json.JSONDecodeError:
                return _create_response(400, {"error": "invalid JSON"}, request)

        status_code, payload = self.stub.handle(
            request.method or "GET", url.path, query, body
        )
        return _create_response(status_code, payload, request)

    def close(self) -> None:
        pass
