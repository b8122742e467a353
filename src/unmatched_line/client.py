"""HTTP client for the poetry content service.

Speaks JSON (and multipart form data for media uploads) over urllib,
validates every response body against a wire schema, and maps transport
and status failures onto :mod:`unmatched_line.errors`.
"""

from __future__ import annotations

import json
import logging
import mimetypes
import urllib.error
import urllib.parse
import urllib.request
import uuid
from collections.abc import Mapping
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from unmatched_line.cancellation import CancelToken
from unmatched_line.config import ServiceSectionConfig
from unmatched_line.errors import (
    HTTPStatusError,
    NetworkFailure,
    PayloadValidationError,
    ResponseValidationError,
    Unauthorized,
)
from unmatched_line.models import (
    Article,
    ArticleEnvelope,
    Author,
    AuthorEnvelope,
    CoverImageList,
    MessageResponse,
    PoemEnvelope,
    SearchResponse,
    User,
    UserEnvelope,
    UserList,
)

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

POEM_FEED_PATH = "/api/poem"
POEMS_PATH = "/api/poems"
POEMS_BY_CATEGORY_PATH = "/api/poems-by-category"
ARTICLE_FEED_PATH = "/api/poems/feed"
AUTHORS_PATH = "/api/authors"
POETS_PATH = "/api/poets"
COVER_IMAGES_PATH = "/api/cover-images"
SEARCH_PATH = "/api/search"
USER_PATH = "/api/user"
USERS_PATH = "/api/users"


def quote_segment(identifier: str) -> str:
    return urllib.parse.quote(str(identifier), safe="")


class ContentServiceClient:
    """Client for the content service REST API.

    Authentication is delegated: the configured session cookie is
    forwarded as-is and a 401 surfaces as :class:`Unauthorized`.
    """

    def __init__(self, config: ServiceSectionConfig | None = None) -> None:
        self.config = config or ServiceSectionConfig()
        self.base_url = self.config.base_url.rstrip("/")

    # ── Transport ────────────────────────────────────────────────────

    def url_for(self, path: str, params: Mapping[str, Any] | None = None) -> str:
        """Fully-qualified URL, query string included. Doubles as a cache key."""
        url = f"{self.base_url}{path}"
        if params:
            query = urllib.parse.urlencode(
                {k: v for k, v in params.items() if v is not None and v != ""}
            )
            if query:
                url = f"{url}?{query}"
        return url

    def _headers(self, content_type: str | None = None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if content_type:
            headers["Content-Type"] = content_type
        if self.config.session_cookie:
            headers["Cookie"] = self.config.session_cookie
        return headers

    def _open(self, req: urllib.request.Request, token: CancelToken | None) -> dict:
        if token is not None:
            token.raise_if_cancelled()
        logger.debug("%s %s", req.method, req.full_url)

        kwargs: dict[str, Any] = {}
        if self.config.timeout is not None:
            kwargs["timeout"] = self.config.timeout
        try:
            with urllib.request.urlopen(req, **kwargs) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as exc:
            raise self._status_error(exc) from exc
        except (urllib.error.URLError, OSError) as exc:
            reason = getattr(exc, "reason", exc)
            raise NetworkFailure(f"{req.method} {req.full_url} failed: {reason}") from exc

        if token is not None:
            token.raise_if_cancelled()
        if not raw:
            return {}
        try:
            body = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ResponseValidationError(f"Non-JSON response from {req.full_url}") from exc
        if not isinstance(body, dict):
            raise ResponseValidationError(
                f"Expected a JSON object from {req.full_url}, got {type(body).__name__}"
            )
        return body

    @staticmethod
    def _status_error(exc: urllib.error.HTTPError) -> HTTPStatusError:
        message = ""
        try:
            body = json.loads(exc.read().decode("utf-8") or "{}")
            if isinstance(body, dict):
                message = body.get("error") or body.get("message") or ""
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            pass
        if exc.code == 401:
            return Unauthorized(message or "Authentication required")
        return HTTPStatusError(exc.code, message)

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        token: CancelToken | None = None,
    ) -> dict:
        """Send a JSON request and return the decoded body."""
        body = json.dumps(json_body).encode("utf-8") if json_body is not None else None
        req = urllib.request.Request(
            self.url_for(path, params),
            data=body,
            method=method,
            headers=self._headers("application/json" if body is not None else None),
        )
        return self._open(req, token)

    def request_multipart(
        self,
        method: str,
        path: str,
        *,
        fields: Mapping[str, Any] | None = None,
        files: list[tuple[str, Path]] | None = None,
        token: CancelToken | None = None,
    ) -> dict:
        """Send a multipart form. Non-string field values are JSON-encoded.

        Args:
            method: HTTP verb.
            path: API path.
            fields: Plain form fields.
            files: ``(field name, local path)`` pairs; a field may repeat.
            token: Optional cancel token.
        """
        boundary = f"----UnmatchedLineBoundary{uuid.uuid4().hex}"
        parts: list[bytes] = []
        for name, value in (fields or {}).items():
            if value is None:
                continue
            text = value if isinstance(value, str) else json.dumps(value)
            parts += [
                f"--{boundary}\r\n".encode(),
                f'Content-Disposition: form-data; name="{name}"\r\n\r\n'.encode(),
                text.encode("utf-8"),
                b"\r\n",
            ]
        for name, file_path in files or []:
            try:
                data = file_path.read_bytes()
            except OSError as exc:
                raise PayloadValidationError([f"{name}: cannot read {file_path}: {exc}"]) from exc
            content_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
            parts += [
                f"--{boundary}\r\n".encode(),
                (
                    f'Content-Disposition: form-data; name="{name}";'
                    f' filename="{file_path.name}"\r\n'
                ).encode(),
                f"Content-Type: {content_type}\r\n\r\n".encode(),
                data,
                b"\r\n",
            ]
        parts.append(f"--{boundary}--\r\n".encode())

        req = urllib.request.Request(
            self.url_for(path),
            data=b"".join(parts),
            method=method,
            headers=self._headers(f"multipart/form-data; boundary={boundary}"),
        )
        return self._open(req, token)

    @staticmethod
    def parse(schema: type[SchemaT], body: Any) -> SchemaT:
        """Validate a decoded body, failing fast on malformed responses."""
        try:
            return schema.model_validate(body)
        except ValidationError as exc:
            raise ResponseValidationError(
                f"Unexpected {schema.__name__} payload: {exc.error_count()} error(s)"
            ) from exc

    def get(
        self,
        path: str,
        schema: type[SchemaT],
        *,
        params: Mapping[str, Any] | None = None,
        token: CancelToken | None = None,
    ) -> SchemaT:
        return self.parse(schema, self.request("GET", path, params=params, token=token))

    # ── Poems ────────────────────────────────────────────────────────

    def get_poem(self, identifier: str, token: CancelToken | None = None) -> PoemEnvelope:
        return self.get(f"{POEMS_PATH}/{quote_segment(identifier)}", PoemEnvelope, token=token)

    def create_poem(
        self,
        payload: Mapping[str, Any],
        cover_image: Path | None = None,
        token: CancelToken | None = None,
    ) -> PoemEnvelope:
        files = [("coverImage", cover_image)] if cover_image else None
        body = self.request_multipart("POST", POEMS_PATH, fields=payload, files=files, token=token)
        return self.parse(PoemEnvelope, body)

    def update_poem(
        self,
        identifier: str,
        payload: Mapping[str, Any],
        cover_image: Path | None = None,
        token: CancelToken | None = None,
    ) -> PoemEnvelope:
        files = [("coverImage", cover_image)] if cover_image else None
        path = f"{POEMS_PATH}/{quote_segment(identifier)}/update"
        body = self.request_multipart("PUT", path, fields=payload, files=files, token=token)
        return self.parse(PoemEnvelope, body)

    def delete_poem(self, identifier: str, token: CancelToken | None = None) -> MessageResponse:
        path = f"{POEMS_PATH}/{quote_segment(identifier)}/delete"
        return self.parse(MessageResponse, self.request("DELETE", path, token=token))

    def bookmark_poem(
        self, poem_id: str, user_id: str, action: str, token: CancelToken | None = None
    ) -> MessageResponse:
        body = self.request(
            "POST",
            f"{POEMS_PATH}/bookmark",
            json_body={"poemId": poem_id, "userId": user_id, "action": action},
            token=token,
        )
        return self.parse(MessageResponse, body)

    # ── Read list and follows ────────────────────────────────────────

    def add_to_read_list(self, poem_id: str, token: CancelToken | None = None) -> MessageResponse:
        body = self.request(
            "POST", f"{USER_PATH}/readlist/add", json_body={"poemId": poem_id}, token=token
        )
        return self.parse(MessageResponse, body)

    def remove_from_read_list(
        self, poem_id: str, token: CancelToken | None = None
    ) -> MessageResponse:
        body = self.request(
            "DELETE", f"{USER_PATH}/readlist/remove", json_body={"poemId": poem_id}, token=token
        )
        return self.parse(MessageResponse, body)

    def follow(self, target: str, token: CancelToken | None = None) -> MessageResponse:
        body = self.request(
            "POST", "/api/follow", json_body={"target": target, "type": "author"}, token=token
        )
        return self.parse(MessageResponse, body)

    def unfollow(self, target: str, token: CancelToken | None = None) -> MessageResponse:
        body = self.request(
            "DELETE", "/api/follow", json_body={"target": target, "type": "author"}, token=token
        )
        return self.parse(MessageResponse, body)

    # ── Authors ──────────────────────────────────────────────────────

    def get_author(self, identifier: str, token: CancelToken | None = None) -> AuthorEnvelope:
        return self.get(f"{AUTHORS_PATH}/{quote_segment(identifier)}", AuthorEnvelope, token=token)

    def get_poet(self, identifier: str, token: CancelToken | None = None) -> Author | None:
        """``GET /api/poets/{id}`` answers with the bare author document."""
        body = self.request("GET", f"{POETS_PATH}/{quote_segment(identifier)}", token=token)
        if not body:
            return None
        if "author" in body:
            return self.parse(AuthorEnvelope, body).author
        return self.parse(Author, body)

    def update_author(
        self,
        identifier: str,
        payload: Mapping[str, Any],
        image: Path | None = None,
        token: CancelToken | None = None,
    ) -> AuthorEnvelope:
        files = [("image", image)] if image else None
        path = f"{AUTHORS_PATH}/{quote_segment(identifier)}"
        body = self.request_multipart("PUT", path, fields=payload, files=files, token=token)
        return self.parse(AuthorEnvelope, body)

    def delete_author(self, identifier: str, token: CancelToken | None = None) -> MessageResponse:
        path = f"{AUTHORS_PATH}/{quote_segment(identifier)}"
        return self.parse(MessageResponse, self.request("DELETE", path, token=token))

    # ── Articles ─────────────────────────────────────────────────────

    def get_article(self, slug: str, token: CancelToken | None = None) -> Article | None:
        body = self.request("GET", f"/api/articles/{quote_segment(slug)}", token=token)
        if "article" in body:
            return self.parse(ArticleEnvelope, body).article
        return self.parse(Article, body) if body else None

    def update_article(
        self,
        slug: str,
        payload: Mapping[str, Any],
        cover_image: Path | None = None,
        token: CancelToken | None = None,
    ) -> ArticleEnvelope:
        files = [("coverImage", cover_image)] if cover_image else None
        path = f"/api/articles/{quote_segment(slug)}"
        body = self.request_multipart("PUT", path, fields=payload, files=files, token=token)
        return self.parse(ArticleEnvelope, body)

    def delete_article(self, slug: str, token: CancelToken | None = None) -> MessageResponse:
        path = f"/api/articles/{quote_segment(slug)}"
        return self.parse(MessageResponse, self.request("DELETE", path, token=token))

    # ── Cover images ─────────────────────────────────────────────────

    def upload_cover_images(
        self, paths: list[Path], token: CancelToken | None = None
    ) -> CoverImageList:
        files = [("images", p) for p in paths]
        body = self.request_multipart("POST", COVER_IMAGES_PATH, files=files, token=token)
        return self.parse(CoverImageList, body)

    def delete_cover_image(
        self, image_id: str, token: CancelToken | None = None
    ) -> MessageResponse:
        path = f"{COVER_IMAGES_PATH}/{quote_segment(image_id)}"
        return self.parse(MessageResponse, self.request("DELETE", path, token=token))

    # ── Users ────────────────────────────────────────────────────────

    def get_current_user(self, token: CancelToken | None = None) -> User | None:
        """``GET /api/user``; the service answers enveloped or bare."""
        body = self.request("GET", USER_PATH, token=token)
        if "user" in body:
            return self.parse(UserEnvelope, body).user
        return self.parse(User, body) if body else None

    def update_current_user(
        self,
        payload: Mapping[str, Any],
        image: Path | None = None,
        token: CancelToken | None = None,
    ) -> UserEnvelope:
        files = [("profilePicture", image)] if image else None
        body = self.request_multipart("PATCH", USER_PATH, fields=payload, files=files, token=token)
        return self.parse(UserEnvelope, body)

    def list_users(
        self, page: int = 1, limit: int = 10, token: CancelToken | None = None
    ) -> UserList:
        return self.get(USERS_PATH, UserList, params={"page": page, "limit": limit}, token=token)

    def get_user(self, identifier: str, token: CancelToken | None = None) -> User | None:
        body = self.request("GET", f"{USERS_PATH}/{quote_segment(identifier)}", token=token)
        if "user" in body:
            return self.parse(UserEnvelope, body).user
        return self.parse(User, body) if body else None

    def create_user(
        self, payload: Mapping[str, Any], token: CancelToken | None = None
    ) -> UserEnvelope:
        body = self.request_multipart("POST", USERS_PATH, fields=payload, token=token)
        return self.parse(UserEnvelope, body)

    def update_user(
        self, identifier: str, payload: Mapping[str, Any], token: CancelToken | None = None
    ) -> UserEnvelope:
        path = f"{USERS_PATH}/{quote_segment(identifier)}"
        body = self.request_multipart("PATCH", path, fields=payload, token=token)
        return self.parse(UserEnvelope, body)

    def delete_user(self, identifier: str, token: CancelToken | None = None) -> MessageResponse:
        path = f"{USERS_PATH}/{quote_segment(identifier)}"
        return self.parse(MessageResponse, self.request("DELETE", path, token=token))

    # ── Search ───────────────────────────────────────────────────────

    def search(
        self,
        query: str,
        page: int = 1,
        limit: int = 10,
        language: str | None = None,
        token: CancelToken | None = None,
    ) -> SearchResponse:
        params = {"query": query, "page": page, "limit": limit, "language": language}
        return self.get(SEARCH_PATH, SearchResponse, params=params, token=token)
