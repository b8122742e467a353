"""Shared store plumbing: observable state, cache lookups, failure handling."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel

from unmatched_line.cache import ResponseCache
from unmatched_line.cancellation import CancelToken
from unmatched_line.client import ContentServiceClient
from unmatched_line.errors import ContentServiceError, HTTPStatusError, Unauthorized
from unmatched_line.models import Article, Author, MutationResult, Poem

if TYPE_CHECKING:
    from unmatched_line.stores.registry import SliceRegistry

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)
Listener = Callable[["Store"], None]

AUTH_REQUIRED_MESSAGE = "Authentication required"


def describe_error(exc: ContentServiceError, fallback: str) -> str:
    """User-facing message: the service's own error text, else ``fallback``."""
    if isinstance(exc, HTTPStatusError):
        return exc.detail or fallback
    return str(exc) or fallback


def is_stale(token: CancelToken | None) -> bool:
    return token is not None and token.cancelled


class Store:
    """Observable state container backed by the content service.

    Subclasses mutate state only through :meth:`_set`, which notifies
    subscribers. Actions catch service errors, record them in ``error``
    and never raise them to the caller.
    """

    def __init__(
        self,
        client: ContentServiceClient,
        cache: ResponseCache | None = None,
        *,
        registry: SliceRegistry | None = None,
        on_auth_required: Callable[[], None] | None = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.registry = registry
        self.on_auth_required = on_auth_required
        self.loading = False
        self.error: str | None = None
        self._listeners: list[Listener] = []
        if registry is not None:
            registry.register(self)

    # ── Observation ──────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(store)`` after every state change.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, **changes: Any) -> None:
        for name, value in changes.items():
            setattr(self, name, value)
        for listener in list(self._listeners):
            listener(self)

    # ── Helpers for actions ──────────────────────────────────────────

    def _begin(self, token: CancelToken | None = None) -> None:
        if not is_stale(token):
            self._set(loading=True, error=None)

    def _fail(
        self, exc: ContentServiceError, fallback: str, token: CancelToken | None = None
    ) -> str:
        message = describe_error(exc, fallback)
        logger.warning("%s: %s", type(self).__name__, message)
        if not is_stale(token):
            self._set(error=message, loading=False)
        if isinstance(exc, Unauthorized) and self.on_auth_required is not None:
            self.on_auth_required()
        return message

    def _auth_required(self, token: CancelToken | None = None) -> MutationResult:
        logger.info("%s: service requires sign-in", type(self).__name__)
        if not is_stale(token):
            self._set(loading=False)
        if self.on_auth_required is not None:
            self.on_auth_required()
        return MutationResult(success=False, message=AUTH_REQUIRED_MESSAGE, auth_required=True)

    def _cached_get(
        self,
        path: str,
        schema: type[SchemaT],
        params: Mapping[str, Any] | None = None,
        token: CancelToken | None = None,
    ) -> SchemaT:
        """Serve ``path`` from the cache when fresh, else fetch and store it."""
        key = self.client.url_for(path, params)
        if self.cache is not None:
            entry = self.cache.get(key)
            if entry is not None:
                return entry.data
        data = self.client.get(path, schema, params=params, token=token)
        if self.cache is not None:
            self.cache.put(key, data)
        return data

    def _invalidate(self) -> None:
        """Forget cached listings after a mutation that can change counts."""
        if self.cache is not None:
            self.cache.clear()


class PoemSlices(ABC):
    """A store holding one or more copies of poems."""

    @abstractmethod
    def map_poems(self, fn: Callable[[Poem], Poem]) -> None:
        """Replace every held poem with ``fn(poem)``."""

    @abstractmethod
    def drop_poems(self, predicate: Callable[[Poem], bool]) -> None:
        """Remove every held poem for which ``predicate`` is true."""

    def insert_poem(self, poem: Poem) -> None:
        """Take in a newly created poem. Most slices ignore it."""


class AuthorSlices(ABC):
    """A store holding one or more copies of authors."""

    @abstractmethod
    def map_authors(self, fn: Callable[[Author], Author]) -> None:
        """Replace every held author with ``fn(author)``."""

    @abstractmethod
    def drop_authors(self, predicate: Callable[[Author], bool]) -> None:
        """Remove every held author for which ``predicate`` is true."""


class ArticleSlices(ABC):
    """A store holding one or more copies of articles."""

    @abstractmethod
    def map_articles(self, fn: Callable[[Article], Article]) -> None:
        """Replace every held article with ``fn(article)``."""

    @abstractmethod
    def drop_articles(self, predicate: Callable[[Article], bool]) -> None:
        """Remove every held article for which ``predicate`` is true."""
