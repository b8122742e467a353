"""Single-entity detail stores for the focused poem and poet views.

These are not cached: every navigation re-fetches.
"""

from __future__ import annotations

from collections.abc import Callable

from unmatched_line.cancellation import CancelToken
from unmatched_line.errors import ContentServiceError
from unmatched_line.models import Author, Poem
from unmatched_line.stores.base import AuthorSlices, PoemSlices, Store, is_stale


class PoemDetailStore(Store, PoemSlices):
    """One poem, addressed by id or any localized slug."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.entity: Poem | None = None

    def fetch(self, identifier: str, token: CancelToken | None = None) -> None:
        if is_stale(token):
            return
        self._begin(token)
        try:
            envelope = self.client.get_poem(identifier, token=token)
        except ContentServiceError as exc:
            self._fail(exc, "Failed to fetch poem", token)
            return
        if is_stale(token):
            return
        if envelope.poem is None:
            self._set(error="Poem not found", loading=False)
            return
        self._set(entity=envelope.poem, loading=False)

    def clear(self) -> None:
        self._set(entity=None, error=None, loading=False)

    def map_poems(self, fn: Callable[[Poem], Poem]) -> None:
        if self.entity is not None:
            self._set(entity=fn(self.entity))

    def drop_poems(self, predicate: Callable[[Poem], bool]) -> None:
        if self.entity is not None and predicate(self.entity):
            self._set(entity=None)


class PoetDetailStore(Store, AuthorSlices):
    """One poet, addressed by id or slug."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.entity: Author | None = None

    def fetch(self, identifier: str, token: CancelToken | None = None) -> None:
        if is_stale(token):
            return
        self._begin(token)
        try:
            poet = self.client.get_poet(identifier, token=token)
        except ContentServiceError as exc:
            self._fail(exc, "Failed to fetch poet", token)
            return
        if is_stale(token):
            return
        if poet is None:
            self._set(error="Poet not found", loading=False)
            return
        self._set(entity=poet, loading=False)

    def clear(self) -> None:
        self._set(entity=None, error=None, loading=False)

    def map_authors(self, fn: Callable[[Author], Author]) -> None:
        if self.entity is not None:
            self._set(entity=fn(self.entity))

    def drop_authors(self, predicate: Callable[[Author], bool]) -> None:
        if self.entity is not None and predicate(self.entity):
            self._set(entity=None)
