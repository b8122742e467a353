"""Poet listings and per-poet works."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from unmatched_line.cancellation import CancelToken
from unmatched_line.client import AUTHORS_PATH, quote_segment
from unmatched_line.errors import ContentServiceError
from unmatched_line.models import (
    Author,
    AuthorEnvelope,
    AuthorPage,
    PageMeta,
    Poem,
    PoemListPage,
)
from unmatched_line.stores.base import AuthorSlices, PoemSlices, Store, is_stale

logger = logging.getLogger(__name__)


class PoetListStore(Store, AuthorSlices):
    """Page-paginated poet directory with search, city and letter filters.

    Also keeps an ``authors`` map of individually fetched poets, keyed by
    the identifier they were requested with.
    """

    def __init__(self, *args, default_limit: int = 20, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.default_limit = default_limit
        self.poets: list[Author] = []
        self.meta = PageMeta()
        self.authors: dict[str, Author] = {}

    def fetch(
        self,
        page: int = 1,
        limit: int | None = None,
        search: str = "",
        cities: Sequence[str] = (),
        letters: Sequence[str] = (),
        reset: bool = False,
        token: CancelToken | None = None,
    ) -> None:
        if is_stale(token):
            return
        self._begin(token)
        if reset:
            self._set(poets=[], meta=PageMeta())
            self._invalidate()

        params = {
            "page": page,
            "limit": limit or self.default_limit,
            "search": search or None,
            "city": ",".join(cities) or None,
            "letter": ",".join(letters) or None,
        }
        try:
            data = self._cached_get(AUTHORS_PATH, AuthorPage, params, token)
        except ContentServiceError as exc:
            self._fail(exc, "Failed to fetch poets", token)
            return
        if is_stale(token):
            return

        poets = [*self.poets, *data.authors] if page > 1 else list(data.authors)
        self._set(
            poets=poets,
            meta=PageMeta.from_page(data.page, data.total, data.pages),
            loading=False,
        )

    def fetch_author(self, author_id: str, token: CancelToken | None = None) -> None:
        """Fetch one poet into ``authors`` unless it is already there."""
        if not author_id or author_id in self.authors or is_stale(token):
            return
        self._begin(token)
        path = f"{AUTHORS_PATH}/{quote_segment(author_id)}"
        try:
            data = self._cached_get(path, AuthorEnvelope, token=token)
        except ContentServiceError as exc:
            self._fail(exc, f"Failed to fetch author {author_id}", token)
            return
        if is_stale(token):
            return
        if data.author is None:
            self._set(error=f"Author {author_id} not found", loading=False)
            return
        self._set(authors={**self.authors, author_id: data.author}, loading=False)

    def map_authors(self, fn: Callable[[Author], Author]) -> None:
        self._set(
            poets=[fn(a) for a in self.poets],
            authors={key: fn(a) for key, a in self.authors.items()},
        )

    def drop_authors(self, predicate: Callable[[Author], bool]) -> None:
        self._set(
            poets=[a for a in self.poets if not predicate(a)],
            authors={key: a for key, a in self.authors.items() if not predicate(a)},
        )


class PoetWorksStore(Store, PoemSlices):
    """A poet's works, page-paginated per category."""

    def __init__(self, *args, default_limit: int = 20, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.default_limit = default_limit
        self.works: dict[str, dict[str, list[Poem]]] = {}
        self.meta: dict[str, dict[str, PageMeta]] = {}

    def poems(self, poet_slug: str, category: str = "all") -> list[Poem]:
        return self.works.get(poet_slug, {}).get(category, [])

    def fetch(
        self,
        poet_slug: str,
        category: str = "all",
        page: int = 1,
        limit: int | None = None,
        sort_by: str = "recent",
        token: CancelToken | None = None,
    ) -> None:
        if is_stale(token):
            return
        self._begin(token)
        path = f"/api/poet/{quote_segment(poet_slug)}/works"
        params = {
            "category": category,
            "page": page,
            "limit": limit or self.default_limit,
            "sortBy": sort_by,
        }
        try:
            data = self._cached_get(path, PoemListPage, params, token)
        except ContentServiceError as exc:
            self._fail(exc, "Failed to fetch poet works", token)
            return
        if is_stale(token):
            return

        by_category = dict(self.works.get(poet_slug, {}))
        existing = by_category.get(category, [])
        by_category[category] = [*existing, *data.poems] if page > 1 else list(data.poems)

        meta = dict(self.meta.get(poet_slug, {}))
        pagination = data.pagination
        if pagination is not None:
            meta[category] = PageMeta.from_page(pagination.page, pagination.total, pagination.pages)
        else:
            meta[category] = PageMeta(page=page, has_more=False)

        self._set(
            works={**self.works, poet_slug: by_category},
            meta={**self.meta, poet_slug: meta},
            loading=False,
        )

    def map_poems(self, fn: Callable[[Poem], Poem]) -> None:
        self._set(
            works={
                slug: {cat: [fn(p) for p in poems] for cat, poems in cats.items()}
                for slug, cats in self.works.items()
            }
        )

    def drop_poems(self, predicate: Callable[[Poem], bool]) -> None:
        self._set(
            works={
                slug: {cat: [p for p in poems if not predicate(p)] for cat, poems in cats.items()}
                for slug, cats in self.works.items()
            }
        )
