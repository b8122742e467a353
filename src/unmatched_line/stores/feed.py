"""Collection stores: the poem feed, poem listings and the article feed."""

from __future__ import annotations

import logging
from collections.abc import Callable

from unmatched_line.cancellation import CancelToken
from unmatched_line.client import (
    ARTICLE_FEED_PATH,
    POEM_FEED_PATH,
    POEMS_BY_CATEGORY_PATH,
    POEMS_PATH,
)
from unmatched_line.errors import ContentServiceError
from unmatched_line.models import (
    Article,
    ArticleFeedPage,
    CursorMeta,
    PageMeta,
    Pagination,
    Poem,
    PoemCategoryPage,
    PoemCursorPage,
    PoemListPage,
)
from unmatched_line.stores.base import ArticleSlices, PoemSlices, Store, is_stale

logger = logging.getLogger(__name__)


class PoemFeedStore(Store, PoemSlices):
    """General poem feed, paginated by ``lastId`` cursor.

    A call without a cursor replaces ``poems``; a call with one appends.
    """

    def __init__(self, *args, default_limit: int = 20, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.default_limit = default_limit
        self.poems: list[Poem] = []
        self.cursor = CursorMeta()

    def fetch(
        self,
        last_id: str | None = None,
        limit: int | None = None,
        category: str | None = None,
        search: str | None = None,
        reset: bool = False,
        token: CancelToken | None = None,
    ) -> None:
        if is_stale(token):
            return
        self._begin(token)
        if reset:
            self._set(poems=[], cursor=CursorMeta())
            self._invalidate()

        params = {
            "limit": limit or self.default_limit,
            "lastId": last_id,
            "category": category,
            "search": search,
        }
        try:
            page = self._cached_get(POEM_FEED_PATH, PoemCursorPage, params, token)
        except ContentServiceError as exc:
            self._fail(exc, "Failed to fetch poems", token)
            return
        if is_stale(token):
            return

        poems = [*self.poems, *page.poems] if last_id else list(page.poems)
        self._set(
            poems=poems,
            cursor=CursorMeta(next_cursor=page.next_cursor, has_more=page.has_more),
            loading=False,
        )

    def fetch_more(self, token: CancelToken | None = None, **filters) -> None:
        """Load the page after the last poem held, if the feed has more."""
        if not self.cursor.has_more or not self.poems:
            return
        last_id = self.cursor.next_cursor or self.poems[-1].id
        self.fetch(last_id=last_id, token=token, **filters)

    def clear(self) -> None:
        self._set(poems=[], cursor=CursorMeta(), error=None, loading=False)

    def map_poems(self, fn: Callable[[Poem], Poem]) -> None:
        self._set(poems=[fn(p) for p in self.poems])

    def drop_poems(self, predicate: Callable[[Poem], bool]) -> None:
        self._set(poems=[p for p in self.poems if not predicate(p)])

    def insert_poem(self, poem: Poem) -> None:
        self._set(poems=[poem.model_copy(deep=True), *self.poems])


class CategoryPoemStore(Store, PoemSlices):
    """Page-paginated poems, one independent slice per category."""

    def __init__(self, *args, default_limit: int = 10, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.default_limit = default_limit
        self.poems_by_category: dict[str, list[Poem]] = {}
        self.meta: dict[str, PageMeta] = {}

    def poems(self, category: str) -> list[Poem]:
        return self.poems_by_category.get(category, [])

    def fetch(
        self,
        category: str,
        page: int = 1,
        limit: int | None = None,
        reset: bool = False,
        token: CancelToken | None = None,
    ) -> None:
        if is_stale(token):
            return
        self._begin(token)
        if reset:
            self._set(
                poems_by_category={**self.poems_by_category, category: []},
                meta={**self.meta, category: PageMeta()},
            )
            self._invalidate()

        params = {"category": category.lower(), "page": page, "limit": limit or self.default_limit}
        try:
            data = self._cached_get(POEMS_BY_CATEGORY_PATH, PoemCategoryPage, params, token)
        except ContentServiceError as exc:
            self._fail(exc, f"Failed to fetch {category} poems", token)
            return
        if is_stale(token):
            return

        existing = self.poems_by_category.get(category, [])
        items = [*existing, *data.poems] if page > 1 else list(data.poems)
        self._set(
            poems_by_category={**self.poems_by_category, category: items},
            meta={**self.meta, category: PageMeta.from_page(data.page, data.total, data.pages)},
            loading=False,
        )

    def fetch_next(self, category: str, token: CancelToken | None = None) -> None:
        meta = self.meta.get(category)
        if meta is None:
            self.fetch(category, token=token)
        elif meta.has_more:
            self.fetch(category, page=meta.page + 1, token=token)

    def clear(self, category: str | None = None) -> None:
        if category is None:
            self._set(poems_by_category={}, meta={}, error=None, loading=False)
            return
        poems = dict(self.poems_by_category)
        meta = dict(self.meta)
        poems.pop(category, None)
        meta.pop(category, None)
        self._set(poems_by_category=poems, meta=meta)

    def map_poems(self, fn: Callable[[Poem], Poem]) -> None:
        self._set(
            poems_by_category={
                cat: [fn(p) for p in poems] for cat, poems in self.poems_by_category.items()
            }
        )

    def drop_poems(self, predicate: Callable[[Poem], bool]) -> None:
        self._set(
            poems_by_category={
                cat: [p for p in poems if not predicate(p)]
                for cat, poems in self.poems_by_category.items()
            }
        )


def _page_meta(pagination: Pagination | None, page: int) -> PageMeta:
    if pagination is None:
        return PageMeta(page=page, has_more=False)
    return PageMeta.from_page(pagination.page, pagination.total, pagination.page_count)


class PoemListStore(Store, PoemSlices):
    """``GET /api/poems`` by page number.

    Page 1 replaces ``poems``; any later page is appended. A created poem
    is prepended.
    """

    def __init__(self, *args, default_limit: int = 10, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.default_limit = default_limit
        self.poems: list[Poem] = []
        self.category = "all"
        self.pagination: Pagination | None = None
        self.meta = PageMeta()

    def fetch(
        self,
        page: int = 1,
        limit: int | None = None,
        category: str = "all",
        token: CancelToken | None = None,
    ) -> None:
        if is_stale(token):
            return
        self._begin(token)
        params = {"page": page, "limit": limit or self.default_limit, "category": category}
        try:
            data = self._cached_get(POEMS_PATH, PoemListPage, params, token)
        except ContentServiceError as exc:
            self._fail(exc, "Failed to fetch poems", token)
            return
        if is_stale(token):
            return

        poems = [*self.poems, *data.poems] if page > 1 else list(data.poems)
        self._set(
            poems=poems,
            category=category,
            pagination=data.pagination,
            meta=_page_meta(data.pagination, page),
            loading=False,
        )

    def fetch_next(self, token: CancelToken | None = None) -> None:
        """Append the page after the last one loaded for the current category."""
        if self.meta.has_more:
            self.fetch(page=self.meta.page + 1, category=self.category, token=token)

    def clear(self) -> None:
        self._set(
            poems=[], category="all", pagination=None, meta=PageMeta(), error=None, loading=False
        )

    def map_poems(self, fn: Callable[[Poem], Poem]) -> None:
        self._set(poems=[fn(p) for p in self.poems])

    def drop_poems(self, predicate: Callable[[Poem], bool]) -> None:
        self._set(poems=[p for p in self.poems if not predicate(p)])

    def insert_poem(self, poem: Poem) -> None:
        self._set(poems=[poem.model_copy(deep=True), *self.poems])


class ArticleFeedStore(Store, ArticleSlices):
    """Published articles from ``GET /api/poems/feed``.

    The service samples articles at random, so a later page can repeat
    an article already held; pages are appended as returned.
    """

    def __init__(self, *args, default_limit: int = 10, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.default_limit = default_limit
        self.articles: list[Article] = []
        self.pagination: Pagination | None = None
        self.meta = PageMeta()

    def fetch(
        self, page: int = 1, limit: int | None = None, token: CancelToken | None = None
    ) -> None:
        if is_stale(token):
            return
        self._begin(token)
        params = {"page": page, "limit": limit or self.default_limit}
        try:
            data = self._cached_get(ARTICLE_FEED_PATH, ArticleFeedPage, params, token)
        except ContentServiceError as exc:
            self._fail(exc, "Failed to fetch article feed", token)
            return
        if is_stale(token):
            return

        articles = [*self.articles, *data.articles] if page > 1 else list(data.articles)
        self._set(
            articles=articles,
            pagination=data.pagination,
            meta=_page_meta(data.pagination, page),
            loading=False,
        )

    def fetch_next(self, token: CancelToken | None = None) -> None:
        if self.meta.has_more:
            self.fetch(page=self.meta.page + 1, token=token)

    def clear(self) -> None:
        self._set(articles=[], pagination=None, meta=PageMeta(), error=None, loading=False)

    def map_articles(self, fn: Callable[[Article], Article]) -> None:
        self._set(articles=[fn(a) for a in self.articles])

    def drop_articles(self, predicate: Callable[[Article], bool]) -> None:
        self._set(articles=[a for a in self.articles if not predicate(a)])
