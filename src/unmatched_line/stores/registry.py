"""Fan-out of committed mutations to every store that mirrors an entity.

Each list, category slice, works slice, article feed and detail view
keeps its own copy of a poem, author or article. After a mutation
commits, the registry applies the same change to all of them so
counters converge.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from unmatched_line.models import Article, Author, Poem
from unmatched_line.stores.base import ArticleSlices, AuthorSlices, PoemSlices

logger = logging.getLogger(__name__)


class SliceRegistry:
    """Tracks poem-, author- and article-holding stores."""

    def __init__(self) -> None:
        self._poem_slices: list[PoemSlices] = []
        self._author_slices: list[AuthorSlices] = []
        self._article_slices: list[ArticleSlices] = []

    def register(self, store: Any) -> None:
        if isinstance(store, PoemSlices) and store not in self._poem_slices:
            self._poem_slices.append(store)
        if isinstance(store, AuthorSlices) and store not in self._author_slices:
            self._author_slices.append(store)
        if isinstance(store, ArticleSlices) and store not in self._article_slices:
            self._article_slices.append(store)

    # ── Poems ────────────────────────────────────────────────────────

    def update_poem(self, identifier: str, fn: Callable[[Poem], Poem]) -> None:
        """Apply ``fn`` to every copy of the poem addressed by ``identifier``."""

        def apply(poem: Poem) -> Poem:
            return fn(poem) if poem.identifiers.matches(identifier) else poem

        for store in self._poem_slices:
            store.map_poems(apply)

    def add_poem(self, poem: Poem) -> None:
        for store in self._poem_slices:
            store.insert_poem(poem)

    def replace_poem(self, poem: Poem) -> None:
        """Swap every copy of ``poem`` for the server's version."""
        self.update_poem(poem.id, lambda _old: poem.model_copy(deep=True))

    def remove_poem(self, identifier: str) -> None:
        """Drop the poem from every slice, whichever key it is addressed by.

        A poem held under ``_id`` disappears when deleted by one of its
        localized slugs and vice versa.
        """
        logger.debug("Removing poem %s from %d slices", identifier, len(self._poem_slices))
        for store in self._poem_slices:
            store.drop_poems(lambda p: p.identifiers.matches(identifier))

    # ── Authors ──────────────────────────────────────────────────────

    def update_author(self, identifier: str, fn: Callable[[Author], Author]) -> None:
        def apply(author: Author) -> Author:
            return fn(author) if author.identifiers.matches(identifier) else author

        for store in self._author_slices:
            store.map_authors(apply)

    def replace_author(self, author: Author) -> None:
        self.update_author(author.id, lambda _old: author.model_copy(deep=True))

    def remove_author(self, identifier: str) -> None:
        for store in self._author_slices:
            store.drop_authors(lambda a: a.identifiers.matches(identifier))

    # ── Articles ─────────────────────────────────────────────────────

    def replace_article(self, identifier: str, article: Article) -> None:
        """Swap every copy addressed by ``identifier`` for ``article``."""

        def apply(held: Article) -> Article:
            if held.identifiers.matches(identifier) or held.id == article.id:
                return article.model_copy(deep=True)
            return held

        for store in self._article_slices:
            store.map_articles(apply)

    def remove_article(self, identifier: str) -> None:
        for store in self._article_slices:
            store.drop_articles(lambda a: a.identifiers.matches(identifier))
