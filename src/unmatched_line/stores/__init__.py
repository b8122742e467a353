"""Client-side state stores for the content service."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from unmatched_line.cache import ResponseCache
from unmatched_line.client import ContentServiceClient
from unmatched_line.config import ClientConfig
from unmatched_line.models import Follower
from unmatched_line.stores.base import ArticleSlices, AuthorSlices, PoemSlices, Store
from unmatched_line.stores.detail import PoemDetailStore, PoetDetailStore
from unmatched_line.stores.editor import ArticleStore, AuthorAdminStore, PoemEditorStore
from unmatched_line.stores.feed import (
    ArticleFeedStore,
    CategoryPoemStore,
    PoemFeedStore,
    PoemListStore,
)
from unmatched_line.stores.media import CoverImageStore
from unmatched_line.stores.poets import PoetListStore, PoetWorksStore
from unmatched_line.stores.registry import SliceRegistry
from unmatched_line.stores.relations import BookmarkStore, FollowStore, ReadListStore
from unmatched_line.stores.search import SearchStore
from unmatched_line.stores.users import CurrentUserStore, UserAdminStore

__all__ = [
    "ArticleFeedStore",
    "ArticleSlices",
    "ArticleStore",
    "AuthorAdminStore",
    "AuthorSlices",
    "BookmarkStore",
    "CategoryPoemStore",
    "CoverImageStore",
    "CurrentUserStore",
    "FollowStore",
    "PoemDetailStore",
    "PoemEditorStore",
    "PoemFeedStore",
    "PoemListStore",
    "PoemSlices",
    "PoetDetailStore",
    "PoetListStore",
    "PoetWorksStore",
    "ReadListStore",
    "SearchStore",
    "SliceRegistry",
    "Store",
    "StoreHub",
    "UserAdminStore",
]


class StoreHub:
    """One client, one cache and one registry shared by every store.

    Stores built here see each other's mutations through the registry
    and share the response cache, so a toggle in one view invalidates
    listings held by another.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        client: ContentServiceClient | None = None,
        cache: ResponseCache | None = None,
        on_auth_required: Callable[[], None] | None = None,
        history_dir: Path | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self.client = client or ContentServiceClient(self.config.service)
        self.cache = cache or ResponseCache(
            ttl_seconds=self.config.cache.ttl_seconds,
            max_size=self.config.cache.max_size,
        )
        self.registry = SliceRegistry()

        shared = {
            "registry": self.registry,
            "on_auth_required": on_auth_required,
        }
        limits = self.config.pagination

        self.feed = PoemFeedStore(
            self.client, self.cache, default_limit=limits.feed_limit, **shared
        )
        self.categories = CategoryPoemStore(
            self.client, self.cache, default_limit=limits.category_limit, **shared
        )
        self.poem_list = PoemListStore(
            self.client, self.cache, default_limit=limits.poem_list_limit, **shared
        )
        self.article_feed = ArticleFeedStore(
            self.client, self.cache, default_limit=limits.article_feed_limit, **shared
        )
        self.poets = PoetListStore(
            self.client, self.cache, default_limit=limits.poet_limit, **shared
        )
        self.poet_works = PoetWorksStore(
            self.client, self.cache, default_limit=limits.poet_works_limit, **shared
        )
        self.cover_images = CoverImageStore(self.client, self.cache, **shared)

        self.poem = PoemDetailStore(self.client, **shared)
        self.poet = PoetDetailStore(self.client, **shared)
        self.search = SearchStore(self.client, self.cache, history_dir=history_dir, **shared)

        self.editor = PoemEditorStore(self.client, self.cache, **shared)
        self.authors = AuthorAdminStore(self.client, self.cache, **shared)
        self.articles = ArticleStore(self.client, self.cache, **shared)
        self.read_list = ReadListStore(self.client, self.cache, **shared)
        self.bookmarks = BookmarkStore(self.client, self.cache, **shared)
        self.follows = FollowStore(self.client, self.cache, **shared)

        self.current_user = CurrentUserStore(self.client, **shared)
        self.users = UserAdminStore(self.client, **shared)

    def sign_in_as(self, user_id: str, viewer_name: str | None = None) -> None:
        """Point the identity-bound stores at ``user_id``."""
        self.bookmarks.user_id = user_id
        self.follows.viewer = Follower(id=user_id, name=viewer_name or "")
