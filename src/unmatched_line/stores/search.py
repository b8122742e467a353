"""Free-text search across poems and poets, with a local query history."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path

from unmatched_line.cancellation import CancelToken
from unmatched_line.client import POEMS_PATH, POETS_PATH, SEARCH_PATH
from unmatched_line.errors import ContentServiceError
from unmatched_line.models import (
    Author,
    Pagination,
    Poem,
    PoemListPage,
    PoetList,
    SearchResponse,
    User,
)
from unmatched_line.stores.base import PoemSlices, Store, is_stale

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10
HISTORY_FILENAME = "search-history.json"


class SearchStore(Store, PoemSlices):
    """Paged search results and the reader's recent queries.

    History is most-recent-first, de-duplicated and capped at
    ``HISTORY_LIMIT``. When ``history_dir`` is given it is persisted to
    a JSON file there after every change.
    """

    def __init__(self, *args, history_dir: Path | None = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.query = ""
        self.poems: list[Poem] = []
        self.users: list[User] = []
        self.poem_pagination: Pagination | None = None
        self.user_pagination: Pagination | None = None
        self.random_poems: list[Poem] = []
        self.random_poets: list[Author] = []
        self.history: list[str] = []
        self._history_path = history_dir / HISTORY_FILENAME if history_dir else None

    def fetch(
        self,
        query: str,
        page: int = 1,
        limit: int = 10,
        language: str | None = None,
        token: CancelToken | None = None,
    ) -> None:
        if is_stale(token):
            return
        self._begin(token)
        params = {"query": query, "page": page, "limit": limit, "language": language}
        try:
            data = self._cached_get(SEARCH_PATH, SearchResponse, params, token)
        except ContentServiceError as exc:
            self._fail(exc, "Failed to fetch search results", token)
            return
        if is_stale(token):
            return

        more = page > 1
        self._set(
            poems=[*self.poems, *data.poems.results] if more else list(data.poems.results),
            users=[*self.users, *data.users.results] if more else list(data.users.results),
            poem_pagination=data.poems.pagination,
            user_pagination=data.users.pagination,
            query=query,
            loading=False,
        )

    def fetch_random_poems(self, limit: int = 10, token: CancelToken | None = None) -> None:
        """Random picks are never cached; each call should differ."""
        if is_stale(token):
            return
        self._begin(token)
        try:
            data = self.client.get(
                POEMS_PATH, PoemListPage, params={"limit": limit, "random": "true"}, token=token
            )
        except ContentServiceError as exc:
            self._fail(exc, "Failed to fetch random poems", token)
            return
        if not is_stale(token):
            self._set(random_poems=list(data.poems), loading=False)

    def fetch_random_poets(self, limit: int = 10, token: CancelToken | None = None) -> None:
        if is_stale(token):
            return
        self._begin(token)
        try:
            data = self.client.get(
                POETS_PATH, PoetList, params={"limit": limit, "random": "true"}, token=token
            )
        except ContentServiceError as exc:
            self._fail(exc, "Failed to fetch random poets", token)
            return
        if not is_stale(token):
            self._set(random_poets=list(data.poets), loading=False)

    def clear(self) -> None:
        self._set(
            query="",
            poems=[],
            users=[],
            poem_pagination=None,
            user_pagination=None,
            error=None,
            loading=False,
        )

    # ── History ──────────────────────────────────────────────────────

    def add_history(self, query: str) -> None:
        if not query.strip():
            return
        history = [query, *(q for q in self.history if q != query)][:HISTORY_LIMIT]
        self._set(history=history)
        self._save_history()

    def remove_history(self, query: str) -> None:
        self._set(history=[q for q in self.history if q != query])
        self._save_history()

    def clear_history(self) -> None:
        self._set(history=[])
        if self._history_path is not None and self._history_path.exists():
            self._history_path.unlink()

    def hydrate_history(self) -> None:
        """Load persisted history, starting empty if the file is unreadable."""
        if self._history_path is None or not self._history_path.exists():
            return
        try:
            raw = json.loads(self._history_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            logger.warning("Corrupt search history at %s, starting fresh", self._history_path)
            return
        if isinstance(raw, list):
            self._set(history=[str(q) for q in raw][:HISTORY_LIMIT])

    def _save_history(self) -> None:
        if self._history_path is None:
            return
        self._history_path.parent.mkdir(parents=True, exist_ok=True)
        self._history_path.write_text(json.dumps(self.history), encoding="utf-8")

    # ── Slice reconciliation ─────────────────────────────────────────

    def map_poems(self, fn: Callable[[Poem], Poem]) -> None:
        self._set(
            poems=[fn(p) for p in self.poems],
            random_poems=[fn(p) for p in self.random_poems],
        )

    def drop_poems(self, predicate: Callable[[Poem], bool]) -> None:
        self._set(
            poems=[p for p in self.poems if not predicate(p)],
            random_poems=[p for p in self.random_poems if not predicate(p)],
        )
