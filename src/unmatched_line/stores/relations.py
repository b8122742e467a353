"""Toggle-style relations: reading list, bookmarks, follows.

Every toggle is pessimistic. Membership is read from local state, the
matching add/remove call is sent, and only after the service confirms
does local membership flip and every mirrored counter move. A 401 leaves
state untouched and raises the auth-required signal instead.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import UTC, datetime

from unmatched_line.cancellation import CancelToken
from unmatched_line.errors import ContentServiceError, Unauthorized
from unmatched_line.models import Author, Bookmark, Follower, MutationResult, Poem
from unmatched_line.stores.base import Store, is_stale

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Request was cancelled"


def _now_iso() -> str:
    return datetime.now(tz=UTC).isoformat()


class ToggleRelationStore(Store, ABC):
    """Membership set of target ids with add/remove round trips."""

    added_message = "Added"
    removed_message = "Removed"
    failure_message = "Failed to update"

    def __init__(self, *args, members: Iterable[str] = (), **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.members: list[str] = list(members)

    def is_member(self, target_id: str) -> bool:
        return target_id in self.members

    def toggle(self, target_id: str, token: CancelToken | None = None) -> MutationResult:
        """Add ``target_id`` if absent, remove it if present."""
        if is_stale(token):
            return MutationResult(success=False, message=CANCELLED_MESSAGE)
        was_member = self.is_member(target_id)
        self._begin()
        try:
            if was_member:
                self._send_remove(target_id)
            else:
                self._send_add(target_id)
        except Unauthorized:
            return self._auth_required()
        except ContentServiceError as exc:
            message = self._fail(exc, self.failure_message)
            return MutationResult(success=False, message=message)

        message = self.removed_message if was_member else self.added_message
        if is_stale(token):
            self._invalidate()
            self._set(loading=False)
            return MutationResult(success=True, message=message)

        if was_member:
            members = [m for m in self.members if m != target_id]
        else:
            members = [*self.members, target_id]
        self._set(members=members, loading=False)
        self._invalidate()
        self._reconcile(target_id, added=not was_member)
        logger.info(
            "%s %s %s", type(self).__name__, "removed" if was_member else "added", target_id
        )
        return MutationResult(success=True, message=message)

    @abstractmethod
    def _send_add(self, target_id: str) -> None:
        """Ask the service to add ``target_id``."""

    @abstractmethod
    def _send_remove(self, target_id: str) -> None:
        """Ask the service to remove ``target_id``."""

    @abstractmethod
    def _reconcile(self, target_id: str, added: bool) -> None:
        """Adjust mirrored counters after a confirmed toggle."""


class ReadListStore(ToggleRelationStore):
    """The signed-in reader's reading list of poem ids."""

    added_message = "Added to reading list"
    removed_message = "Removed from reading list"
    failure_message = "Failed to update reading list"

    @property
    def read_list(self) -> list[str]:
        return self.members

    def fetch(self, token: CancelToken | None = None) -> None:
        """Load the list from the current user. Signed-out means empty."""
        if is_stale(token):
            return
        self._begin(token)
        try:
            user = self.client.get_current_user(token=token)
        except Unauthorized:
            if not is_stale(token):
                self._set(members=[], loading=False)
            return
        except ContentServiceError as exc:
            self._fail(exc, "Failed to fetch read list", token)
            return
        if is_stale(token):
            return
        self._set(members=list(user.read_list) if user else [], loading=False)

    def _send_add(self, target_id: str) -> None:
        self.client.add_to_read_list(target_id)

    def _send_remove(self, target_id: str) -> None:
        self.client.remove_from_read_list(target_id)

    def _reconcile(self, target_id: str, added: bool) -> None:
        if self.registry is None:
            return

        def adjust(poem: Poem) -> Poem:
            if added:
                count = (poem.read_list_count or 0) + 1
            else:
                count = (poem.read_list_count or 1) - 1
            return poem.model_copy(update={"read_list_count": count})

        self.registry.update_poem(target_id, adjust)


class BookmarkStore(ToggleRelationStore):
    """Poems the signed-in reader has bookmarked."""

    added_message = "Bookmarked"
    removed_message = "Bookmark removed"
    failure_message = "Failed to update bookmark"

    def __init__(self, *args, user_id: str | None = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.user_id = user_id

    def sync_from_poems(self, poems: Iterable[Poem]) -> None:
        """Derive membership from the ``bookmarks`` embedded in ``poems``."""
        if not self.user_id:
            return
        ids = [p.id for p in poems if any(b.user_id == self.user_id for b in p.bookmarks)]
        self._set(members=ids)

    def toggle(self, target_id: str, token: CancelToken | None = None) -> MutationResult:
        if not self.user_id:
            return self._auth_required()
        return super().toggle(target_id, token=token)

    def _send_add(self, target_id: str) -> None:
        self.client.bookmark_poem(target_id, self.user_id, "add")

    def _send_remove(self, target_id: str) -> None:
        self.client.bookmark_poem(target_id, self.user_id, "remove")

    def _reconcile(self, target_id: str, added: bool) -> None:
        if self.registry is None:
            return
        user_id = self.user_id

        def adjust(poem: Poem) -> Poem:
            others = [b for b in poem.bookmarks if b.user_id != user_id]
            if added:
                bookmarks = [*others, Bookmark(user_id=user_id, bookmarked_at=_now_iso())]
                count = poem.bookmark_count + 1
            else:
                bookmarks = others
                count = max(poem.bookmark_count - 1, 0)
            return poem.model_copy(update={"bookmarks": bookmarks, "bookmark_count": count})

        self.registry.update_poem(target_id, adjust)


class FollowStore(ToggleRelationStore):
    """Poets the signed-in reader follows, keyed by author id."""

    added_message = "Followed"
    removed_message = "Unfollowed"
    failure_message = "Failed to update follow status"

    def __init__(self, *args, viewer: Follower | None = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.viewer = viewer

    def sync_from_author(self, author: Author) -> None:
        """Mark ``author`` as followed if the viewer is among its followers."""
        if self.viewer is None:
            return
        following = any(f.id == self.viewer.id for f in author.followers)
        if following and author.id not in self.members:
            self._set(members=[*self.members, author.id])
        elif not following and author.id in self.members:
            self._set(members=[m for m in self.members if m != author.id])

    def toggle(self, target_id: str, token: CancelToken | None = None) -> MutationResult:
        if self.viewer is None:
            return self._auth_required()
        result = super().toggle(target_id, token=token)
        if result.success and not is_stale(token):
            self._resync(target_id)
        return result

    def _send_add(self, target_id: str) -> None:
        self.client.follow(target_id)

    def _send_remove(self, target_id: str) -> None:
        self.client.unfollow(target_id)

    def _reconcile(self, target_id: str, added: bool) -> None:
        if self.registry is None:
            return
        viewer = self.viewer

        def adjust(author: Author) -> Author:
            others = [f for f in author.followers if f.id != viewer.id]
            if added:
                followers = [*others, viewer.model_copy(update={"followed_at": _now_iso()})]
                count = author.follower_count + 1
            else:
                followers = others
                count = max(author.follower_count - 1, 0)
            return author.model_copy(update={"followers": followers, "follower_count": count})

        self.registry.update_author(target_id, adjust)

    def _resync(self, author_id: str) -> None:
        """Replace local copies with the service's authoritative counts."""
        if self.registry is None:
            return
        try:
            envelope = self.client.get_author(author_id)
        except ContentServiceError:
            logger.warning("Failed to re-fetch author %s after follow toggle", author_id, exc_info=True)
            return
        if envelope.author is not None:
            self.registry.replace_author(envelope.author)
