"""Signed-in user profile and admin user management."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from unmatched_line.cancellation import CancelToken
from unmatched_line.errors import ContentServiceError, Unauthorized
from unmatched_line.models import MutationResult, User
from unmatched_line.stores.base import Store, is_stale

logger = logging.getLogger(__name__)


class CurrentUserStore(Store):
    """The signed-in user's own profile."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.user: User | None = None

    def fetch(self, token: CancelToken | None = None) -> None:
        if is_stale(token):
            return
        self._begin(token)
        try:
            user = self.client.get_current_user(token=token)
        except Unauthorized:
            self._auth_required(token)
            return
        except ContentServiceError as exc:
            self._fail(exc, "Failed to fetch user data", token)
            return
        if is_stale(token):
            return
        if user is None:
            self._set(error="User not found", loading=False)
            return
        self._set(user=user, loading=False)

    def update(self, payload: Mapping[str, Any], image: Path | None = None) -> MutationResult:
        try:
            envelope = self.client.update_current_user(payload, image)
        except Unauthorized:
            return self._auth_required()
        except ContentServiceError as exc:
            return MutationResult(success=False, message=self._fail(exc, "Failed to update profile"))
        if envelope.user is not None:
            self._set(user=envelope.user)
        return MutationResult(success=True, message=envelope.message, entity=envelope.user)

    def clear(self) -> None:
        self._set(user=None, error=None, loading=False)


class UserAdminStore(Store):
    """Admin view of all users. Users are matched by id or slug."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.users: list[User] = []
        self.selected: User | None = None

    def fetch_all(self, page: int = 1, limit: int = 10, token: CancelToken | None = None) -> None:
        if is_stale(token):
            return
        self._begin(token)
        try:
            data = self.client.list_users(page, limit, token=token)
        except ContentServiceError as exc:
            self._fail(exc, "Failed to fetch users", token)
            return
        if not is_stale(token):
            self._set(users=list(data.users), loading=False)

    def fetch_one(self, identifier: str, token: CancelToken | None = None) -> None:
        if is_stale(token):
            return
        self._begin(token)
        try:
            user = self.client.get_user(identifier, token=token)
        except ContentServiceError as exc:
            self._fail(exc, "Failed to fetch user", token)
            self._set(selected=None)
            return
        if is_stale(token):
            return
        if user is None:
            self._set(error="User not found", selected=None, loading=False)
            return
        self._set(selected=user, loading=False)

    def add(self, payload: Mapping[str, Any]) -> MutationResult:
        self._begin()
        try:
            envelope = self.client.create_user(payload)
        except Unauthorized:
            return self._auth_required()
        except ContentServiceError as exc:
            return MutationResult(success=False, message=self._fail(exc, "Failed to add user"))
        if envelope.user is not None:
            self._set(users=[*self.users, envelope.user])
        self._set(loading=False)
        return MutationResult(success=True, entity=envelope.user)

    def update(self, identifier: str, payload: Mapping[str, Any]) -> MutationResult:
        self._begin()
        try:
            envelope = self.client.update_user(identifier, payload)
        except Unauthorized:
            return self._auth_required()
        except ContentServiceError as exc:
            return MutationResult(success=False, message=self._fail(exc, "Failed to update user"))

        updated = envelope.user
        if updated is not None:
            def same(user: User) -> bool:
                return user.identifiers.matches(updated.id) or (
                    updated.slug is not None and user.identifiers.matches(updated.slug)
                )

            self._set(
                users=[updated if same(u) else u for u in self.users],
                selected=updated if self.selected and same(self.selected) else self.selected,
            )
        self._set(loading=False)
        return MutationResult(success=True, entity=updated)

    def delete(self, identifier: str) -> MutationResult:
        self._begin()
        try:
            self.client.delete_user(identifier)
        except Unauthorized:
            return self._auth_required()
        except ContentServiceError as exc:
            return MutationResult(success=False, message=self._fail(exc, "Failed to delete user"))

        selected = self.selected
        if selected is not None and selected.identifiers.matches(identifier):
            selected = None
        self._set(
            users=[u for u in self.users if not u.identifiers.matches(identifier)],
            selected=selected,
            loading=False,
        )
        logger.info("Deleted user %s", identifier)
        return MutationResult(success=True)
