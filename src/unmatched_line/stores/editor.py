"""Create/update/delete stores for poems, authors and articles.

Each action validates its payload, makes one call, and on success
reconciles every registered slice and clears the response cache so
aggregate counts are re-read.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from unmatched_line.cancellation import CancelToken
from unmatched_line.errors import ContentServiceError, PayloadValidationError, Unauthorized
from unmatched_line.models import Article, Author, MutationResult
from unmatched_line.stores.base import Store, is_stale
from unmatched_line.stores.relations import CANCELLED_MESSAGE
from unmatched_line.validators import ArticleDraft, PoemDraft, PoemUpdate, validate_payload

logger = logging.getLogger(__name__)

Payload = BaseModel | Mapping[str, Any]


class _MutationStore(Store):
    """Shared failure handling for single-entity mutations."""

    def _reject(self, exc: PayloadValidationError) -> MutationResult:
        message = str(exc)
        self._set(error=message, loading=False)
        return MutationResult(success=False, message=message)

    def _failed(self, exc: ContentServiceError, fallback: str) -> MutationResult:
        if isinstance(exc, Unauthorized):
            return self._auth_required()
        message = self._fail(exc, fallback)
        return MutationResult(success=False, message=message)

    @staticmethod
    def _cancelled() -> MutationResult:
        return MutationResult(success=False, message=CANCELLED_MESSAGE)


class PoemEditorStore(_MutationStore):
    """Admin poem editing."""

    def create(
        self,
        payload: Payload,
        cover_image: Path | None = None,
        token: CancelToken | None = None,
    ) -> MutationResult:
        if is_stale(token):
            return self._cancelled()
        try:
            draft = validate_payload(PoemDraft, payload)
        except PayloadValidationError as exc:
            return self._reject(exc)

        self._begin()
        try:
            envelope = self.client.create_poem(draft.to_form(), cover_image)
        except ContentServiceError as exc:
            return self._failed(exc, "Failed to create poem")
        if envelope.poem is None:
            return self._failed(
                ContentServiceError("Service did not return the created poem"),
                "Failed to create poem",
            )

        self._invalidate()
        if is_stale(token):
            self._set(loading=False)
            return MutationResult(success=True, message=envelope.message, entity=envelope.poem)
        if self.registry is not None:
            self.registry.add_poem(envelope.poem)
        self._set(loading=False)
        logger.info("Created poem %s", envelope.poem.id)
        return MutationResult(success=True, message=envelope.message, entity=envelope.poem)

    def update(
        self,
        identifier: str,
        payload: Payload,
        cover_image: Path | None = None,
        token: CancelToken | None = None,
    ) -> MutationResult:
        if is_stale(token):
            return self._cancelled()
        try:
            changes = validate_payload(PoemUpdate, payload)
        except PayloadValidationError as exc:
            return self._reject(exc)

        self._begin()
        try:
            envelope = self.client.update_poem(identifier, changes.to_form(), cover_image)
        except ContentServiceError as exc:
            return self._failed(exc, "Failed to update poem")
        if envelope.poem is None:
            return self._failed(
                ContentServiceError("Service did not return the updated poem"),
                "Failed to update poem",
            )

        self._invalidate()
        if is_stale(token):
            self._set(loading=False)
            return MutationResult(success=True, message=envelope.message, entity=envelope.poem)
        if self.registry is not None:
            self.registry.replace_poem(envelope.poem)
        self._set(loading=False)
        logger.info("Updated poem %s", envelope.poem.id)
        return MutationResult(success=True, message=envelope.message, entity=envelope.poem)

    def delete(self, identifier: str, token: CancelToken | None = None) -> MutationResult:
        """Delete by id or any localized slug; every slice drops the poem."""
        if is_stale(token):
            return self._cancelled()
        self._begin()
        try:
            response = self.client.delete_poem(identifier)
        except ContentServiceError as exc:
            return self._failed(exc, "Failed to delete poem")

        self._invalidate()
        if is_stale(token):
            self._set(loading=False)
            return MutationResult(success=True, message=response.message)
        if self.registry is not None:
            self.registry.remove_poem(identifier)
        self._set(loading=False)
        logger.info("Deleted poem %s", identifier)
        return MutationResult(success=True, message=response.message)


class AuthorAdminStore(_MutationStore):
    """Admin poet editing."""

    def update(
        self,
        identifier: str,
        payload: Mapping[str, Any],
        image: Path | None = None,
        token: CancelToken | None = None,
    ) -> MutationResult:
        if is_stale(token):
            return self._cancelled()
        self._begin()
        try:
            envelope = self.client.update_author(identifier, payload, image)
        except ContentServiceError as exc:
            return self._failed(exc, "Failed to update author")

        self._invalidate()
        author = envelope.author
        if is_stale(token):
            self._set(loading=False)
            return MutationResult(success=True, message=envelope.message, entity=author)
        if author is not None and self.registry is not None:
            self.registry.update_author(identifier, lambda _old: author.model_copy(deep=True))
        self._set(loading=False)
        return MutationResult(success=True, message=envelope.message, entity=author)

    def delete(self, identifier: str, token: CancelToken | None = None) -> MutationResult:
        if is_stale(token):
            return self._cancelled()
        self._begin()
        try:
            response = self.client.delete_author(identifier)
        except ContentServiceError as exc:
            return self._failed(exc, "Failed to delete author")

        self._invalidate()
        if is_stale(token):
            self._set(loading=False)
            return MutationResult(success=True, message=response.message)
        if self.registry is not None:
            self.registry.remove_author(identifier)
        self._set(loading=False)
        logger.info("Deleted author %s", identifier)
        return MutationResult(success=True, message=response.message)


class ArticleStore(_MutationStore):
    """One article at a time: fetch, edit, delete.

    Edits and deletes reach every article feed through the registry.
    Deleting an article also takes it off its poet: the poet's
    ``article_count`` drops by one and the back-reference goes.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.article: Article | None = None

    def fetch(self, slug: str, token: CancelToken | None = None) -> None:
        if is_stale(token):
            return
        self._begin(token)
        try:
            article = self.client.get_article(slug, token=token)
        except ContentServiceError as exc:
            self._fail(exc, "Failed to fetch article", token)
            return
        if is_stale(token):
            return
        if article is None:
            self._set(error="Article not found", loading=False)
            return
        self._set(article=article, loading=False)

    def update(
        self,
        slug: str,
        payload: Payload,
        cover_image: Path | None = None,
        token: CancelToken | None = None,
    ) -> MutationResult:
        if is_stale(token):
            return self._cancelled()
        try:
            changes = validate_payload(ArticleDraft, payload)
        except PayloadValidationError as exc:
            return self._reject(exc)

        self._begin()
        try:
            envelope = self.client.update_article(slug, changes.to_form(), cover_image)
        except ContentServiceError as exc:
            return self._failed(exc, "Failed to update article")

        self._invalidate()
        article = envelope.article
        if is_stale(token):
            self._set(loading=False)
            return MutationResult(success=True, message=envelope.message, entity=article)
        if article is not None and (
            self.article is None or self.article.identifiers.matches(slug)
        ):
            self._set(article=article)
        if article is not None and self.registry is not None:
            self.registry.replace_article(slug, article)
        self._set(loading=False)
        return MutationResult(success=True, message=envelope.message, entity=article)

    def delete(self, slug: str, token: CancelToken | None = None) -> MutationResult:
        if is_stale(token):
            return self._cancelled()
        held = self.article if self.article and self.article.identifiers.matches(slug) else None
        self._begin()
        try:
            response = self.client.delete_article(slug)
        except ContentServiceError as exc:
            return self._failed(exc, "Failed to delete article")

        self._invalidate()
        if is_stale(token):
            self._set(loading=False)
            return MutationResult(success=True, message=response.message)
        if held is not None:
            self._detach_from_poet(held)
            self._set(article=None)
        if self.registry is not None:
            self.registry.remove_article(slug)
        self._set(loading=False)
        logger.info("Deleted article %s", slug)
        return MutationResult(success=True, message=response.message)

    def _detach_from_poet(self, article: Article) -> None:
        if self.registry is None or article.poet is None or not article.poet.id:
            return

        def detach(author: Author) -> Author:
            return author.model_copy(
                update={
                    "article_count": max(author.article_count - 1, 0),
                    "articles": [a for a in author.articles if a != article.id],
                }
            )

        self.registry.update_author(article.poet.id, detach)


