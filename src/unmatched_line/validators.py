"""Outgoing payload schemas for admin create/update forms.

Payloads are checked before any request is sent; failures surface as
:class:`~unmatched_line.errors.PayloadValidationError` with one message
per offending field.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Annotated, Any, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from unmatched_line.errors import PayloadValidationError
from unmatched_line.models import PoemCategory, PoemStatus, slugify

DraftT = TypeVar("DraftT", bound=BaseModel)

_OBJECT_ID = re.compile(r"^[0-9a-fA-F]{24}$")

Topic = Annotated[str, StringConstraints(min_length=1, max_length=50)]


class _Draft(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_form(self) -> dict[str, Any]:
        """Form fields for a multipart request, camelCased, nulls dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RequiredLocalized(_Draft):
    en: str = Field(min_length=1, max_length=500)
    hi: str = Field(min_length=1, max_length=500)
    ur: str = Field(min_length=1, max_length=500)


class OptionalLocalized(_Draft):
    en: str | None = Field(default=None, max_length=500)
    hi: str | None = Field(default=None, max_length=500)
    ur: str | None = Field(default=None, max_length=500)


class CoupletDraft(_Draft):
    couplet: str = Field(min_length=1, max_length=1000)
    meaning: str | None = Field(default=None, max_length=1000)


class ContentDraft(_Draft):
    en: list[CoupletDraft] = Field(min_length=1)
    hi: list[CoupletDraft] = Field(min_length=1)
    ur: list[CoupletDraft] = Field(min_length=1)


class FaqDraft(_Draft):
    question: OptionalLocalized
    answer: OptionalLocalized


def _unique_slugs(slug: RequiredLocalized | None) -> RequiredLocalized | None:
    if slug is not None and len({slug.en, slug.hi, slug.ur}) != 3:
        raise ValueError("Slugs must be unique across languages")
    return slug


class PoemDraft(_Draft):
    """Full payload for creating a poem."""

    title: RequiredLocalized
    content: ContentDraft
    slug: RequiredLocalized
    poet: str
    topics: list[Topic] = Field(default_factory=list, max_length=10)
    category: PoemCategory = PoemCategory.POEM
    status: PoemStatus = PoemStatus.PUBLISHED
    summary: OptionalLocalized | None = None
    did_you_know: OptionalLocalized | None = None
    faqs: list[FaqDraft] = Field(default_factory=list)

    @field_validator("poet")
    @classmethod
    def _poet_is_object_id(cls, v: str) -> str:
        if not _OBJECT_ID.match(v):
            raise ValueError("Invalid poet ID")
        return v

    @model_validator(mode="after")
    def _check_slugs(self) -> PoemDraft:
        _unique_slugs(self.slug)
        return self


class PoemUpdate(_Draft):
    """Partial payload for updating a poem; only sent fields are checked."""

    title: RequiredLocalized | None = None
    content: ContentDraft | None = None
    slug: RequiredLocalized | None = None
    poet: str | None = None
    topics: Annotated[list[Topic], Field(max_length=10)] | None = None
    category: PoemCategory | None = None
    status: PoemStatus | None = None
    summary: OptionalLocalized | None = None
    did_you_know: OptionalLocalized | None = None
    faqs: list[FaqDraft] | None = None

    @field_validator("poet")
    @classmethod
    def _poet_is_object_id(cls, v: str | None) -> str | None:
        if v is not None and not _OBJECT_ID.match(v):
            raise ValueError("Invalid poet ID")
        return v

    @model_validator(mode="after")
    def _check_slugs(self) -> PoemUpdate:
        _unique_slugs(self.slug)
        return self


class ArticleDraft(_Draft):
    """Payload for updating an article."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    slug: str | None = Field(default=None, min_length=1)
    content: str | None = None
    summary: str | None = Field(default=None, max_length=500)
    poet: str | None = None
    category: list[str] | None = None
    tags: list[str] | None = None
    status: PoemStatus | None = None

    @model_validator(mode="after")
    def _default_slug(self) -> ArticleDraft:
        if self.title and self.slug is None:
            self.slug = slugify(self.title) or None
        return self


def validate_payload(schema: type[DraftT], payload: BaseModel | Mapping[str, Any]) -> DraftT:
    """Coerce ``payload`` into ``schema`` or raise PayloadValidationError."""
    if isinstance(payload, schema):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(by_alias=True)
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        messages = [
            f"{'.'.join(str(part) for part in err['loc']) or 'payload'}: {err['msg']}"
            for err in exc.errors()
        ]
        raise PayloadValidationError(messages) from exc
