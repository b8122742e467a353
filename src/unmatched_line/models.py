"""Content domain models: pydantic v2 types for the poetry service.

Entities are parsed from the service's camelCase JSON (``_id`` becomes
``id``) and dumped back with ``by_alias=True``.  Unknown keys are kept so
a round trip through a store never drops fields the service sent.
"""

from __future__ import annotations

import re
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

UNTITLED = "Untitled"
CONTENT_NOT_AVAILABLE = "Content not available"


class Locale(StrEnum):
    EN = "en"
    HI = "hi"
    UR = "ur"


class PoemCategory(StrEnum):
    """Known poem forms. The service treats the vocabulary as open."""

    POEM = "poem"
    GHAZAL = "ghazal"
    SHER = "sher"
    NAZM = "nazm"
    RUBAI = "rubai"
    MARSIYA = "marsiya"
    QATAA = "qataa"
    OTHER = "other"


class PoemStatus(StrEnum):
    DRAFT = "draft"
    PUBLISHED = "published"


class UserRole(StrEnum):
    USER = "user"
    POET = "poet"
    ADMIN = "admin"


def _id_field(**kwargs: Any) -> Any:
    return Field(
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="_id",
        **kwargs,
    )


def _to_id(value: Any) -> Any:
    """Collapse an embedded document or ``{"$oid": ...}`` to its id string."""
    if isinstance(value, dict):
        return value.get("_id") or value.get("id") or value.get("$oid") or ""
    return value


class WireModel(BaseModel):
    """Base for everything that crosses the network boundary."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


# ── Identifiers ──────────────────────────────────────────────────────


class Identifiers(BaseModel):
    """Every key a single logical entity can be addressed by.

    A poem answers to its ``_id`` and to each of its localized slugs;
    an author answers to its ``_id`` and its one slug.
    """

    model_config = ConfigDict(frozen=True)

    primary_id: str
    localized_slugs: dict[Locale, str] = Field(default_factory=dict)
    slug: str | None = None

    def matches(self, identifier: str | None) -> bool:
        if not identifier:
            return False
        if identifier == self.primary_id or identifier == self.slug:
            return True
        return identifier in self.localized_slugs.values()


# ── Localized text ───────────────────────────────────────────────────


class LocalizedText(WireModel):
    """A value available in up to three locales; ``en`` is the fallback."""

    en: str | None = None
    hi: str | None = None
    ur: str | None = None

    def get(self, lang: Locale | str) -> str | None:
        return getattr(self, Locale(lang).value, None) or None

    def resolve(self, lang: Locale | str = Locale.EN, fallback: str = "") -> str:
        """Return ``lang``'s value, then English, then ``fallback``."""
        return self.get(lang) or self.en or fallback


class Couplet(WireModel):
    couplet: str = ""
    verse: str = ""
    meaning: str = ""

    @property
    def text(self) -> str:
        return self.couplet or self.verse


class PoemContent(WireModel):
    en: list[Couplet] | str | None = None
    hi: list[Couplet] | str | None = None
    ur: list[Couplet] | str | None = None

    def get(self, lang: Locale | str) -> str | None:
        value = getattr(self, Locale(lang).value, None)
        if isinstance(value, list):
            value = "\n".join(c.text for c in value if c.text)
        return value or None


# ── References ───────────────────────────────────────────────────────


class AuthorRef(WireModel):
    """Denormalized author reference embedded in poems and articles."""

    id: str = _id_field(default="")
    name: str = ""
    slug: str | None = None


class MediaRef(WireModel):
    """An asset on the external media host."""

    url: str = ""
    public_id: str | None = None
    alt: str | None = None


class Bookmark(WireModel):
    user_id: str
    bookmarked_at: str | None = None


class Follower(WireModel):
    id: str = Field(validation_alias=AliasChoices("id", "userId", "_id"))
    name: str = ""
    image: str | None = None
    followed_at: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _flatten_id(cls, v: Any) -> Any:
        return _to_id(v)


# ── Entities ─────────────────────────────────────────────────────────


class Poem(WireModel):
    id: str = _id_field()
    title: LocalizedText = Field(default_factory=LocalizedText)
    slug: LocalizedText = Field(default_factory=LocalizedText)
    content: PoemContent | None = None
    summary: LocalizedText | None = None
    did_you_know: LocalizedText | None = None
    category: str = PoemCategory.POEM.value
    status: str = PoemStatus.PUBLISHED.value
    author: AuthorRef | None = None
    poet: AuthorRef | None = None
    views_count: int = 0
    bookmark_count: int = 0
    read_list_count: int = 0
    bookmarks: list[Bookmark] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    cover_image: MediaRef | str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _flatten_id(cls, v: Any) -> Any:
        return _to_id(v)

    @property
    def identifiers(self) -> Identifiers:
        slugs = {loc: s for loc in Locale if (s := self.slug.get(loc))}
        return Identifiers(primary_id=self.id, localized_slugs=slugs)

    @property
    def author_name(self) -> str:
        ref = self.author or self.poet
        return ref.name if ref else ""


class Author(WireModel):
    """A poet. ``slug`` is the public key, ``id`` the relation key."""

    id: str = _id_field()
    name: str = ""
    slug: str = ""
    image: str | None = None
    bio: str | None = None
    dob: str | None = None
    city: str | None = None
    ghazal_count: int = 0
    sher_count: int = 0
    other_count: int = 0
    follower_count: int = 0
    followers: list[Follower] = Field(default_factory=list)
    article_count: int = 0
    articles: list[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _flatten_id(cls, v: Any) -> Any:
        return _to_id(v)

    @field_validator("articles", mode="before")
    @classmethod
    def _flatten_articles(cls, v: Any) -> Any:
        return [_to_id(a) for a in v or []]

    @property
    def identifiers(self) -> Identifiers:
        return Identifiers(primary_id=self.id, slug=self.slug or None)


class Article(WireModel):
    id: str = _id_field()
    title: str = ""
    slug: str = ""
    content: str = ""
    summary: str = ""
    poet: AuthorRef | None = None
    cover_image: MediaRef | None = None
    category: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    status: str = PoemStatus.DRAFT.value
    views_count: int = 0
    bookmark_count: int = 0
    first_couplet_en: str = ""
    published_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _flatten_id(cls, v: Any) -> Any:
        return _to_id(v)

    @field_validator("poet", mode="before")
    @classmethod
    def _poet_ref(cls, v: Any) -> Any:
        if isinstance(v, str):
            return {"_id": v}
        return v

    @field_validator("cover_image", mode="before")
    @classmethod
    def _cover_url(cls, v: Any) -> Any:
        if isinstance(v, str):
            return {"url": v}
        return v

    @property
    def identifiers(self) -> Identifiers:
        return Identifiers(primary_id=self.id, slug=self.slug or None)


class Uploader(WireModel):
    name: str = ""


class CoverImage(WireModel):
    id: str = _id_field()
    url: str
    uploaded_by: Uploader | str | None = None
    created_at: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _flatten_id(cls, v: Any) -> Any:
        return _to_id(v)


class User(WireModel):
    id: str = _id_field()
    name: str = ""
    email: str = ""
    role: str = UserRole.USER.value
    slug: str | None = None
    read_list: list[str] = Field(default_factory=list)
    profile_picture: MediaRef | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _flatten_id(cls, v: Any) -> Any:
        return _to_id(v)

    @field_validator("read_list", mode="before")
    @classmethod
    def _flatten_read_list(cls, v: Any) -> Any:
        return [str(_to_id(p)) for p in v or []]

    @property
    def identifiers(self) -> Identifiers:
        return Identifiers(primary_id=self.id, slug=self.slug)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


# ── Wire schemas ─────────────────────────────────────────────────────


class Pagination(WireModel):
    page: int = 1
    limit: int = 10
    total: int = 0
    pages: int = 0
    has_next: bool = False
    has_prev: bool = False
    total_pages: int = 0

    @property
    def page_count(self) -> int:
        return self.pages or self.total_pages


class PoemCursorPage(WireModel):
    """``GET /api/poem``, cursor paginated feed."""

    poems: list[Poem] = Field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False


class PoemCategoryPage(WireModel):
    """``GET /api/poems-by-category``, page paginated."""

    poems: list[Poem] = Field(default_factory=list)
    page: int = 1
    total: int = 0
    pages: int = 0


class AuthorPage(WireModel):
    """``GET /api/authors``, page paginated."""

    authors: list[Author] = Field(default_factory=list)
    page: int = 1
    total: int = 0
    pages: int = 0


class PoemListPage(WireModel):
    """``GET /api/poems`` and ``GET /api/poet/{slug}/works``."""

    poems: list[Poem] = Field(default_factory=list)
    pagination: Pagination | None = None


class ArticleFeedPage(WireModel):
    """``GET /api/poems/feed``, published articles in random order."""

    articles: list[Article] = Field(default_factory=list)
    pagination: Pagination | None = None


class PoetList(WireModel):
    poets: list[Author] = Field(default_factory=list)


class UserList(WireModel):
    users: list[User] = Field(default_factory=list)


class PoemEnvelope(WireModel):
    poem: Poem | None = None
    message: str | None = None


class AuthorEnvelope(WireModel):
    author: Author | None = None
    message: str | None = None


class ArticleEnvelope(WireModel):
    article: Article | None = None
    message: str | None = None


class UserEnvelope(WireModel):
    user: User | None = None
    message: str | None = None


class CoverImageList(WireModel):
    cover_images: list[CoverImage] = Field(default_factory=list)


class SearchPoemBucket(WireModel):
    results: list[Poem] = Field(default_factory=list)
    pagination: Pagination | None = None


class SearchUserBucket(WireModel):
    results: list[User] = Field(default_factory=list)
    pagination: Pagination | None = None


class SearchResponse(WireModel):
    poems: SearchPoemBucket = Field(default_factory=SearchPoemBucket)
    users: SearchUserBucket = Field(default_factory=SearchUserBucket)


class MessageResponse(WireModel):
    message: str | None = None
    error: str | None = None


# ── Store-side state ─────────────────────────────────────────────────


class PageMeta(BaseModel):
    """Page-based pagination state for one slice."""

    page: int = 1
    total: int = 0
    pages: int = 0
    has_more: bool = True

    @classmethod
    def from_page(cls, page: int, total: int, pages: int) -> PageMeta:
        return cls(page=page, total=total, pages=pages, has_more=page < pages)


class CursorMeta(BaseModel):
    """Cursor-based pagination state."""

    next_cursor: str | None = None
    has_more: bool = True


class MutationResult(BaseModel):
    """Outcome of a create/update/delete/toggle action."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    message: str | None = None
    entity: Any = None
    auth_required: bool = False


# ── Display helpers ──────────────────────────────────────────────────


def display_title(poem: Poem, lang: Locale | str = Locale.EN) -> str:
    return poem.title.resolve(lang, UNTITLED)


def display_content(poem: Poem, lang: Locale | str = Locale.EN) -> str:
    if poem.content is None:
        return CONTENT_NOT_AVAILABLE
    return poem.content.get(lang) or poem.content.get(Locale.EN) or CONTENT_NOT_AVAILABLE


_SLUG_STRIP = re.compile(r"[^a-z0-9\s-]")
_SLUG_SPACES = re.compile(r"\s+")
_SLUG_HYPHENS = re.compile(r"-+")


def slugify(title: str, language: Locale | str | None = None) -> str:
    """URL slug for a title, suffixed with ``-<lang>`` when given."""
    base = _SLUG_SPACES.sub("-", _SLUG_STRIP.sub("", title.lower()).strip())
    base = _SLUG_HYPHENS.sub("-", base).strip("-")
    return f"{base}-{Locale(language).value}" if language else base
