"""Tests for outgoing payload validation."""

import pytest

from unmatched_line.errors import PayloadValidationError
from unmatched_line.validators import ArticleDraft, PoemDraft, PoemUpdate, validate_payload

POET_ID = "64b7f0c2a1b2c3d4e5f60718"


def _draft(**overrides):
    payload = {
        "title": {"en": "Aah ko chahiye", "hi": "आह को चाहिए", "ur": "آہ کو چاہیے"},
        "slug": {"en": "aah-en", "hi": "aah-hi", "ur": "aah-ur"},
        "content": {
            "en": [{"couplet": "aah ko chahiye ik umr asar hote tak"}],
            "hi": [{"couplet": "आह को चाहिए इक उम्र असर होते तक"}],
            "ur": [{"couplet": "آہ کو چاہیے اک عمر اثر ہوتے تک"}],
        },
        "poet": POET_ID,
        "category": "ghazal",
    }
    payload.update(overrides)
    return payload


class TestPoemDraft:
    def test_valid_payload(self):
        draft = validate_payload(PoemDraft, _draft())
        assert draft.poet == POET_ID
        assert draft.status == "published"

    def test_form_is_camel_case(self):
        form = validate_payload(PoemDraft, _draft(didYouKnow={"en": "fact"})).to_form()
        assert form["didYouKnow"] == {"en": "fact"}
        assert "summary" not in form

    def test_missing_locale_rejected(self):
        with pytest.raises(PayloadValidationError) as exc_info:
            validate_payload(PoemDraft, _draft(title={"en": "only english"}))
        assert any(e.startswith("title.hi") for e in exc_info.value.errors)

    def test_duplicate_slugs_rejected(self):
        with pytest.raises(PayloadValidationError) as exc_info:
            validate_payload(PoemDraft, _draft(slug={"en": "same", "hi": "same", "ur": "x"}))
        assert "unique" in str(exc_info.value)

    def test_each_locale_needs_a_couplet(self):
        content = _draft()["content"]
        content["ur"] = []
        with pytest.raises(PayloadValidationError):
            validate_payload(PoemDraft, _draft(content=content))

    def test_bad_poet_id(self):
        with pytest.raises(PayloadValidationError) as exc_info:
            validate_payload(PoemDraft, _draft(poet="ghalib"))
        assert "Invalid poet ID" in str(exc_info.value)

    def test_unknown_category(self):
        with pytest.raises(PayloadValidationError):
            validate_payload(PoemDraft, _draft(category="limerick"))

    def test_topic_limit(self):
        with pytest.raises(PayloadValidationError):
            validate_payload(PoemDraft, _draft(topics=[f"t{i}" for i in range(11)]))

    def test_existing_draft_passes_through(self):
        draft = PoemDraft.model_validate(_draft())
        assert validate_payload(PoemDraft, draft) is draft


class TestPoemUpdate:
    def test_partial_update(self):
        update = validate_payload(PoemUpdate, {"status": "draft"})
        assert update.to_form() == {"status": "draft"}

    def test_partial_update_still_checks_slugs(self):
        with pytest.raises(PayloadValidationError):
            validate_payload(PoemUpdate, {"slug": {"en": "a", "hi": "a", "ur": "a"}})

    def test_topics_capped(self):
        with pytest.raises(PayloadValidationError):
            validate_payload(PoemUpdate, {"topics": ["x"] * 11})


class TestArticleDraft:
    def test_title_length(self):
        with pytest.raises(PayloadValidationError):
            validate_payload(ArticleDraft, {"title": "x" * 201})

    def test_valid(self):
        draft = validate_payload(ArticleDraft, {"title": "On Ghalib", "tags": ["urdu"]})
        assert draft.to_form() == {"title": "On Ghalib", "slug": "on-ghalib", "tags": ["urdu"]}

    def test_slug_defaults_from_title(self):
        draft = validate_payload(ArticleDraft, {"title": "Ghalib -- at  200!"})
        assert draft.slug == "ghalib-at-200"

    def test_explicit_slug_kept(self):
        draft = validate_payload(ArticleDraft, {"title": "On Ghalib", "slug": "ghalib"})
        assert draft.slug == "ghalib"

    def test_untransliterable_title_leaves_slug_unset(self):
        assert validate_payload(ArticleDraft, {"title": "\u063a\u0627\u0644\u0628"}).slug is None
