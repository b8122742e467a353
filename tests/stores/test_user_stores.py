"""Tests for the signed-in user, admin user stores and the store hub."""

from __future__ import annotations

from factories import FakeClient, user_doc

from unmatched_line.config import ClientConfig, PaginationSectionConfig
from unmatched_line.errors import HTTPStatusError, Unauthorized
from unmatched_line.stores import StoreHub
from unmatched_line.stores.users import CurrentUserStore, UserAdminStore


class TestCurrentUserStore:
    def test_fetch(self, client):
        client.route("GET", "/api/user", user_doc("u1", name="Asha"))
        store = CurrentUserStore(client)
        store.fetch()
        assert store.user.name == "Asha"

    def test_signed_out_signals_auth(self, client):
        client.route("GET", "/api/user", Unauthorized())
        prompts = []
        store = CurrentUserStore(client, on_auth_required=lambda: prompts.append(True))
        store.fetch()
        assert store.user is None
        assert prompts == [True]

    def test_update(self, client):
        client.route("PATCH", "/api/user", {"user": user_doc("u1", name="Asha R."), "message": "Saved"})
        store = CurrentUserStore(client)
        result = store.update({"name": "Asha R."})
        assert result.success is True
        assert store.user.name == "Asha R."
        assert client.calls[0].body["fields"] == {"name": "Asha R."}


class TestUserAdminStore:
    def _loaded(self, client):
        client.route("GET", "/api/users", {"users": [user_doc("u1"), user_doc("u2")]})
        store = UserAdminStore(client)
        store.fetch_all()
        return store

    def test_fetch_all(self, client):
        store = self._loaded(client)
        assert [u.id for u in store.users] == ["u1", "u2"]
        assert client.calls[0].params == {"page": 1, "limit": 10}

    def test_fetch_one_missing(self, client):
        client.route("GET", "/api/users/ghost", {})
        store = UserAdminStore(client)
        store.fetch_one("ghost")
        assert store.error == "User not found"
        assert store.selected is None

    def test_add(self, client):
        store = self._loaded(client)
        client.route("POST", "/api/users", {"user": user_doc("u3")})
        store.add({"name": "New", "email": "n@example.com"})
        assert [u.id for u in store.users] == ["u1", "u2", "u3"]

    def test_update_by_slug(self, client):
        store = self._loaded(client)
        client.route("GET", "/api/users/user-u2", {"user": user_doc("u2")})
        store.fetch_one("user-u2")
        client.route("PATCH", "/api/users/user-u2", {"user": user_doc("u2", role="admin")})

        store.update("user-u2", {"role": "admin"})

        assert store.users[1].is_admin
        assert store.selected.is_admin

    def test_delete_by_slug(self, client):
        store = self._loaded(client)
        client.route("DELETE", "/api/users/user-u1", {"message": "deleted"})
        result = store.delete("user-u1")
        assert result.success is True
        assert [u.id for u in store.users] == ["u2"]

    def test_delete_failure(self, client):
        store = self._loaded(client)
        client.route("DELETE", "/api/users/u1", HTTPStatusError(403, "Forbidden"))
        result = store.delete("u1")
        assert result.message == "Forbidden"
        assert len(store.users) == 2


class TestStoreHub:
    def test_shares_cache_and_registry(self):
        hub = StoreHub(client=FakeClient())
        assert hub.feed.cache is hub.cache
        assert hub.search.cache is hub.cache
        assert hub.feed.registry is hub.registry
        assert hub.poem.cache is None

    def test_limits_from_config(self):
        config = ClientConfig(
            pagination=PaginationSectionConfig(
                feed_limit=5, category_limit=3, poem_list_limit=4, article_feed_limit=6
            )
        )
        hub = StoreHub(config, client=FakeClient())
        assert hub.feed.default_limit == 5
        assert hub.categories.default_limit == 3
        assert hub.poem_list.default_limit == 4
        assert hub.article_feed.default_limit == 6

    def test_toggle_in_one_view_updates_another(self):
        client = FakeClient()
        client.route("GET", "/api/poems/p1", {"poem": {"_id": "p1", "bookmarkCount": 4}})
        client.route("POST", "/api/poems/bookmark", {"message": "ok"})
        hub = StoreHub(client=client)
        hub.sign_in_as("u1", "Asha")

        hub.poem.fetch("p1")
        hub.bookmarks.toggle("p1")

        assert hub.poem.entity.bookmark_count == 5
        assert hub.follows.viewer.name == "Asha"
