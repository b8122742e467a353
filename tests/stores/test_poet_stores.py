"""Tests for the poet directory, poet works and the detail stores."""

from __future__ import annotations

from factories import author_doc, poem_doc

from unmatched_line.errors import HTTPStatusError
from unmatched_line.stores.detail import PoemDetailStore, PoetDetailStore
from unmatched_line.stores.poets import PoetListStore, PoetWorksStore


def _author_page(ids, page=1, pages=3, total=30):
    return {"authors": [author_doc(i) for i in ids], "page": page, "pages": pages, "total": total}


class TestPoetListStore:
    def test_filters_joined_with_commas(self, client, cache):
        client.route("GET", "/api/authors", _author_page(["a1"]))
        store = PoetListStore(client, cache)
        store.fetch(search="mir", cities=["Delhi", "Agra"], letters=["M"])
        assert client.calls[0].params == {
            "page": 1,
            "limit": 20,
            "search": "mir",
            "city": "Delhi,Agra",
            "letter": "M",
        }

    def test_empty_filters_omitted(self, client, cache):
        client.route("GET", "/api/authors", _author_page(["a1"]))
        PoetListStore(client, cache).fetch()
        params = client.calls[0].params
        assert params["search"] is None
        assert params["city"] is None
        assert client.url_for("/api/authors", params).endswith("/api/authors?page=1&limit=20")

    def test_second_page_appends(self, client, cache):
        client.route(
            "GET", "/api/authors", _author_page(["a1", "a2"]), _author_page(["a3"], page=2)
        )
        store = PoetListStore(client, cache)
        store.fetch()
        store.fetch(page=2)
        assert [a.id for a in store.poets] == ["a1", "a2", "a3"]
        assert store.meta.page == 2
        assert store.meta.has_more is True

    def test_reset_starts_over(self, client, cache):
        client.route("GET", "/api/authors", _author_page(["a1"]), _author_page(["b1"]))
        store = PoetListStore(client, cache)
        store.fetch()
        store.fetch(search="b", reset=True)
        assert [a.id for a in store.poets] == ["b1"]

    def test_fetch_author_cached_and_skipped(self, client, cache):
        client.route("GET", "/api/authors/a1", {"author": author_doc("a1")})
        store = PoetListStore(client, cache)
        store.fetch_author("a1")
        store.fetch_author("a1")
        assert store.authors["a1"].name == "Poet a1"
        assert len(client.calls) == 1

    def test_fetch_author_missing(self, client, cache):
        client.route("GET", "/api/authors/zz", {"author": None})
        store = PoetListStore(client, cache)
        store.fetch_author("zz")
        assert store.error == "Author zz not found"
        assert "zz" not in store.authors


class TestPoetWorksStore:
    def _works(self, ids, page=1, pages=1):
        return {
            "poems": [poem_doc(i) for i in ids],
            "pagination": {"page": page, "limit": 20, "total": len(ids), "pages": pages},
        }

    def test_keyed_by_poet_and_category(self, client, cache):
        client.route("GET", "/api/poet/mirza-ghalib/works", self._works(["w1"]))
        store = PoetWorksStore(client, cache)
        store.fetch("mirza-ghalib", category="ghazal", sort_by="popular")

        assert client.calls[0].params == {
            "category": "ghazal",
            "page": 1,
            "limit": 20,
            "sortBy": "popular",
        }
        assert [p.id for p in store.poems("mirza-ghalib", "ghazal")] == ["w1"]
        assert store.poems("mirza-ghalib") == []
        assert store.meta["mirza-ghalib"]["ghazal"].has_more is False

    def test_second_page_appends(self, client, cache):
        client.route(
            "GET",
            "/api/poet/mir/works",
            self._works(["w1"], pages=2),
            self._works(["w2"], page=2, pages=2),
        )
        store = PoetWorksStore(client, cache)
        store.fetch("mir")
        store.fetch("mir", page=2)
        assert [p.id for p in store.poems("mir")] == ["w1", "w2"]

    def test_missing_pagination_means_no_more(self, client, cache):
        client.route("GET", "/api/poet/mir/works", {"poems": [poem_doc("w1")]})
        store = PoetWorksStore(client, cache)
        store.fetch("mir")
        assert store.meta["mir"]["all"].has_more is False


class TestPoemDetailStore:
    def test_fetch_by_slug(self, client):
        client.route("GET", "/api/poems/p1-ur", {"poem": poem_doc("p1")})
        store = PoemDetailStore(client)
        store.fetch("p1-ur")
        assert store.entity.id == "p1"
        assert store.error is None

    def test_empty_envelope_is_not_found(self, client):
        client.route("GET", "/api/poems/nope", {"poem": None})
        store = PoemDetailStore(client)
        store.fetch("nope")
        assert store.entity is None
        assert store.error == "Poem not found"

    def test_never_cached(self, client, cache):
        client.route("GET", "/api/poems/p1", {"poem": poem_doc("p1")})
        store = PoemDetailStore(client, cache)
        store.fetch("p1")
        store.fetch("p1")
        assert len(client.calls) == 2
        assert len(cache) == 0

    def test_clear(self, client):
        client.route("GET", "/api/poems/p1", HTTPStatusError(404, "Poem not found"))
        store = PoemDetailStore(client)
        store.fetch("p1")
        store.clear()
        assert store.entity is None
        assert store.error is None
        assert store.loading is False


class TestPoetDetailStore:
    def test_fetch(self, client):
        client.route("GET", "/api/poets/poet-a1", author_doc("a1", followerCount=9))
        store = PoetDetailStore(client)
        store.fetch("poet-a1")
        assert store.entity.follower_count == 9

    def test_not_found(self, client):
        client.route("GET", "/api/poets/ghost", {})
        store = PoetDetailStore(client)
        store.fetch("ghost")
        assert store.error == "Poet not found"
