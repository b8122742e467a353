"""Smoke tests for the CLI."""

import json

import pytest
from factories import FakeClient, author_doc, poem_doc, user_doc
from typer.testing import CliRunner

from unmatched_line import __version__
from unmatched_line import cli as cli_module
from unmatched_line import config as config_module
from unmatched_line.cli import app
from unmatched_line.errors import Unauthorized
from unmatched_line.stores import StoreHub


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def client(monkeypatch, tmp_path) -> FakeClient:
    """Route every hub the CLI builds through one fake client."""
    fake = FakeClient()
    for key in ("UNMATCHED_LINE_URL", "UNMATCHED_LINE_SESSION"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(config_module, "CONFIG_SEARCH_PATHS", [tmp_path])
    monkeypatch.setattr(config_module, "GLOBAL_CONFIG_PATH", tmp_path / "global.toml")
    monkeypatch.setattr(cli_module, "HISTORY_DIR", tmp_path)
    monkeypatch.setattr(
        cli_module,
        "StoreHub",
        lambda settings, **kwargs: StoreHub(settings, client=fake, **kwargs),
    )
    return fake


class TestCLI:
    """Tests for the CLI entry point."""

    def test_main_help(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "poems" in result.output
        assert "readlist-toggle" in result.output

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestBrowse:
    def test_poems(self, runner: CliRunner, client: FakeClient) -> None:
        client.route("GET", "/api/poem", {"poems": [poem_doc("p1")], "hasMore": False})
        result = runner.invoke(app, ["poems"])
        assert result.exit_code == 0, result.output
        assert "Title p1" in result.output
        assert client.calls[0].params["limit"] == 20

    def test_poems_follows_cursor(self, runner: CliRunner, client: FakeClient) -> None:
        client.route(
            "GET",
            "/api/poem",
            {"poems": [poem_doc("p1")], "hasMore": True, "nextCursor": "c1"},
            {"poems": [poem_doc("p2")], "hasMore": False},
        )
        result = runner.invoke(app, ["poems", "--pages", "3", "-n", "1"])
        assert result.exit_code == 0, result.output
        assert "Title p2" in result.output
        assert len(client.calls) == 2

    def test_poems_empty(self, runner: CliRunner, client: FakeClient) -> None:
        client.route("GET", "/api/poem", {"poems": [], "hasMore": False})
        result = runner.invoke(app, ["poems"])
        assert result.exit_code == 0
        assert "No poems found" in result.output

    def test_poem_by_slug(self, runner: CliRunner, client: FakeClient) -> None:
        client.route("GET", "/api/poems/p1-ur", {"poem": poem_doc("p1")})
        result = runner.invoke(app, ["poem", "p1-ur", "--lang", "ur"])
        assert result.exit_code == 0, result.output
        assert "Mirza Ghalib" in result.output

    def test_service_error_exits_nonzero(self, runner: CliRunner, client: FakeClient) -> None:
        client.route("GET", "/api/poems/missing", {})
        result = runner.invoke(app, ["poem", "missing"])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_search_records_history(self, runner: CliRunner, client: FakeClient, tmp_path) -> None:
        client.route(
            "GET",
            "/api/search",
            {"poems": {"results": [poem_doc("p1")]}, "users": {"results": []}},
        )
        result = runner.invoke(app, ["search", "dil"])
        assert result.exit_code == 0, result.output
        assert "Title p1" in result.output
        assert json.loads((tmp_path / "search-history.json").read_text()) == ["dil"]

    def test_articles(self, runner: CliRunner, client: FakeClient) -> None:
        client.route(
            "GET",
            "/api/poems/feed",
            {
                "articles": [
                    {
                        "_id": "art1",
                        "title": "On Ghalib",
                        "slug": "on-ghalib",
                        "poet": {"_id": "a1", "name": "Mirza Ghalib"},
                        "coverImage": None,
                    }
                ],
                "pagination": {"total": 1, "page": 1, "limit": 10, "totalPages": 1},
            },
        )
        result = runner.invoke(app, ["articles"])
        assert result.exit_code == 0, result.output
        assert "On Ghalib" in result.output
        assert "page 1 of 1" in result.output


@pytest.fixture
def session(client: FakeClient, monkeypatch) -> None:
    monkeypatch.setenv("UNMATCHED_LINE_SESSION", "sid=1")


class TestSignedIn:
    @pytest.mark.parametrize("args", [["readlist"], ["readlist-toggle", "p1"], ["follow", "poet-a1"]])
    def test_no_session_cookie_sends_nothing(
        self, runner: CliRunner, client: FakeClient, args: list[str]
    ) -> None:
        result = runner.invoke(app, args)
        assert result.exit_code == 1
        assert "Sign in required" in result.output
        assert client.calls == []

    @pytest.mark.usefixtures("session")
    def test_readlist_signed_out(self, runner: CliRunner, client: FakeClient) -> None:
        client.route("GET", "/api/user", Unauthorized())
        result = runner.invoke(app, ["readlist"])
        assert result.exit_code == 1
        assert "Sign in required" in result.output

    @pytest.mark.usefixtures("session")
    def test_readlist_toggle(self, runner: CliRunner, client: FakeClient) -> None:
        client.route("GET", "/api/user", {"user": user_doc("u1", readList=["p1"])})
        client.route("DELETE", "/api/user/readlist/remove", {"message": "ok"})
        result = runner.invoke(app, ["readlist-toggle", "p1"])
        assert result.exit_code == 0, result.output
        assert "Removed from reading list" in result.output

    @pytest.mark.usefixtures("session")
    def test_readlist_toggle_unauthorized(self, runner: CliRunner, client: FakeClient) -> None:
        client.route("GET", "/api/user", Unauthorized())
        client.route("POST", "/api/user/readlist/add", Unauthorized())
        result = runner.invoke(app, ["readlist-toggle", "p1"])
        assert result.exit_code == 1
        assert "Sign in required" in result.output

    @pytest.mark.usefixtures("session")
    def test_follow(self, runner: CliRunner, client: FakeClient) -> None:
        client.route("GET", "/api/user", {"user": user_doc("u1", name="Asha")})
        client.route("GET", "/api/poets/poet-a1", author_doc("a1", followerCount=2))
        client.route("POST", "/api/follow", {"message": "ok"})
        client.route("GET", "/api/authors/a1", {"author": None})
        result = runner.invoke(app, ["follow", "poet-a1"])
        assert result.exit_code == 0, result.output
        assert "Followed" in result.output
        assert "Poet a1 now has 3 follower(s)" in result.output
