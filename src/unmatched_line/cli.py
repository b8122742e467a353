"""CLI interface for unmatched-line."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from unmatched_line.config import GLOBAL_CONFIG_PATH, load_config, merge_cli_overrides
from unmatched_line.models import Locale, Poem, display_content, display_title
from unmatched_line.stores import StoreHub
from unmatched_line.stores.base import Store

app = typer.Typer(
    name="unmatched-line",
    help="Browse the poetry content service from the terminal.",
)

console = Console()

HISTORY_DIR = GLOBAL_CONFIG_PATH.parent

SIGN_IN_HINT = (
    "Set UNMATCHED_LINE_SESSION or [service].session_cookie to a signed-in session cookie."
)


@dataclass
class CliState:
    hub: Optional[StoreHub] = None
    auth_required: bool = False

    def flag_auth(self) -> None:
        self.auth_required = True


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from unmatched_line import __version__

        console.print(f"unmatched-line {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log requests and cache activity.")
    ] = False,
    config: Annotated[
        Optional[Path], typer.Option("--config", "-c", help="Path to a TOML config file.")
    ] = None,
    base_url: Annotated[
        Optional[str], typer.Option("--base-url", help="Content service base URL.")
    ] = None,
) -> None:
    """Unmatched Line - browse poems and poets."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    settings = merge_cli_overrides(load_config(config), base_url=base_url)

    state = CliState()
    state.hub = StoreHub(settings, on_auth_required=state.flag_auth, history_dir=HISTORY_DIR)
    ctx.obj = state


def _require_session(state: CliState) -> None:
    """Exit before any request when no session cookie is configured."""
    if not state.hub.config.service.is_authenticated:
        console.print("[red]Sign in required.[/red]")
        console.print(SIGN_IN_HINT)
        raise typer.Exit(1)


def _finish(state: CliState, store: Store) -> None:
    """Exit non-zero when the last action needed sign-in or failed."""
    if state.auth_required:
        console.print("[red]Sign in required.[/red]")
        console.print(SIGN_IN_HINT)
        raise typer.Exit(1)
    if store.error:
        console.print(f"[red]Error:[/red] {store.error}")
        raise typer.Exit(1)


def _poem_table(poems: list[Poem], lang: Locale, title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Poet")
    table.add_column("Category")
    table.add_column("Bookmarks", justify="right")
    table.add_column("Read lists", justify="right")
    for poem in poems:
        table.add_row(
            poem.id,
            display_title(poem, lang),
            poem.author_name,
            poem.category,
            str(poem.bookmark_count),
            str(poem.read_list_count),
        )
    return table


@app.command(name="poems")
def poems_cmd(
    ctx: typer.Context,
    limit: Annotated[Optional[int], typer.Option("--limit", "-n", help="Poems per page.")] = None,
    category: Annotated[Optional[str], typer.Option("--category", help="Filter by category.")] = None,
    search: Annotated[Optional[str], typer.Option("--search", "-s", help="Filter by text.")] = None,
    pages: Annotated[int, typer.Option("--pages", min=1, help="Pages to load.")] = 1,
    lang: Annotated[Locale, typer.Option("--lang", help="Display language.")] = Locale.EN,
) -> None:
    """List the cursor-paginated poem feed."""
    state: CliState = ctx.obj
    feed = state.hub.feed

    feed.fetch(limit=limit, category=category, search=search, reset=True)
    _finish(state, feed)
    for _ in range(pages - 1):
        if not feed.cursor.has_more:
            break
        feed.fetch_more(limit=limit, category=category, search=search)
        _finish(state, feed)

    if not feed.poems:
        console.print("[yellow]No poems found.[/yellow]")
        raise typer.Exit(0)
    console.print(_poem_table(feed.poems, lang, "Poems"))
    if feed.cursor.has_more:
        console.print(f"More available after cursor {feed.cursor.next_cursor}")


@app.command(name="category")
def category_cmd(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Category, e.g. ghazal or sher.")],
    page: Annotated[int, typer.Option("--page", "-p", min=1)] = 1,
    lang: Annotated[Locale, typer.Option("--lang")] = Locale.EN,
) -> None:
    """List one page of poems in a category."""
    state: CliState = ctx.obj
    store = state.hub.categories

    store.fetch(name, page=page)
    _finish(state, store)

    poems = store.poems(name)
    if not poems:
        console.print(f"[yellow]No poems in category {name.lower()}.[/yellow]")
        raise typer.Exit(0)
    meta = store.meta[name]
    console.print(_poem_table(poems, lang, f"{name.lower()} (page {meta.page} of {meta.pages})"))


@app.command(name="articles")
def articles_cmd(
    ctx: typer.Context,
    page: Annotated[int, typer.Option("--page", "-p", min=1)] = 1,
    limit: Annotated[Optional[int], typer.Option("--limit", "-n")] = None,
) -> None:
    """List published articles."""
    state: CliState = ctx.obj
    store = state.hub.article_feed

    store.fetch(page=page, limit=limit)
    _finish(state, store)

    if not store.articles:
        console.print("[yellow]No articles found.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Articles (page {store.meta.page} of {store.meta.pages})")
    table.add_column("Title")
    table.add_column("Slug", style="dim")
    table.add_column("Poet")
    table.add_column("Views", justify="right")
    for article in store.articles:
        table.add_row(
            article.title,
            article.slug,
            article.poet.name if article.poet else "",
            str(article.views_count),
        )
    console.print(table)

@app.command(name="poets")
def poets_cmd(
    ctx: typer.Context,
    search: Annotated[Optional[str], typer.Option("--search", "-s")] = None,
    city: Annotated[Optional[list[str]], typer.Option("--city", help="Repeatable.")] = None,
    letter: Annotated[Optional[list[str]], typer.Option("--letter", help="Repeatable.")] = None,
    page: Annotated[int, typer.Option("--page", "-p", min=1)] = 1,
) -> None:
    """List poets, optionally filtered."""
    state: CliState = ctx.obj
    store = state.hub.poets

    store.fetch(page=page, search=search or "", cities=city or (), letters=letter or ())
    _finish(state, store)

    if not store.poets:
        console.print("[yellow]No poets found.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Poets (page {store.meta.page} of {store.meta.pages})")
    table.add_column("Name")
    table.add_column("Slug", style="dim")
    table.add_column("City")
    table.add_column("Followers", justify="right")
    table.add_column("Ghazals", justify="right")
    table.add_column("Shers", justify="right")
    for poet in store.poets:
        table.add_row(
            poet.name,
            poet.slug,
            poet.city or "",
            str(poet.follower_count),
            str(poet.ghazal_count),
            str(poet.sher_count),
        )
    console.print(table)


@app.command(name="poem")
def poem_cmd(
    ctx: typer.Context,
    identifier: Annotated[str, typer.Argument(help="Poem id or localized slug.")],
    lang: Annotated[Locale, typer.Option("--lang")] = Locale.EN,
) -> None:
    """Show a single poem."""
    state: CliState = ctx.obj
    store = state.hub.poem

    store.fetch(identifier)
    _finish(state, store)

    poem = store.entity
    console.print(f"[bold]{display_title(poem, lang)}[/bold]")
    if poem.author_name:
        console.print(f"[dim]{poem.author_name}[/dim]")
    console.print()
    console.print(display_content(poem, lang))
    if poem.summary is not None and (summary := poem.summary.resolve(lang)):
        console.print()
        console.print(f"[italic]{summary}[/italic]")
    console.print()
    console.print(
        f"Views: {poem.views_count}  Bookmarks: {poem.bookmark_count}  "
        f"Read lists: {poem.read_list_count}"
    )


@app.command(name="poet")
def poet_cmd(
    ctx: typer.Context,
    identifier: Annotated[str, typer.Argument(help="Poet id or slug.")],
) -> None:
    """Show a single poet."""
    state: CliState = ctx.obj
    store = state.hub.poet

    store.fetch(identifier)
    _finish(state, store)

    poet = store.entity
    console.print(f"[bold]{poet.name}[/bold]" + (f" ({poet.city})" if poet.city else ""))
    if poet.bio:
        console.print(poet.bio)
    console.print(
        f"Followers: {poet.follower_count}  Ghazals: {poet.ghazal_count}  "
        f"Shers: {poet.sher_count}  Other: {poet.other_count}  Articles: {poet.article_count}"
    )


@app.command(name="search")
def search_cmd(
    ctx: typer.Context,
    query: Annotated[str, typer.Argument(help="Text to search for.")],
    page: Annotated[int, typer.Option("--page", "-p", min=1)] = 1,
    lang: Annotated[Optional[Locale], typer.Option("--lang")] = None,
) -> None:
    """Search poems and poets."""
    state: CliState = ctx.obj
    store = state.hub.search
    limit = state.hub.config.pagination.search_limit

    store.hydrate_history()
    store.fetch(query, page=page, limit=limit, language=lang.value if lang else None)
    _finish(state, store)
    store.add_history(query)

    if not store.poems and not store.users:
        console.print(f"[yellow]Nothing matched '{query}'.[/yellow]")
        raise typer.Exit(0)
    if store.poems:
        console.print(_poem_table(store.poems, lang or Locale.EN, "Poems"))
    if store.users:
        table = Table(title="Poets")
        table.add_column("Name")
        table.add_column("Slug", style="dim")
        for user in store.users:
            table.add_row(user.name, user.slug or "")
        console.print(table)


@app.command(name="readlist")
def readlist_cmd(ctx: typer.Context) -> None:
    """Show the signed-in reader's reading list."""
    state: CliState = ctx.obj
    _require_session(state)
    hub = state.hub

    hub.current_user.fetch()
    _finish(state, hub.current_user)
    hub.read_list.fetch()
    _finish(state, hub.read_list)

    if not hub.read_list.read_list:
        console.print("[yellow]Your reading list is empty.[/yellow]")
        raise typer.Exit(0)
    console.print(f"[green]{len(hub.read_list.read_list)} poem(s) on your reading list:[/green]")
    for poem_id in hub.read_list.read_list:
        console.print(f"  - {poem_id}")


@app.command(name="readlist-toggle")
def readlist_toggle_cmd(
    ctx: typer.Context,
    poem_id: Annotated[str, typer.Argument(help="Poem id.")],
) -> None:
    """Add a poem to the reading list, or remove it if already there."""
    state: CliState = ctx.obj
    _require_session(state)
    store = state.hub.read_list

    store.fetch()
    _finish(state, store)
    result = store.toggle(poem_id)
    _finish(state, store)
    console.print(f"[green]{result.message}[/green]")


@app.command(name="follow")
def follow_cmd(
    ctx: typer.Context,
    poet_id: Annotated[str, typer.Argument(help="Poet id or slug.")],
) -> None:
    """Follow a poet, or unfollow if already following."""
    state: CliState = ctx.obj
    _require_session(state)
    hub = state.hub

    hub.current_user.fetch()
    _finish(state, hub.current_user)
    user = hub.current_user.user
    hub.sign_in_as(user.id, user.name)

    hub.poet.fetch(poet_id)
    _finish(state, hub.poet)
    hub.follows.sync_from_author(hub.poet.entity)

    result = hub.follows.toggle(hub.poet.entity.id)
    _finish(state, hub.follows)
    console.print(f"[green]{result.message}[/green]")
    console.print(f"{hub.poet.entity.name} now has {hub.poet.entity.follower_count} follower(s)")
