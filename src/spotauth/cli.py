"""Click CLI entry points for spotauth."""

from __future__ import annotations

import logging
import sys

import click
from rich.console import Console
from rich.table import Table

from spotauth.config import DEFAULT_REDIRECT_URI, REDIRECT_URI_ENV

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s — %(message)s",
        stream=sys.stderr,
    )


def _redirect_option(f):
    return click.option(
        "--redirect-uri",
        envvar=REDIRECT_URI_ENV,
        default=DEFAULT_REDIRECT_URI,
        show_default=True,
        help=f"Redirect URI registered for the app (env: {REDIRECT_URI_ENV}).",
    )(f)


def _flow_options(f):
    f = click.option("--state", default=None, help="State token to use (random if omitted).")(f)
    f = click.option(
        "--scope", "-s", "scopes", multiple=True, help="Scope to request. Repeat for several."
    )(f)
    return _redirect_option(f)


def _fail(label: str, exc: Exception) -> None:
    console.print(f"[red]{label}:[/red] {exc}")
    sys.exit(1)


def _display_name(user: dict) -> str:
    return user.get("display_name") or user.get("id", "unknown")


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr (INFO otherwise).")
def cli(verbose: bool) -> None:
    """Spotify OAuth2 Authorization Code flow helper."""
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# scopes
# ---------------------------------------------------------------------------

@cli.command()
def scopes() -> None:
    """List the recognised permission scopes."""
    from spotauth.scopes import DESCRIPTIONS

    tbl = Table(show_header=True, header_style="bold magenta")
    tbl.add_column("Scope", no_wrap=True)
    tbl.add_column("Grants")
    for scope, description in DESCRIPTIONS.items():
        tbl.add_row(scope, description)
    console.print(tbl)


# ---------------------------------------------------------------------------
# url
# ---------------------------------------------------------------------------

@cli.command()
@_flow_options
def url(redirect_uri: str, scopes: tuple[str, ...], state: str | None) -> None:
    """Print the authorization URL to send a user to."""
    from spotauth.auth import Authenticator, new_state

    auth = Authenticator(redirect_uri, *scopes)
    try:
        auth_url = auth.auth_url(state or new_state())
    except Exception as e:
        _fail("Error", e)
    console.print(auth_url, soft_wrap=True, markup=False, highlight=False)


# ---------------------------------------------------------------------------
# login
# ---------------------------------------------------------------------------

@cli.command()
@_flow_options
@click.option("--no-browser", is_flag=True, help="Only print the URL, don't open a browser.")
def login(redirect_uri: str, scopes: tuple[str, ...], state: str | None, no_browser: bool) -> None:
    """Run the OAuth flow and cache the resulting token."""
    from spotipy.cache_handler import CacheFileHandler

    from spotauth.auth import AuthError, Authenticator, new_state
    from spotauth.config import TOKEN_CACHE_PATH, ensure_data_dir

    auth = Authenticator(redirect_uri, *scopes)
    state = state or new_state()

    try:
        auth_url = auth.auth_url(state)
        console.print("\nOpen this URL in your browser and authorize the app:\n")
        console.print(auth_url, soft_wrap=True, markup=False, highlight=False)
        if not no_browser:
            import webbrowser
            webbrowser.open(auth_url)

        response = click.prompt("\nPaste the redirect URL here").strip()
        token = auth.complete_auth_from_url(state, response)

        ensure_data_dir()
        CacheFileHandler(cache_path=str(TOKEN_CACHE_PATH)).save_token_to_cache(token)
        user = auth.new_client(token).current_user()
    except AuthError as e:
        _fail("Error", e)
    except Exception as e:
        _fail("Auth failed", e)

    console.print(f"[green]✓[/green] Authenticated as [bold]{_display_name(user)}[/bold]")
    console.print(f"Token cached at {TOKEN_CACHE_PATH}", markup=False, highlight=False)


# ---------------------------------------------------------------------------
# whoami
# ---------------------------------------------------------------------------

@cli.command()
@_redirect_option
def whoami(redirect_uri: str) -> None:
    """Show which user the cached token belongs to."""
    from spotipy.cache_handler import CacheFileHandler

    from spotauth.auth import Authenticator
    from spotauth.config import TOKEN_CACHE_PATH

    token = CacheFileHandler(cache_path=str(TOKEN_CACHE_PATH)).get_cached_token()
    if not token:
        console.print("[red]Error:[/red] No cached token. Run `spotauth login` first.")
        sys.exit(1)

    try:
        user = Authenticator(redirect_uri).new_client(token).current_user()
    except Exception as e:
        _fail("Auth failed", e)
    console.print(f"Authenticated as [bold]{_display_name(user)}[/bold]")
