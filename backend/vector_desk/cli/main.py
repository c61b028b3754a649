"""CLI entrypoint for vector-desk."""

from __future__ import annotations

import json
import os
from typing import Optional

import requests
import typer

app = typer.Typer(name="vdesk", help="Vector Desk command-line interface")
profiles_app = typer.Typer(name="profiles")
collections_app = typer.Typer(name="collections")
documents_app = typer.Typer(name="documents")
app.add_typer(profiles_app, name="profiles")
app.add_typer(collections_app, name="collections")
app.add_typer(documents_app, name="documents")

DEFAULT_HOST = "http://127.0.0.1:5180"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("VDESK_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=60, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


def _echo(resp: requests.Response) -> None:
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the bridge server."""
    import uvicorn

    from vector_desk.core.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "vector_desk.app:app",
        host=host or settings.bridge_host,
        port=port or settings.bridge_port,
        reload=reload,
        log_config=None,
    )


@app.command()
def command(
    profile: str = typer.Argument(..., help="Profile identifier"),
    name: str = typer.Argument(..., help="Command name, e.g. refresh"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Dispatch a menu command to a connected profile."""
    _echo(_request("POST", f"/profiles/{profile}/commands/{name}", host=host))


@profiles_app.command("list")
def list_profiles(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """List configured connection profiles."""
    _echo(_request("GET", "/profiles", host=host))


@profiles_app.command("connect")
def connect_profile(
    profile: str = typer.Argument(..., help="Profile identifier"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Connect a profile to its server."""
    _echo(_request("POST", f"/profiles/{profile}/connect", host=host))


@collections_app.command("list")
def list_collections(
    profile: str = typer.Argument(..., help="Profile identifier"),
    refresh: bool = typer.Option(False, "--refresh", help="Bypass the cache"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """List collections of a profile."""
    resp = _request("GET", f"/profiles/{profile}/collections", host=host, params={"refresh": refresh})
    _echo(resp)


@collections_app.command("delete")
def delete_collection(
    profile: str = typer.Argument(..., help="Profile identifier"),
    name: str = typer.Argument(..., help="Collection name"),
    confirm: str = typer.Option("", "--confirm", help="Type the collection name to delete a non-empty collection"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Delete a collection."""
    _echo(_request("DELETE", f"/profiles/{profile}/collections/{name}", host=host, json={"confirmation": confirm}))


@documents_app.command("search")
def search_documents(
    profile: str = typer.Argument(..., help="Profile identifier"),
    collection: str = typer.Argument(..., help="Collection name"),
    query: Optional[str] = typer.Option(None, "--query", "-q", help="Semantic query text"),
    where: list[str] = typer.Option([], "--where", help="Metadata predicate as key:operator:value, e.g. year:$gt:2020"),
    id_contains: Optional[str] = typer.Option(None, "--id", help="Substring filter on ids"),
    n_results: int = typer.Option(10, "--n", help="Number of results to return"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Search a collection with filters."""
    rows: list[dict[str, str]] = []
    if query:
        rows.append({"type": "search", "search_value": query})
    if id_contains:
        rows.append({"type": "id", "search_value": id_contains})
    for predicate in where:
        key, sep, rest = predicate.partition(":")
        operator, sep2, value = rest.partition(":")
        if not sep or not sep2:
            typer.echo(f"Invalid predicate {predicate!r}; expected key:operator:value", err=True)
            raise typer.Exit(code=2)
        rows.append({"type": "metadata", "metadata_key": key, "operator": operator, "metadata_value": value})
    payload = {"n_results": n_results, "rows": rows}
    resp = _request("PUT", f"/profiles/{profile}/collections/{collection}/filters", host=host, json=payload)
    _echo(resp)


if __name__ == "__main__":
    app()
