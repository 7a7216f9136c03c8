"""Pizzaz MCP Server CLI.

Commands:
    pizzaz-server serve     - Run the HTTP+SSE MCP server
    pizzaz-server check     - Build the capability registry and list it
    pizzaz-server health    - Check a running server's health
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
import httpx

from .config import ReplyMode, ServerConfig, WidgetEmbedding
from .errors import StartupError


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _load_config(**overrides: object) -> ServerConfig:
    try:
        return ServerConfig.from_env().with_overrides(**overrides)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


@click.group(invoke_without_command=True)
@click.pass_context
def main(ctx: click.Context) -> None:
    """Pizzaz MCP server - pizza widgets over HTTP+SSE."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# =============================================================================
# Server Commands
# =============================================================================


@main.command()
@click.option("--host", default=None, help="Host to bind to [env: PIZZAZ_HOST]")
@click.option("--port", default=None, type=int, help="Port to bind to [env: MCP_PORT]")
@click.option(
    "--assets-dir",
    default=None,
    type=click.Path(path_type=Path),
    help="Directory with built widget HTML [env: PIZZAZ_ASSETS_DIR]",
)
@click.option(
    "--widget-embedding",
    default=None,
    type=click.Choice([e.value for e in WidgetEmbedding]),
    help="Reference widget markup by URI or inline it in tool results",
)
@click.option(
    "--reply-mode",
    default=None,
    type=click.Choice([m.value for m in ReplyMode]),
    help="Deliver responses on the SSE stream or in the POST body",
)
@click.option("--heartbeat-interval", default=None, type=float, help="Seconds between pings")
@click.option(
    "--max-body-bytes",
    default=None,
    type=click.IntRange(min=1),
    help="Largest accepted POST body [env: PIZZAZ_MAX_BODY_BYTES]",
)
@click.option("--log-level", default=None, help="Logging level [env: PIZZAZ_LOG_LEVEL]")
def serve(
    host: str | None,
    port: int | None,
    assets_dir: Path | None,
    widget_embedding: str | None,
    reply_mode: str | None,
    heartbeat_interval: float | None,
    max_body_bytes: int | None,
    log_level: str | None,
) -> None:
    """Run the MCP server.

    The capability registry is built before the port is bound; missing
    widget assets abort startup.
    """
    import uvicorn

    from .app import create_app

    config = _load_config(
        host=host,
        port=port,
        assets_dir=assets_dir,
        widget_embedding=widget_embedding,
        reply_mode=reply_mode,
        heartbeat_interval=heartbeat_interval,
        max_body_bytes=max_body_bytes,
        log_level=log_level.upper() if log_level else None,
    )
    _configure_logging(config.log_level)

    try:
        app = create_app(config)
    except StartupError as e:
        click.echo(f"Startup failed: {e}", err=True)
        sys.exit(1)

    base = f"http://{config.host}:{config.port}"
    click.echo(f"Pizzaz MCP server listening on {base}", err=True)
    click.echo(f"  SSE stream: GET {base}{config.sse_path}", err=True)
    click.echo(f"  Message post endpoint: POST {base}{config.post_path}?sessionId=...", err=True)
    click.echo("Press Ctrl+C to stop", err=True)

    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


@main.command()
@click.option(
    "--assets-dir",
    default=None,
    type=click.Path(path_type=Path),
    help="Directory with built widget HTML [env: PIZZAZ_ASSETS_DIR]",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def check(assets_dir: Path | None, as_json: bool) -> None:
    """Build the capability registry and list what it exposes."""
    from .capabilities import build_registry

    config = _load_config(assets_dir=assets_dir)

    try:
        registry = build_registry(config.assets_dir, embedding=config.widget_embedding)
    except StartupError as e:
        click.echo(f"Startup check failed: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "tools": [t.name for t in registry.tools],
                    "resources": [r.uri for r in registry.resources],
                    "widget_embedding": registry.embedding.value,
                },
                indent=2,
            )
        )
        return

    click.echo(f"Assets: {config.assets_dir}")
    click.echo("Tools:")
    for tool in registry.tools:
        click.echo(f"  {tool.name:<16} {tool.title}")
    click.echo("Resources:")
    for resource in registry.resources:
        click.echo(f"  {resource.uri:<32} {len(resource.text)} chars")


@main.command()
@click.option("--url", default=None, help="Server base URL (default: from config)")
def health(url: str | None) -> None:
    """Check server health."""
    if url is None:
        config = _load_config()
        host = "127.0.0.1" if config.host == "0.0.0.0" else config.host
        url = f"http://{host}:{config.port}"

    async def do_check() -> None:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(f"{url}/health")
                if response.status_code == 200:
                    click.echo(f"Server is healthy: {response.json()}")
                else:
                    click.echo(f"Server returned {response.status_code}", err=True)
                    sys.exit(1)
        except httpx.ConnectError:
            click.echo(f"Cannot connect to server at {url}", err=True)
            sys.exit(1)

    asyncio.run(do_check())


if __name__ == "__main__":
    main()
