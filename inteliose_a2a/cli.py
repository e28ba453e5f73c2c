#!/usr/bin/env python
"""
Inteliose A2A CLI - Command line interface for the A2A agent server
"""
from typing import Awaitable, Callable, Optional, TypeVar
import asyncio

import typer

from . import __version__
from .config import get_settings
from .db.store import TaskStore

T = TypeVar("T")

app = typer.Typer(help="Inteliose A2A CLI")

def open_store(database_url: Optional[str]) -> TaskStore:
    return TaskStore.from_url(database_url or get_settings().DATABASE_URL)

def run_query(database_url: Optional[str], query: Callable[[TaskStore], Awaitable[T]]) -> T:
    """Run one store query on a fresh event loop, closing the store afterwards"""
    async def runner() -> T:
        store = open_store(database_url)
        try:
            return await query(store)
        finally:
            await store.close()
    return asyncio.run(runner())

@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Host to bind server to"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to bind server to"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload on file changes"),
    log_level: Optional[str] = typer.Option(None, "--log-level", "-l", help="Logging level"),
):
    """
    Start the A2A agent server

    Settings come from the environment and .env; options override them.
    """
    from .server import run_server

    overrides = {"HOST": host, "PORT": port, "LOG_LEVEL": log_level}
    settings = get_settings().model_copy(
        update={key: value for key, value in overrides.items() if value is not None}
    )

    typer.echo(f"Starting Inteliose A2A server on {settings.HOST}:{settings.PORT}")
    typer.echo(f"Agent card: http://{settings.HOST}:{settings.PORT}/.well-known/agent-card.json")
    run_server(settings, reload=reload)

@app.command()
def stats(
    database_url: Optional[str] = typer.Option(None, "--database-url", help="Override DATABASE_URL"),
):
    """Show task counters by state"""
    counters = run_query(database_url, lambda store: store.get_stats())
    for name, value in counters.model_dump().items():
        typer.echo(f"{name:>10}: {value}")

@app.command()
def tasks(
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Number of tasks to show"),
    database_url: Optional[str] = typer.Option(None, "--database-url", help="Override DATABASE_URL"),
):
    """List the most recent tasks"""
    recent = run_query(database_url, lambda store: store.list_tasks(limit))
    if not recent:
        typer.echo("No tasks recorded")
        return
    for task in recent:
        typer.echo(f"{task.createdAt}  {task.status.state.value:<14} {task.id}")

@app.command()
def version():
    """Show Inteliose A2A version"""
    typer.echo(f"Inteliose A2A v{__version__}")

if __name__ == "__main__":
    app()
