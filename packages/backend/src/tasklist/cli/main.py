"""Tasklist CLI: run the server, bootstrap the schema, manage your tasks.

Usage:
    tasklist serve --reload                         # Run the API with uvicorn
    tasklist init-db                                # Create tables from the models
    tasklist register alice alice@example.com       # Create an account (prompts for password)
    tasklist login alice@example.com                # Print export lines for token + user id
    tasklist tasks                                  # List your tasks
    tasklist add "Buy groceries" -d 2025-06-01      # Create a task
    tasklist edit <task_id> --title "Buy milk"      # Partial update
    tasklist rm <task_id>                           # Delete a task

Client commands read TASKLIST_API_URL, TASKLIST_TOKEN and TASKLIST_USER_ID.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx
import jwt

from tasklist import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://127.0.0.1:8000"


def _api_url() -> str:
    return os.environ.get("TASKLIST_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the Tasklist backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _require_env(name: str) -> str:
    value = os.environ.get(name)
    if not value:
        click.secho(
            f"Error: {name} is not set. Run `tasklist login` first.",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return value


def _session() -> tuple[str, dict[str, str]]:
    """Return (user_id, auth headers) from the environment."""
    token = _require_env("TASKLIST_TOKEN")
    user_id = _require_env("TASKLIST_USER_ID")
    return user_id, {"Authorization": f"JWT {token}"}


def _check(r: httpx.Response) -> dict | list:
    """Exit with the server's error message on a non-2xx response."""
    if r.is_success:
        return r.json()
    try:
        message = r.json().get("error", r.text)
    except ValueError:
        message = r.text
    click.secho(f"Error ({r.status_code}): {message}", fg="red", err=True)
    sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="tasklist")
def main():
    """Tasklist: personal tasks behind per-user JWT access."""


# ---------------------------------------------------------------------------
# Server commands
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: TASKLIST_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: TASKLIST_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server with uvicorn."""
    import uvicorn

    from tasklist.config import settings

    uvicorn.run(
        "tasklist.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("init-db")
def init_db():
    """Create the users and tasks tables if they don't exist."""
    from tasklist.db.engine import create_schema, engine

    async def _init():
        try:
            await create_schema()
        finally:
            await engine.dispose()

    _run(_init())
    click.secho("Schema ready.", fg="green")


# ---------------------------------------------------------------------------
# Account commands
# ---------------------------------------------------------------------------


@main.command()
@click.argument("username")
@click.argument("email")
@click.password_option()
def register(username: str, email: str, password: str):
    """Create an account."""
    _run(_register_impl(username, email, password))


async def _register_impl(username: str, email: str, password: str):
    async with _client() as c:
        r = await c.post(
            "/register",
            json={"username": username, "email": email, "password": password},
        )
        user = _check(r)
    click.secho(f"Registered {user['username']} ({user['id']})", fg="green")


@main.command()
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True)
def login(email: str, password: str):
    """Log in and print shell exports for the token and user id."""
    _run(_login_impl(email, password))


async def _login_impl(email: str, password: str):
    async with _client() as c:
        r = await c.post("/login", json={"email": email, "password": password})
        body = _check(r)

    # The server verifies the token; the client only reads its claim.
    claims = jwt.decode(body["token"], options={"verify_signature": False})
    click.echo(f"export TASKLIST_TOKEN={body['token']}")
    click.echo(f"export TASKLIST_USER_ID={claims['user_id']}")


# ---------------------------------------------------------------------------
# Task commands
# ---------------------------------------------------------------------------


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def tasks(as_json: bool):
    """List your tasks, earliest deadline first."""
    _run(_tasks_impl(as_json))


async def _tasks_impl(as_json: bool):
    user_id, headers = _session()
    async with _client() as c:
        r = await c.get(f"/tasks/{user_id}", headers=headers)
        rows = _check(r)

    if as_json:
        click.echo(_pretty_json(rows))
        return
    if not rows:
        click.echo("No tasks.")
        return
    click.secho(f"Tasks ({len(rows)}):", bold=True)
    for t in rows:
        click.echo(f"  {t['task_id'][:8]}  {t['deadline'][:10]}  {t['title']}")


@main.command()
@click.argument("title")
@click.option("--description", "-m", default="", help="Longer description")
@click.option("--deadline", "-d", required=True, help="Due date, YYYY-MM-DD")
def add(title: str, description: str, deadline: str):
    """Create a task."""
    _run(_add_impl(title, description, deadline))


async def _add_impl(title: str, description: str, deadline: str):
    user_id, headers = _session()
    async with _client() as c:
        r = await c.post(
            f"/tasks/{user_id}",
            json={"title": title, "description": description, "deadline": deadline},
            headers=headers,
        )
        task = _check(r)
    click.secho(f"Created {task['task_id']}", fg="green")


@main.command()
@click.argument("task_id")
@click.option("--title", default="", help="New title")
@click.option("--description", "-m", default="", help="New description")
@click.option("--deadline", "-d", default="", help="New due date, YYYY-MM-DD")
def edit(task_id: str, title: str, description: str, deadline: str):
    """Update a task. Options left out keep their current value."""
    _run(_edit_impl(task_id, title, description, deadline))


async def _edit_impl(task_id: str, title: str, description: str, deadline: str):
    user_id, headers = _session()
    async with _client() as c:
        r = await c.put(
            f"/tasks/{user_id}/{task_id}",
            json={"title": title, "description": description, "deadline": deadline},
            headers=headers,
        )
        task = _check(r)
    click.echo(_pretty_json(task))


@main.command()
@click.argument("task_id")
def rm(task_id: str):
    """Delete a task."""
    _run(_rm_impl(task_id))


async def _rm_impl(task_id: str):
    user_id, headers = _session()
    async with _client() as c:
        r = await c.delete(f"/tasks/{user_id}/{task_id}", headers=headers)
        _check(r)
    click.secho(f"Deleted {task_id}", fg="green")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
