import asyncio
import functools
import sys
from typing import Any

import click
from rich.console import Console
from rich.markup import escape

from action_control.config import Settings, load_settings
from action_control.exceptions import ActionControlError, InvalidInputError
from action_control.github.client import GitHubClient
from action_control.runner import ActionControlRunner

console = Console(stderr=True)

OUTPUT_FORMATS = ("markdown", "json")


def handle_async_command(async_func):
    """Decorator to handle async CLI commands."""
    @functools.wraps(async_func)
    def wrapper(*args, **kwargs):
        try:
            return asyncio.run(async_func(*args, **kwargs))
        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user[/yellow]")
            sys.exit(1)
        except ActionControlError as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            sys.exit(1)
        except asyncio.TimeoutError:
            console.print("[red]Error: timed out waiting for GitHub[/red]")
            sys.exit(1)
        except OSError as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            sys.exit(1)
    return wrapper


def build_settings(ctx: click.Context, **overrides: Any) -> Settings:
    """Combine the group options stored on the context with command options."""
    obj = ctx.find_root().obj or {}
    return load_settings(
        obj.get("CONFIG_FILE"),
        organization=obj.get("ORG"),
        repository=obj.get("REPO"),
        output_format=obj.get("OUTPUT"),
        github_token=obj.get("GITHUB_TOKEN"),
        **overrides,
    )


def resolve_output_format(settings: Settings) -> str:
    fmt = (settings.output_format or "markdown").lower()
    if fmt not in OUTPUT_FORMATS:
        raise InvalidInputError(f"Unsupported output format: {settings.output_format}")
    return fmt


def make_client(settings: Settings) -> GitHubClient:
    return GitHubClient(settings.require_token(), api_url=settings.api_url)


def make_runner(client: GitHubClient, settings: Settings) -> ActionControlRunner:
    return ActionControlRunner(
        client,
        max_concurrency=settings.max_concurrency,
        fetch_timeout=settings.fetch_timeout,
        local_policy_path=settings.local_policy_path,
    )
