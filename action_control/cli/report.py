import click
from rich.console import Console

from action_control.formatters import format_actions_report, format_json
from .utils import build_settings, handle_async_command, make_client, make_runner, resolve_output_format

console = Console(stderr=True)


@click.command(name="report")
@click.pass_context
@handle_async_command
async def report_cli(ctx: click.Context) -> None:
    """Report on GitHub Actions used in repositories across your organization."""
    settings = build_settings(ctx)
    settings.require_target()
    settings.require_token()
    output_format = resolve_output_format(settings)

    target = settings.repository or settings.organization
    console.print(f"[bold blue]Scanning {target}...[/bold blue]")

    async with make_client(settings) as client:
        runner = make_runner(client, settings)
        actions = await runner.collect_actions(settings.organization, settings.repository)

    if output_format == "json":
        click.echo(format_json(actions))
    else:
        click.echo(format_actions_report(actions))
