from typing import Optional

import click
from rich.console import Console

from action_control.policy import PolicyExporter, PolicyMode
from .utils import build_settings, handle_async_command, make_client, make_runner

console = Console(stderr=True)


@click.command(name="export")
@click.option('--file', 'export_file', type=click.Path(dir_okay=False), default=None,
              help='Output file path for generated policy (default: policy.yaml).')
@click.option('--include-versions', is_flag=True, default=None,
              help='Include version tags in action references.')
@click.option('--include-custom', is_flag=True, default=None,
              help='Generate custom rules for each repository.')
@click.option('--policy-mode', default=None, help='Policy mode: allow or deny (default: allow).')
@click.pass_context
@handle_async_command
async def export_cli(ctx: click.Context, export_file: Optional[str], include_versions: Optional[bool],
                     include_custom: Optional[bool], policy_mode: Optional[str]) -> None:
    """Export a policy file based on discovered GitHub Actions."""
    settings = build_settings(
        ctx,
        export_file=export_file,
        include_versions=include_versions,
        include_custom=include_custom,
        policy_mode=policy_mode,
    )
    settings.require_target()
    settings.require_token()
    # a bad mode must fail before any network activity
    exporter = PolicyExporter(
        policy_mode=settings.policy_mode,
        include_versions=settings.include_versions,
        include_custom=settings.include_custom,
    )

    target = settings.repository or settings.organization
    console.print(f"[bold blue]Scanning {target} for actions...[/bold blue]")

    async with make_client(settings) as client:
        runner = make_runner(client, settings)
        actions = await runner.collect_actions(settings.organization, settings.repository)

    policy = runner.export(actions, exporter, settings.export_file)

    mode = exporter.policy_mode
    console.print(
        f"[green]✅ Successfully exported {mode.value}-mode policy file to {settings.export_file}[/green]"
    )
    kind = "allowed" if mode == PolicyMode.ALLOW else "denied"
    console.print(
        f"Found {len(policy.actions_for(mode))} {kind} actions across {len(actions)} repositories"
    )
