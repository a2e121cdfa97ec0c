import sys
from typing import Optional

import click
import yaml
from rich.console import Console
from rich.markup import escape

from action_control.exceptions import ActionControlError
from action_control.policy import lint_policy, load_policy_file
from .utils import build_settings

console = Console(stderr=True)


@click.command(name="validate")
@click.option('--policy', 'policy_file', type=click.Path(dir_okay=False), default=None,
              help='Path to policy configuration file (default: policy.yaml).')
@click.pass_context
def validate_cli(ctx: click.Context, policy_file: Optional[str]) -> None:
    """Validates a policy file without contacting GitHub."""
    try:
        settings = build_settings(ctx, policy_file=policy_file)
        console.print(f"[bold blue]Validating {settings.policy_file}[/bold blue]")
        policy = load_policy_file(settings.policy_file)
    except ActionControlError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    with open(settings.policy_file, "rb") as fh:
        raw = yaml.safe_load(fh) or {}
    result = lint_policy(raw)

    for error in result["errors"]:
        console.print(f"[red]✗ {escape(error)}[/red]")
    for warning in result["warnings"]:
        console.print(f"[yellow]! {escape(warning)}[/yellow]")

    if result["errors"]:
        sys.exit(1)

    console.print(
        f"[green]✅ Policy is valid ({policy.policy_mode.value} mode, "
        f"{len(policy.custom_rules)} custom rules)[/green]"
    )
