import logging
import sys
from typing import Optional

import click
from rich.console import Console

from action_control.config import Settings
from action_control.formatters import format_json, format_policy_violations
from action_control.policy import PolicyConfig, load_policy, load_policy_file
from .utils import build_settings, handle_async_command, make_client, make_runner, resolve_output_format

console = Console(stderr=True)
logger = logging.getLogger(__name__)


def load_enforced_policy(settings: Settings) -> PolicyConfig:
    """
    Inline policy content is used only together with --ignore-local-policy;
    otherwise the policy file is read.
    """
    if settings.policy_content and settings.ignore_local_policy:
        logger.info("Using policy from supplied policy content")
        return load_policy(settings.policy_content, source="policy content")

    if settings.policy_content:
        logger.warning(
            "Policy content is only used with --ignore-local-policy; reading %s", settings.policy_file
        )
    return load_policy_file(settings.policy_file)


@click.command(name="enforce")
@click.option('--policy', 'policy_file', type=click.Path(dir_okay=False), default=None,
              help='Path to policy configuration file (default: policy.yaml).')
@click.option('--policy-content', default=None,
              help='Policy YAML supplied inline; requires --ignore-local-policy.')
@click.option('--ignore-local-policy', is_flag=True, default=None,
              help='Ignore repository policy files and only use the provided policy.')
@click.pass_context
@handle_async_command
async def enforce_cli(ctx: click.Context, policy_file: Optional[str], policy_content: Optional[str],
                      ignore_local_policy: Optional[bool]) -> None:
    """Enforce policy on GitHub Actions usage."""
    settings = build_settings(
        ctx,
        policy_file=policy_file,
        policy_content=policy_content,
        ignore_local_policy=ignore_local_policy,
    )
    settings.require_target()
    settings.require_token()
    output_format = resolve_output_format(settings)
    policy = load_enforced_policy(settings)

    target = settings.repository or settings.organization
    console.print(f"[bold blue]Scanning {target} and enforcing policy...[/bold blue]")

    async with make_client(settings) as client:
        runner = make_runner(client, settings)
        actions = await runner.collect_actions(settings.organization, settings.repository)
        result = await runner.evaluate(
            policy, actions, ignore_local_policy=settings.ignore_local_policy
        )

    if output_format == "json":
        click.echo(format_json(result.to_dict()))
    else:
        click.echo(format_policy_violations(result.violations, result.policy_mode))

    if not result.compliant:
        sys.exit(1)
