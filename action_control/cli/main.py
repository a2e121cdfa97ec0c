import logging

import click

from action_control import __version__
from action_control.utils.logging import setup_logging

from .report import report_cli
from .enforce import enforce_cli
from .export import export_cli
from .validate import validate_cli


@click.group()
@click.version_option(__version__, prog_name="action-control")
@click.option('--config', 'config_file', type=click.Path(dir_okay=False),
              help='Config file (default is ./config.yaml).')
@click.option('--org', help='GitHub organization name.')
@click.option('--repo', help='Specific repository to check (format: owner/repo).')
@click.option('--output', type=click.Choice(['markdown', 'json']), help='Output format.')
@click.option('--github-token', help='GitHub token (defaults to GITHUB_TOKEN).')
@click.option('--verbose', '-v', is_flag=True, help='Enables verbose mode.')
@click.option('--quiet', '-q', is_flag=True, help='Enables quiet mode.')
@click.pass_context
def app(ctx, config_file, org, repo, output, github_token, verbose, quiet):
    """
    action-control: enforce a GitHub Actions policy that you create.
    """
    ctx.ensure_object(dict)
    ctx.obj['CONFIG_FILE'] = config_file
    ctx.obj['ORG'] = org
    ctx.obj['REPO'] = repo
    ctx.obj['OUTPUT'] = output
    ctx.obj['GITHUB_TOKEN'] = github_token

    if verbose:
        setup_logging(level=logging.DEBUG)
    elif quiet:
        setup_logging(level=logging.ERROR)
    else:
        setup_logging()

# Add subcommands
app.add_command(report_cli, name='report')
app.add_command(enforce_cli, name='enforce')
app.add_command(export_cli, name='export')
app.add_command(validate_cli, name='validate')

if __name__ == '__main__':
    app()
