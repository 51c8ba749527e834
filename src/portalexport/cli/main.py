"""CLI entry point for portalexport."""

import asyncio
import logging
import os
from pathlib import Path

import click
from dotenv import load_dotenv

from portalexport import __version__

logger = logging.getLogger(__name__)


def _load_env(env_file: str | None):
    """Seed os.environ from a .env file; variables already set are kept."""
    env_path = Path(env_file) if env_file else Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.debug(f"Loaded environment from {env_path}")


@click.group()
@click.version_option(version=__version__, prog_name="portalexport")
def cli():
    """portalexport — Capture a record export from a portal with Playwright."""
    pass


@cli.command()
def setup():
    """Copy the example config and .env template into the current directory."""
    from portalexport.cli.wizard import run_wizard
    run_wizard()


@cli.command()
@click.argument("account_id", required=False)
@click.option("--config", "config_path", type=click.Path(exists=True), help="YAML config file")
@click.option("--env-file", type=click.Path(exists=True), help=".env file (default: ./.env)")
@click.option("--output-dir", type=click.Path(), help="Directory the export is written to")
@click.option("--headed", is_flag=True, help="Show the browser window")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
def run(account_id, config_path, env_file, output_dir, headed, log_level):
    """Log in, find ACCOUNT_ID's invoice and save its export."""
    from portalexport.agents.base import PipelineError
    from portalexport.config.loader import load_config, load_credentials, resolve_account_id
    from portalexport.engine.runner import create_run_log, run_export, setup_logging

    try:
        _load_env(env_file)
        config = load_config(config_path)

        if output_dir:
            config["output"]["directory"] = output_dir
        if headed:
            config["browser"]["headless"] = False

        credentials = load_credentials()
        account_id = resolve_account_id(account_id, config)
        setup_logging(config, level=log_level, account_id=account_id)

        logger.info("=" * 60)
        logger.info(f"portalexport starting (account {account_id})")
        logger.info("=" * 60)

        run_log = create_run_log(config, account_id)
        artifact_path = asyncio.run(run_export(config, credentials, account_id, run_log=run_log))

    except PipelineError as e:
        logger.error(f"Export failed [{e.status.value}]: {e}")
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    except Exception as e:
        logger.exception(f"Export failed: {e}")
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    click.echo(f"Saved export: {artifact_path}")


@cli.command()
@click.option("--config", "config_path", type=click.Path(exists=True), help="YAML config file")
@click.option("--env-file", type=click.Path(exists=True), help=".env file (default: ./.env)")
def check(config_path, env_file):
    """Check browser and credential setup without opening the portal."""
    from portalexport.browser.manager import BrowserManager
    from portalexport.config.loader import EMAIL_ENV, PASSWORD_ENV, load_config

    _load_env(env_file)
    config = load_config(config_path)
    mgr = BrowserManager(config)
    ok = True

    executable = mgr.resolve_executable_path()
    if mgr.is_cdp_mode():
        click.echo(f"Browser: attach over CDP at {mgr.cdp_url}")
    elif executable:
        if Path(executable).exists():
            click.echo(f"Browser executable: {executable}")
        else:
            click.echo(f"Browser executable not found: {executable}", err=True)
            ok = False
    else:
        click.echo(f"Browser: Playwright-managed {mgr.browser_type}")

    for name in (EMAIL_ENV, PASSWORD_ENV):
        if os.environ.get(name):
            click.echo(f"{name} is set")
        else:
            click.echo(f"{name} is NOT set", err=True)
            ok = False

    click.echo(f"Portal: {config['portal']['url']}")
    click.echo(f"Output directory: {config['output']['directory']}")

    if not ok:
        raise SystemExit(1)
    click.echo("\nReady to export!")


if __name__ == "__main__":
    cli()
