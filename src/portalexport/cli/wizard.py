"""Interactive setup wizard for portalexport."""

import shutil
from pathlib import Path

import click

TEMPLATES_DIR = Path(__file__).parent.parent / "config" / "templates"


def _copy_template(src: Path, dest: Path):
    if dest.exists():
        if not click.confirm(f"{dest.name} already exists. Overwrite?", default=False):
            click.echo(f"Keeping existing {dest.name}.")
            return
    shutil.copy2(src, dest)
    click.echo(f"Copied {src.name} to {dest}")


def run_wizard(dest_dir: Path | None = None):
    """Walk the user through first-time setup."""
    click.echo("\n=== portalexport Setup Wizard ===\n")

    dest_dir = dest_dir or Path.cwd()
    config_dest = dest_dir / "portalexport.yaml"
    env_dest = dest_dir / ".env"

    _copy_template(TEMPLATES_DIR / "portalexport.yaml", config_dest)
    _copy_template(TEMPLATES_DIR / "env.example", env_dest)

    click.echo("\nNext steps:")
    click.echo(f"  1. Edit {env_dest.name}: set PORTAL_EMAIL and PORTAL_PASSWORD")
    click.echo(f"  2. Edit {config_dest.name}: adjust portal.url, selectors and texts if the portal changed")
    click.echo("  3. Check the setup:")
    click.echo(f"     portalexport check --config {config_dest.name}")
    click.echo("  4. Run:")
    click.echo(f"     portalexport run ACCOUNT_ID --config {config_dest.name}")
    click.echo()
