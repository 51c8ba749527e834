"""Configuration loading, credentials and account resolution."""

import copy
import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from portalexport.agents.base import ConfigError, Credentials

logger = logging.getLogger(__name__)

EMAIL_ENV = "PORTAL_EMAIL"
PASSWORD_ENV = "PORTAL_PASSWORD"
ACCOUNT_ENV = "PORTAL_ACCOUNT_ID"

DEFAULT_CONFIG = {
    "portal": {
        "url": "https://compliancelink.incolink.org.au/",
        "default_account_id": "7125150",
    },
    "browser": {
        "type": "chromium",
        "headless": True,
        "executable_path": None,
        "cdp_url": None,
        "args": ["--no-sandbox", "--disable-setuid-sandbox"],
        "user_agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/119 Safari/537.36"
        ),
        "navigation_timeout": 60000,
    },
    "timeouts": {
        "selector": 30000,
        "search_input": 60000,
        "idle_time": 800,
        "idle_timeout": 60000,
        "download": 60000,
        "poll_interval": 200,
    },
    "typing": {
        "credentials_delay": 20,
        "search_delay": 25,
    },
    "selectors": {
        "email": ['input[type="email"]', 'input[placeholder*="Email" i]'],
        "password": ['input[type="password"]', 'input[placeholder*="Password" i]'],
        "submit": ['button[type="submit"]'],
        "search_input": ['input[placeholder*="No or Name" i]'],
        "result_rows": "table tbody tr",
        "links": "a",
        "clickable": "button, a",
    },
    "texts": {
        "login": ["Login", "Sign in"],
        "export": ["Export Invoice Details", "Export"],
    },
    "records": {
        "currency_markers": ["$"],
        "link_pattern": r"^\d{5,}$",
    },
    "output": {
        "directory": "tmp/portal-export",
        "fallback_filename": "invoice-{record_id}.bin",
    },
    "diagnostics": {
        "url_markers": ["invoice"],
    },
    "logging": {
        "level": "INFO",
        "save_to_file": False,
        "log_directory": "logs",
    },
    "run_log": {
        "enabled": True,
        "directory": "logs/runs",
    },
}


def merge_config(overrides: dict, defaults: dict) -> dict:
    """
    Merge user configuration over defaults.

    Override values win. Nested dicts are merged one level deep.

    Args:
        overrides: Values read from the user's YAML file
        defaults: Default configuration

    Returns:
        Merged configuration dictionary (defaults are not mutated)
    """
    config = copy.deepcopy(defaults)

    for key, value in overrides.items():
        if isinstance(value, dict) and key in config and isinstance(config[key], dict):
            config[key].update(value)
        else:
            config[key] = value

    return config


def load_config(config_path: str | Path | None = None) -> dict:
    """
    Load configuration from a YAML file merged over DEFAULT_CONFIG.

    Args:
        config_path: Path to YAML config file, or None for the defaults

    Returns:
        Configuration dictionary
    """
    if config_path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        user_config = yaml.safe_load(f)

    if user_config is None:
        user_config = {}
    if not isinstance(user_config, dict):
        raise ConfigError(f"Config file must contain a mapping: {config_path}")

    logger.debug(f"Loaded config from {config_path}")
    return merge_config(user_config, DEFAULT_CONFIG)


def load_credentials(environ: Optional[dict] = None) -> Credentials:
    """
    Read the login pair from the environment.

    Raises:
        ConfigError: either variable is missing or empty.
    """
    environ = os.environ if environ is None else environ
    email = environ.get(EMAIL_ENV)
    password = environ.get(PASSWORD_ENV)

    if not email or not password:
        raise ConfigError(f"Set {EMAIL_ENV} and {PASSWORD_ENV} in the environment or .env")

    return Credentials(email=email, password=password)


def resolve_account_id(
    cli_value: Optional[str], config: dict, environ: Optional[dict] = None
) -> str:
    """CLI argument, else PORTAL_ACCOUNT_ID, else the configured default."""
    environ = os.environ if environ is None else environ
    account_id = (
        cli_value
        or environ.get(ACCOUNT_ENV)
        or config.get("portal", {}).get("default_account_id")
    )
    if not account_id:
        raise ConfigError(f"No account id given and {ACCOUNT_ENV} is not set")
    return str(account_id)
