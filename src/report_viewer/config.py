from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from report_viewer.models import ViewerSettings

PROJECT_ROOT = Path(__file__).resolve().parents[2]

DEFAULT_DATA_DIR = "/mnt/cwm-data"
DEFAULT_LOGS_DIR = "/mnt/cwm-logs"
DEFAULT_TICKET_URL_TEMPLATE = (
    "https://connect.savantcts.com/v4_6_release/ConnectWise.aspx"
    "?locale=en_US&routeTo=ServiceFV&recid={ticket_id}"
)
DESCRIPTIONS_FILENAME = "desc.json"

# Settings that may come from the process environment, by field name.
ENV_KEYS = {
    "data_dir": "DATA_DIR",
    "logs_dir": "LOGS_DIR",
    "host": "HOST",
    "port": "PORT",
    "addressing_mode": "ADDRESSING_MODE",
    "ticket_url_template": "TICKET_URL_TEMPLATE",
    "descriptions_file": "DESCRIPTIONS_FILE",
    "log_level": "LOG_LEVEL",
}


def load_env_profile(profile: str = "production", directory: Path | None = None) -> Path | None:
    """Copy KEY=value lines from ``.env.<profile>`` into the environment.

    Variables that are already set win over the file. Returns the file that
    was read, or None when the profile has no file.
    """
    env_path = (directory or Path.cwd()) / f".env.{profile}"
    if not env_path.is_file():
        return None
    for raw in env_path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        key = key.strip()
        if sep and key:
            os.environ.setdefault(key, value.strip().strip("\"'"))
    return env_path


def settings_file_path() -> Path:
    configured = os.getenv("REPORT_VIEWER_CONFIG", "").strip()
    if configured:
        return Path(configured).expanduser()
    return PROJECT_ROOT / "configs" / "viewer.yaml"


def load_settings_file(path: str | Path) -> dict[str, Any]:
    settings_path = Path(path)
    if not settings_path.exists():
        return {}
    raw = yaml.safe_load(settings_path.read_text(encoding="utf-8"))
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"Settings file must define a mapping: {settings_path}")
    return {str(key).lower(): value for key, value in raw.items()}


def resolve_settings(overrides: dict[str, Any] | None = None) -> ViewerSettings:
    """Merge defaults, the YAML settings file, the environment and explicit overrides.

    Overrides use the upper-case Flask config names (``DATA_DIR``, ``PORT``...);
    keys that are not viewer settings are ignored here.
    """
    load_env_profile(os.getenv("APP_ENV", "production"))
    values: dict[str, Any] = {
        "data_dir": DEFAULT_DATA_DIR,
        "logs_dir": DEFAULT_LOGS_DIR,
        "ticket_url_template": DEFAULT_TICKET_URL_TEMPLATE,
    }
    values.update(load_settings_file(settings_file_path()))
    for field_name, env_key in ENV_KEYS.items():
        env_value = os.getenv(env_key, "").strip()
        if env_value:
            values[field_name] = env_value

    for key, value in (overrides or {}).items():
        field_name = key.lower()
        if field_name in ViewerSettings.model_fields:
            values[field_name] = value

    values["data_dir"] = str(values["data_dir"])
    if not values.get("descriptions_file"):
        values["descriptions_file"] = str(Path(values["data_dir"]) / DESCRIPTIONS_FILENAME)
    return ViewerSettings(**values)
