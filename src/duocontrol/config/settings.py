"""Configuration management for duocontrol.

Loads settings from a YAML configuration file with environment variable
overrides (``DUOCONTROL_`` prefix, ``__`` for nested sections). Supports
.env files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/duocontrol.yaml")
DEFAULT_ENV_FILE = Path(".env")
ENV_PREFIX = "DUOCONTROL_"


class HostConfig(BaseModel):
    bind_host: str = Field(default="127.0.0.1", description="Loopback only by default")
    port: int = Field(default=8765, ge=1, le=65535)
    scripts_dir: Path = Field(default=Path("~/asus_drivers"))
    browser_script: Path = Field(default=Path("~/launch_browser_touch.sh"))
    command_timeout: float = Field(default=10.0, gt=0)
    dialog_timeout: float = Field(default=300.0, gt=0)
    terminal_command: str = Field(default="gnome-terminal")
    files_root: Path = Field(default=Path("~/.config/duocontrol"))


class ProbeConfig(BaseModel):
    keyboard_brightness_path: Path = Field(
        default=Path("/sys/class/leds/asus::kbd_backlight/brightness")
    )
    screenpad_brightness_path: Path = Field(
        default=Path("/sys/class/backlight/asus_screenpad/brightness")
    )
    touch_device_keyword: str = Field(default="ELAN9009")
    probe_timeout: float = Field(default=5.0, gt=0)


class BridgeConfig(BaseModel):
    base_url: str = Field(default="http://127.0.0.1:8765")
    timeout: float = Field(default=15.0, gt=0)


class PanelConfig(BaseModel):
    poll_interval: float = Field(default=30.0, gt=0)
    log_capacity: int = Field(default=100, gt=0)
    diagnostics_delay: float = Field(default=0.5, ge=0)
    reload_refresh_delay: float = Field(default=1.0, ge=0)
    confirm_reload: bool = Field(default=True)
    width: int = Field(default=1200, ge=800)
    height: int = Field(default=900, ge=600)
    font_size: int = Field(default=18, gt=0)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the duocontrol system.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": ENV_PREFIX,
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    host: HostConfig = Field(default_factory=HostConfig)
    probes: ProbeConfig = Field(default_factory=ProbeConfig)
    bridge: BridgeConfig = Field(default_factory=BridgeConfig)
    panel: PanelConfig = Field(default_factory=PanelConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    _apply_env_overrides(yaml_data, DEFAULT_ENV_FILE)

    return Settings(**yaml_data)


def _dotenv_names(env_path: Path) -> set[str]:
    """Names of the prefixed variables assigned in a .env file."""
    if not env_path.is_file():
        return set()
    names = set()
    with open(env_path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key = line.partition("=")[0].strip()
            key = key.removeprefix("export ").strip()
            if key.upper().startswith(ENV_PREFIX):
                names.add(key)
    return names


def _apply_env_overrides(yaml_data: dict, env_file: Path | None = None) -> None:
    """Let prefixed environment variables win over values from the YAML file.

    Init kwargs outrank the environment in pydantic-settings, so nested
    keys that are also set via ``DUOCONTROL_<SECTION>__<KEY>``, in the
    process environment or in ``env_file``, are dropped from the YAML data
    before it is passed in.
    """
    names = set(os.environ)
    if env_file is not None:
        names |= _dotenv_names(env_file)
    for name in names:
        upper = name.upper()
        if not upper.startswith(ENV_PREFIX) or "__" not in upper:
            continue
        section, _, key = upper[len(ENV_PREFIX):].lower().partition("__")
        values = yaml_data.get(section)
        if isinstance(values, dict) and key in values:
            del values[key]
            if not values:
                del yaml_data[section]
