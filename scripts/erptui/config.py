"""
Configuration for the ERPNext terminal client.

Reads a dotenv-style file (``.erp-config``) and lets environment variables
of the same names override it.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from io import StringIO
from pathlib import Path

from dotenv import dotenv_values

CONFIG_FILENAME = ".erp-config"
DEFAULT_COOKIE_NAME = "auth_cookie"
DEFAULT_BRAND = "ERPNext CLI"
PROBE_TIMEOUT = 2.0
REQUEST_TIMEOUT = 30.0

# config key -> Config attribute
KEYS = {
    "ERP_VPN": "vpn_url",
    "ERP_URL": "url",
    "ERP_API_KEY": "api_key",
    "ERP_API_SECRET": "api_secret",
    "NGINX_COOKIE": "proxy_cookie",
    "NGINX_COOKIE_NAME": "proxy_cookie_name",
    "ERP_COMPANY": "company",
    "ERP_BRAND": "brand",
}
REQUIRED = ("ERP_URL", "ERP_API_KEY", "ERP_API_SECRET")


class ConfigError(Exception):
    """Configuration is missing or incomplete."""


@dataclass(frozen=True)
class Config:
    """Immutable connection settings."""

    url: str
    api_key: str
    api_secret: str
    vpn_url: str = ""
    proxy_cookie: str = ""
    proxy_cookie_name: str = DEFAULT_COOKIE_NAME
    company: str = ""
    brand: str = DEFAULT_BRAND
    probe_timeout: float = PROBE_TIMEOUT
    request_timeout: float = REQUEST_TIMEOUT

    def masked(self) -> dict[str, str]:
        """Printable view with secrets hidden."""
        return {
            "VPN URL": self.vpn_url or "not configured",
            "Internet URL": self.url,
            "API Key": f"{self.api_key[:8]}..." if self.api_key else "",
            "API Secret": "****",
            "Proxy Cookie": "configured" if self.proxy_cookie else "not configured",
            "Company": self.company or "auto-detect",
            "Brand": self.brand,
        }


def candidate_paths() -> list[Path]:
    """Locations searched when no explicit config path is given."""
    script_dir = Path(sys.argv[0]).resolve().parent if sys.argv and sys.argv[0] else Path.cwd()
    return [
        Path.cwd() / CONFIG_FILENAME,
        Path.cwd().parent / CONFIG_FILENAME,
        script_dir / CONFIG_FILENAME,
        script_dir.parent / CONFIG_FILENAME,
        Path.home() / ".config" / "erptui" / "config",
    ]


def find_config_file(explicit: Path | None = None) -> Path | None:
    """Return the first existing config file, or None."""
    if explicit is not None:
        return explicit if explicit.exists() else None
    for path in candidate_paths():
        if path.is_file():
            return path
    return None


def parse_config_text(text: str) -> dict[str, str]:
    """Parse dotenv-style ``KEY=value`` text; keys without a value are skipped."""
    values = dotenv_values(stream=StringIO(text), interpolate=False)
    return {key: value for key, value in values.items() if value is not None}


def load_config(path: Path | None = None, environ: dict[str, str] | None = None) -> Config:
    """Load configuration from file plus environment overrides.

    Raises:
        ConfigError: no config file could be found or required keys are empty.
    """
    env = os.environ if environ is None else environ
    config_path = find_config_file(path)

    raw: dict[str, str] = {}
    if config_path is not None:
        try:
            raw = parse_config_text(config_path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"cannot open config: {exc}") from exc

    for key in KEYS:
        if env.get(key):
            raw[key] = env[key]

    if config_path is None and not all(raw.get(k) for k in REQUIRED):
        raise ConfigError(
            f"config file not found. Copy {CONFIG_FILENAME}.example to {CONFIG_FILENAME}"
        )

    missing = [k for k in REQUIRED if not raw.get(k)]
    if missing:
        raise ConfigError(f"missing required config: {', '.join(missing)}")

    kwargs = {KEYS[k]: v for k, v in raw.items() if k in KEYS and v}
    return Config(**kwargs)
