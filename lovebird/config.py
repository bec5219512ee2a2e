"""
lovebird/config.py
Configuration loading and the configuration health check for Lovebird.

Settings are resolved once at process start and passed to every component
that needs them.  Nothing else in the package reads the environment.
"""

import os
from dataclasses import dataclass
from typing import Mapping

from dotenv import load_dotenv

# Required settings, in the order their problems are reported.
SERVICE_URL_VAR = "SERVICE_ENDPOINT_URL"
PUBLIC_KEY_VAR  = "SERVICE_PUBLIC_KEY"

DEFAULT_STATUS_API_URL = "http://localhost:8000"
DEFAULT_STATUS_TIMEOUT = 5.0
DEFAULT_REDIRECT_URL   = "http://localhost:8501"


# ─── Private helpers ─────────────────────────────────────────────────────────

def _get_secret(key: str, environ: Mapping[str, str], secrets=None) -> str | None:
    """
    Resolve a setting by name.

    Tries the Streamlit secrets mapping first (Streamlit Cloud), then falls
    back to the environment mapping.  Empty strings are treated as absent, so
    an exported-but-blank variable reads the same as an unset one.
    """
    value = None
    if secrets is not None:
        try:
            value = secrets[key]
        except Exception:
            value = None
    if value is None:
        value = environ.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _to_float(raw: str | None, default: float) -> float:
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# ─── Settings ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Settings:
    """
    Process-wide configuration.

    service_url and public_key are the two required settings; the rest carry
    defaults.  A missing required setting is never an error here, it only
    shows up in check_health().
    """

    service_url: str | None = None
    public_key: str | None = None
    status_api_url: str = DEFAULT_STATUS_API_URL
    redirect_url: str = DEFAULT_REDIRECT_URL
    status_timeout: float = DEFAULT_STATUS_TIMEOUT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, secrets=None) -> "Settings":
        """
        Build Settings from the process environment.

        When environ is None the variables in a local .env file are loaded
        into os.environ first (existing variables win).  Pass an explicit
        mapping to bypass both the .env file and os.environ entirely.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        def get(key):
            return _get_secret(key, environ, secrets)

        return cls(
            service_url    = get(SERVICE_URL_VAR),
            public_key     = get(PUBLIC_KEY_VAR),
            status_api_url = (get("STATUS_API_URL") or DEFAULT_STATUS_API_URL).rstrip("/"),
            redirect_url   = get("AUTH_REDIRECT_URL") or DEFAULT_REDIRECT_URL,
            status_timeout = _to_float(get("STATUS_TIMEOUT"), DEFAULT_STATUS_TIMEOUT),
            log_level      = (get("LOG_LEVEL") or "INFO").upper(),
        )

    @property
    def is_complete(self) -> bool:
        """Return True if both required settings are present."""
        return not check_health(self)


# ─── Health check ────────────────────────────────────────────────────────────

def check_health(settings: Settings) -> list[str]:
    """
    Return a list of human-readable configuration problems.

    One message per missing required setting, service URL first.  An empty
    list means the configuration is complete.
    """
    issues = []
    if not settings.service_url:
        issues.append(f"Fehlt: {SERVICE_URL_VAR}")
    if not settings.public_key:
        issues.append(f"Fehlt: {PUBLIC_KEY_VAR}")
    return issues
