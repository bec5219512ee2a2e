"""
lovebird/diagnostics.py
Smoke checks behind the /tests page.

Each check is isolated: whatever one of them raises is captured into its own
result and the remaining checks still run.  None of the checks change data.
"""

import json
import logging
from dataclasses import dataclass
from typing import Callable

import requests

from lovebird.auth import build_session_client
from lovebird.config import PUBLIC_KEY_VAR, SERVICE_URL_VAR, Settings
from lovebird.status import SELF_TEST_PATH

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckResult:
    name: str
    passed: bool
    details: str

    def to_dict(self) -> dict:
        return {"name": self.name, "pass": self.passed, "details": self.details}


def check_config(settings: Settings) -> CheckResult:
    name = "Env Vars vorhanden"
    if settings.service_url and settings.public_key:
        return CheckResult(name, True, "OK")
    return CheckResult(name, False, f"Fehlend: {SERVICE_URL_VAR} oder {PUBLIC_KEY_VAR}")


def check_client(settings: Settings, client_factory: Callable = build_session_client) -> CheckResult:
    """Structural check: the constructed client can read the auth session."""
    name = "Supabase Client initialisiert"
    try:
        client = client_factory(settings)
        capable = client is not None and callable(getattr(client.auth, "get_session", None))
        return CheckResult(name, capable, "client-ok" if capable else "client-missing")
    except Exception as error:
        return CheckResult(name, False, str(error))


def check_status_endpoint(settings: Settings) -> CheckResult:
    """
    Call the status service and report what it said.

    Passes only when the body is JSON with ok == true.  Connection errors,
    timeouts and non-JSON bodies fail with the error text as details.
    """
    name = f"API {SELF_TEST_PATH}"
    url = f"{settings.status_api_url}{SELF_TEST_PATH}"
    try:
        response = requests.get(url, timeout=settings.status_timeout)
        body = response.json()
    except Exception as error:
        logger.info("Status endpoint %s unreachable: %s", url, error)
        return CheckResult(name, False, str(error) or type(error).__name__)
    passed = isinstance(body, dict) and body.get("ok") is True
    return CheckResult(name, passed, json.dumps(body))


def run_diagnostics(settings: Settings, client_factory: Callable = build_session_client) -> list[CheckResult]:
    """Run all checks in declaration order and return their results."""
    return [
        check_config(settings),
        check_client(settings, client_factory),
        check_status_endpoint(settings),
    ]
