"""
lovebird/client.py
Supabase client construction for Lovebird.

Only the anon (public) key is ever used.  The app has no server-side
privileges in Supabase and must never be given a service-role key.
"""

import logging

from supabase import Client, ClientOptions, create_client

from lovebird.config import PUBLIC_KEY_VAR, SERVICE_URL_VAR, Settings, check_health

logger = logging.getLogger(__name__)

_CODE_VERIFIER_SUFFIX = "-code-verifier"


class FlowStorage:
    """
    In-memory auth storage for one Supabase client.

    Same get_item/set_item/remove_item interface as the auth library's memory
    storage, plus read access to the PKCE code verifier written by
    sign_in_with_oauth, so it can be carried over to the browser session the
    provider redirects back to.
    """

    def __init__(self):
        self._items = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    @property
    def code_verifier(self) -> str | None:
        for key, value in self._items.items():
            if key.endswith(_CODE_VERIFIER_SUFFIX):
                return value
        return None


def create_supabase_client(settings: Settings, storage: FlowStorage | None = None) -> Client:
    """
    Return a Supabase client authenticated with the anon key.

    Uses the PKCE flow so the provider redirects back with a ?code= query
    parameter the server can read.  Raises whatever create_client raises when
    the URL or key is missing or malformed; callers that must not fail go
    through build_session_client() instead.
    """
    options = ClientOptions(
        flow_type="pkce",
        auto_refresh_token=False,
        storage=storage if storage is not None else FlowStorage(),
    )
    return create_client(settings.service_url or "", settings.public_key or "", options=options)


def warn_if_incomplete(settings: Settings) -> bool:
    """
    Log a hint when the required settings are missing.

    Returns True if the configuration is complete.
    """
    issues = check_health(settings)
    if issues:
        logger.warning(
            "[Config] Please set %s and %s in the environment or in Streamlit secrets (%s).",
            SERVICE_URL_VAR,
            PUBLIC_KEY_VAR,
            "; ".join(issues),
        )
        return False
    return True
