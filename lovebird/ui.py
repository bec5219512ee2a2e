"""
lovebird/ui.py
Streamlit glue shared by the pages.

Pages get their Settings and SessionClient from here and never build them
themselves.  Both can be seeded into st.session_state beforehand, which is
how the page tests inject fakes.
"""

import logging
import re

import streamlit as st

from lovebird.auth import PendingSignIns, SessionClient, build_session_client
from lovebird.config import Settings

SETTINGS_KEY = "settings"
CLIENT_KEY   = "session_client"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once per process.  Later calls are no-ops."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@st.cache_resource(show_spinner=False)
def load_settings() -> Settings:
    """
    Build the process-wide Settings.

    Cached as a resource so the environment is read once per server process,
    not once per rerun.
    """
    settings = Settings.from_env(secrets=st.secrets)
    configure_logging(settings.log_level)
    return settings


def current_settings() -> Settings:
    """Return the Settings for this browser session."""
    if SETTINGS_KEY not in st.session_state:
        st.session_state[SETTINGS_KEY] = load_settings()
    return st.session_state[SETTINGS_KEY]


@st.cache_resource(show_spinner=False)
def pending_sign_ins() -> PendingSignIns:
    """
    Return the process-wide store of PKCE verifiers.

    Shared across browser sessions on purpose: the provider's redirect back
    arrives in a new session.
    """
    return PendingSignIns()


def current_session_client(settings: Settings) -> SessionClient | None:
    """
    Return this browser session's SessionClient, or None if unavailable.

    Intentionally stored per session rather than cached as a resource: auth
    state must not bleed between users.
    """
    if CLIENT_KEY not in st.session_state:
        st.session_state[CLIENT_KEY] = build_session_client(settings, pending_sign_ins())
    return st.session_state[CLIENT_KEY]


def apply_styles() -> None:
    st.markdown(
        """
        <style>
            .lb-muted  { color: #6b7280; font-size: 14px; margin-top: 8px; }
            .lb-mono   { font-family: ui-monospace, SFMono-Regular, Menlo, Monaco, Consolas, monospace; }
            .lb-issues { background: #fff7ed; border: 1px solid #fed7aa; color: #9a3412;
                         padding: 12px; border-radius: 10px; }
            .lb-ok     { background: #ecfdf5; border: 1px solid #a7f3d0; color: #065f46;
                         padding: 12px; border-radius: 10px; }
        </style>
        """,
        unsafe_allow_html=True,
    )


_MARKDOWN_SPECIALS = re.compile(r"([\\`*_{}\[\]()<>#+!|~$-])")


def escape_markdown(text: str) -> str:
    """Backslash-escape characters Streamlit's Markdown would interpret."""
    return _MARKDOWN_SPECIALS.sub(r"\\\1", text)
