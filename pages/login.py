"""
pages/login.py
Login page.  Mirrors the identity provider's session: sign in with Google,
welcome + sign out once a session exists.
"""

import html

import streamlit as st

from lovebird.auth import FLOW_PARAM, LoginState
from lovebird.config import check_health
from lovebird.ui import apply_styles, current_session_client, current_settings, escape_markdown

st.set_page_config(page_title="Lovebird – Login", page_icon="🐦", layout="centered")

settings = current_settings()
client = current_session_client(settings)
issues = check_health(settings)

apply_styles()
st.title("Lovebird – Login")

if issues:
    items = "".join(f"<li>{html.escape(issue)}</li>" for issue in issues)
    st.markdown(
        f"""
        <div class="lb-issues">
            <b>Konfiguration unvollständig:</b>
            <ul>{items}</ul>
            <div class="lb-muted">
                Setze die Variablen in der Umgebung, in einer .env-Datei oder in .streamlit/secrets.toml.
            </div>
        </div>
        """,
        unsafe_allow_html=True,
    )

with LoginState(client) as login:
    auth_code = st.query_params.get("code")
    if auth_code and login.show_sign_in:
        login.complete_sign_in(auth_code, st.query_params.get(FLOW_PARAM))
        st.query_params.clear()

    if login.show_sign_in:
        sign_in_url = login.sign_in_url("google")
        if sign_in_url:
            st.link_button("Mit Google einloggen", sign_in_url, type="primary", use_container_width=True)
        else:
            st.button("Mit Google einloggen", type="primary", use_container_width=True, disabled=True)
        st.caption("Du wirst zu Google weitergeleitet und dann zurück in die App.")
    elif login.show_welcome:
        if login.email:
            st.markdown(f"Willkommen, **{escape_markdown(login.email)}**")
        else:
            st.markdown("Willkommen")
        if st.button("Ausloggen", use_container_width=True):
            login.sign_out()
            st.rerun()

st.caption("Testfälle: Prüfe Login/Logout & ob in Supabase unter auth.users ein neuer Eintrag erscheint.")
st.caption("Weitere Tests unter [/tests](/tests).")
