"""
app.py
Lovebird - minimal login front-end on Supabase Auth
Entry point. Handles routing and settings initialisation.

Run with:  streamlit run app.py
"""

import streamlit as st

from lovebird.ui import current_settings

# ── Settings initialisation ──────────────────────────────────────────────────
current_settings()

# ── Routing ───────────────────────────────────────────────────────────────────
navigation = st.navigation(
    [
        st.Page("pages/login.py", title="Login", url_path="login", default=True),
        st.Page("pages/tests.py", title="Tests", url_path="tests"),
    ],
    position="hidden",
)
navigation.run()
