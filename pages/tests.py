"""
pages/tests.py
Diagnostics page: configuration, client and status endpoint smoke checks.
"""

import html

import streamlit as st

from lovebird.diagnostics import run_diagnostics
from lovebird.ui import apply_styles, current_session_client, current_settings

st.set_page_config(page_title="Lovebird – Tests", page_icon="🧪", layout="centered")

settings = current_settings()

apply_styles()
st.title("Lovebird – Tests")

with st.spinner("Tests laufen …"):
    results = run_diagnostics(settings, client_factory=current_session_client)

for result in results:
    verdict = "✅ PASS" if result.passed else "❌ FAIL"
    st.markdown(f"**{result.name}:** {verdict}")
    st.markdown(
        f'<div class="lb-muted lb-mono">{html.escape(result.details)}</div>',
        unsafe_allow_html=True,
    )

st.markdown(
    '<p class="lb-ok">Diese Seite enthält einfache Smoke-Tests. Sie ändern keine Daten.</p>',
    unsafe_allow_html=True,
)
