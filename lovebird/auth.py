"""
lovebird/auth.py
Session handling for Lovebird.
Wraps Supabase Auth so the rest of the app never calls it directly.

SessionClient is the only place that talks to the identity service.
LoginState mirrors the provider's session for one mounted view: it never
creates, stores or edits a session itself, it only keeps the latest value
the provider handed it.
"""

import logging
import secrets
import threading
import time
from enum import Enum
from typing import Any, Callable
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from lovebird.client import FlowStorage, create_supabase_client, warn_if_incomplete
from lovebird.config import Settings

logger = logging.getLogger(__name__)

SessionHandler = Callable[[Any], None]


# ─── Change subscription ─────────────────────────────────────────────────────

class SessionSubscription:
    """
    Cancellable handle returned by SessionClient.on_session_change().

    After unsubscribe() the handler is never called again, even if the
    provider still emits events it had queued for it.
    """

    def __init__(self, handler: SessionHandler):
        self._handler = handler
        self._provider_subscription = None
        self.active = True

    def _attach(self, provider_subscription) -> None:
        self._provider_subscription = provider_subscription

    def deliver(self, session) -> None:
        if self.active:
            self._handler(session)

    def unsubscribe(self) -> None:
        """Stop delivery.  Safe to call more than once."""
        if not self.active:
            return
        self.active = False
        if self._provider_subscription is not None:
            try:
                self._provider_subscription.unsubscribe()
            except Exception:
                logger.warning("Provider unsubscribe failed", exc_info=True)
            self._provider_subscription = None


# ─── Pending sign-ins ────────────────────────────────────────────────────────

FLOW_PARAM = "flow"


class PendingSignIns:
    """
    PKCE code verifiers waiting for the provider to redirect back.

    The redirect is a fresh page load, so it lands in a new browser session
    with a new Supabase client that never saw the verifier.  Verifiers are
    therefore kept here, process-wide, keyed by a random flow id that travels
    in the redirect URL.  Each one can be taken once and expires after ttl
    seconds.
    """

    def __init__(self, ttl: float = 600.0):
        self.ttl = ttl
        self._items = {}
        self._lock = threading.Lock()

    def put(self, flow: str, verifier: str) -> None:
        now = time.monotonic()
        with self._lock:
            self._evict(now)
            self._items[flow] = (now, verifier)

    def pop(self, flow: str) -> str | None:
        with self._lock:
            self._evict(time.monotonic())
            item = self._items.pop(flow, None)
        return item[1] if item is not None else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def _evict(self, now: float) -> None:
        expired = [flow for flow, (created, _) in self._items.items() if now - created > self.ttl]
        for flow in expired:
            del self._items[flow]


def _with_flow(url: str, flow: str) -> str:
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query) if k != FLOW_PARAM]
    query.append((FLOW_PARAM, flow))
    return urlunsplit(parts._replace(query=urlencode(query)))


# ─── Remote session client ───────────────────────────────────────────────────

class SessionClient:
    """
    Thin handle on the identity service.

    None of the methods raise.  Provider and transport errors are logged and
    reported as "no value" so the calling view stays responsive.
    """

    def __init__(
        self,
        supabase,
        redirect_url: str | None = None,
        storage: FlowStorage | None = None,
        pending: PendingSignIns | None = None,
    ):
        self.supabase = supabase
        self.redirect_url = redirect_url
        self.storage = storage
        self.pending = pending if pending is not None else PendingSignIns()

    @property
    def auth(self):
        return self.supabase.auth

    def get_current_session(self):
        """
        Return the provider's current session, or None.

        None covers both "signed out" and "could not be determined".
        """
        try:
            return self.auth.get_session()
        except Exception:
            logger.warning("Could not fetch the current session", exc_info=True)
            return None

    def on_session_change(self, handler: SessionHandler) -> SessionSubscription:
        """
        Register handler(session) for every session change the provider pushes.

        Events are delivered in emission order.  Earlier events are not
        replayed to a new subscriber.
        """
        subscription = SessionSubscription(handler)

        def _callback(_event, session):
            subscription.deliver(session)

        try:
            subscription._attach(self.auth.on_auth_state_change(_callback))
        except Exception:
            logger.warning("Could not subscribe to session changes", exc_info=True)
        return subscription

    def sign_in_with_provider(self, provider_name: str) -> str | None:
        """
        Start a redirect-based sign-in and return the provider URL.

        The browser has to be sent to the returned URL; the app only sees the
        result when the provider redirects back with ?code= and the flow id
        added here.  The code verifier is parked in self.pending under that
        flow id.
        """
        credentials = {"provider": provider_name}
        flow = None
        if self.redirect_url:
            flow = secrets.token_urlsafe(16)
            credentials["options"] = {"redirect_to": _with_flow(self.redirect_url, flow)}
        try:
            response = self.auth.sign_in_with_oauth(credentials)
        except Exception:
            logger.warning("Could not start %s sign-in", provider_name, exc_info=True)
            return None
        verifier = self.storage.code_verifier if self.storage is not None else None
        if flow is not None and verifier:
            self.pending.put(flow, verifier)
        return getattr(response, "url", None)

    def complete_sign_in(self, auth_code: str, flow: str | None = None) -> None:
        """
        Exchange the OAuth return code for a session.

        Uses the verifier parked under flow when there is one, otherwise the
        client's own storage.  The new session arrives through the change
        subscription.  A failed exchange leaves the current session untouched.
        """
        params = {"auth_code": auth_code}
        verifier = self.pending.pop(flow) if flow else None
        if verifier:
            params["code_verifier"] = verifier
        else:
            logger.info("No pending verifier for flow %r, using client storage", flow)
        try:
            self.auth.exchange_code_for_session(params)
        except Exception:
            logger.warning("OAuth code exchange failed", exc_info=True)

    def sign_out(self) -> None:
        """
        Ask the provider to end the session.

        Completion is observed through the change subscription.
        """
        try:
            self.auth.sign_out()
        except Exception:
            logger.warning("Sign-out request failed", exc_info=True)


def build_session_client(settings: Settings, pending: PendingSignIns | None = None) -> SessionClient | None:
    """
    Return a SessionClient for the configured project, or None.

    None means the configuration is incomplete or the Supabase client could
    not be constructed.  Both are logged, neither raises.  Pass the
    process-wide PendingSignIns so a sign-in started in one browser session
    can be completed in the session the provider redirects back to.
    """
    if not warn_if_incomplete(settings):
        return None
    storage = FlowStorage()
    try:
        supabase = create_supabase_client(settings, storage)
    except Exception:
        logger.exception("Could not construct the Supabase client")
        return None
    return SessionClient(supabase, redirect_url=settings.redirect_url, storage=storage, pending=pending)


# ─── Login view state machine ────────────────────────────────────────────────

class LoginPhase(str, Enum):
    LOADING    = "loading"
    SIGNED_OUT = "signed-out"
    SIGNED_IN  = "signed-in"


def session_email(session) -> str | None:
    """Return session.user.email, or None when there is no user on it."""
    user = getattr(session, "user", None)
    return getattr(user, "email", None) if user is not None else None


class LoginState:
    """
    Session state for one mounted login view.

    Starts in LOADING.  mount() resolves the current session, which moves the
    state to SIGNED_OUT or SIGNED_IN, and then follows the provider's change
    subscription until unmount().  Use as a context manager so the
    subscription is always released:

        with LoginState(client) as state:
            ...
    """

    def __init__(self, client: SessionClient | None):
        self.client = client
        self.phase = LoginPhase.LOADING
        self.session = None
        self.mounted = False
        self._subscription: SessionSubscription | None = None

    # ── lifecycle ──

    def mount(self) -> "LoginState":
        self.mounted = True
        if self.client is None:
            self._apply(None)
            return self
        self._apply(self.client.get_current_session())
        self._subscription = self.client.on_session_change(self._on_change)
        return self

    def unmount(self) -> None:
        self.mounted = False
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def __enter__(self) -> "LoginState":
        return self.mount()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unmount()

    # ── transitions ──

    def _on_change(self, session) -> None:
        if not self.mounted:
            return
        self._apply(session)

    def _apply(self, session) -> None:
        self.session = session
        self.phase = LoginPhase.SIGNED_IN if session is not None else LoginPhase.SIGNED_OUT
        logger.debug("Login state is now %s", self.phase.value)

    # ── actions ──

    def sign_in_url(self, provider_name: str = "google") -> str | None:
        if self.client is None:
            return None
        return self.client.sign_in_with_provider(provider_name)

    def complete_sign_in(self, auth_code: str, flow: str | None = None) -> None:
        if self.client is not None:
            self.client.complete_sign_in(auth_code, flow)

    def sign_out(self) -> None:
        if self.client is not None:
            self.client.sign_out()

    # ── view accessors ──

    @property
    def email(self) -> str | None:
        return session_email(self.session)

    @property
    def show_sign_in(self) -> bool:
        return self.phase is LoginPhase.SIGNED_OUT

    @property
    def show_welcome(self) -> bool:
        return self.phase is LoginPhase.SIGNED_IN
