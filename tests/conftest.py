from types import SimpleNamespace
from urllib.parse import parse_qs, urlsplit

import pytest

from lovebird.auth import FLOW_PARAM, PendingSignIns, SessionClient
from lovebird.client import FlowStorage
from lovebird.config import Settings

VERIFIER_KEY = "sb-project-auth-token-code-verifier"


def make_session(email: str = "a@b.com"):
    return SimpleNamespace(user=SimpleNamespace(id="user-1", email=email), access_token="token")


def flow_from(redirect_to: str) -> str:
    return parse_qs(urlsplit(redirect_to).query)[FLOW_PARAM][0]


class FakeIdentityProvider:
    """Hosted side of the OAuth flow: one auth code per PKCE verifier."""

    def __init__(self, email: str = "a@b.com"):
        self.email = email
        self.codes = {}
        self.redirects = []
        self.last_code = None

    def authorize(self, verifier, redirect_to):
        code = f"code-{len(self.codes) + 1}"
        self.codes[code] = verifier
        self.redirects.append(redirect_to)
        self.last_code = code
        return code

    def redeem(self, code, verifier):
        if verifier is None or self.codes.get(code) != verifier:
            raise ValueError("invalid flow state, no valid flow state found")
        del self.codes[code]
        return make_session(self.email)


class FakeProviderSubscription:
    def __init__(self, auth, callback, leaky=False):
        self._auth = auth
        self._callback = callback
        self._leaky = leaky
        self.unsubscribed = False

    def unsubscribe(self):
        self.unsubscribed = True
        if not self._leaky and self._callback in self._auth.callbacks:
            self._auth.callbacks.remove(self._callback)


class FakeAuth:
    """In-memory stand-in for supabase.Client.auth with the PKCE flow."""

    def __init__(self, session=None, leaky=False, storage=None, provider=None):
        self.session = session
        self.leaky = leaky
        self.storage = storage if storage is not None else FlowStorage()
        self.provider = provider if provider is not None else FakeIdentityProvider()
        self.callbacks = []
        self.calls = []
        self.fail_get_session = False

    def get_session(self):
        self.calls.append("get_session")
        if self.fail_get_session:
            raise ConnectionError("identity service unreachable")
        return self.session

    def on_auth_state_change(self, callback):
        self.callbacks.append(callback)
        return FakeProviderSubscription(self, callback, leaky=self.leaky)

    def emit(self, event, session):
        self.session = session
        for callback in list(self.callbacks):
            callback(event, session)

    def sign_in_with_oauth(self, credentials):
        self.calls.append(("sign_in_with_oauth", credentials))
        provider = credentials["provider"]
        verifier = f"verifier-{len(self.provider.codes) + 1}-{id(self)}"
        self.storage.set_item(VERIFIER_KEY, verifier)
        redirect_to = credentials.get("options", {}).get("redirect_to")
        self.provider.authorize(verifier, redirect_to)
        return SimpleNamespace(provider=provider, url=f"https://auth.example.test/authorize?provider={provider}")

    def exchange_code_for_session(self, params):
        self.calls.append(("exchange_code_for_session", params))
        verifier = params.get("code_verifier") or self.storage.get_item(VERIFIER_KEY)
        session = self.provider.redeem(params["auth_code"], verifier)
        self.storage.remove_item(VERIFIER_KEY)
        self.emit("SIGNED_IN", session)

    def sign_out(self):
        self.calls.append("sign_out")
        self.emit("SIGNED_OUT", None)


class FakeSupabase:
    def __init__(self, auth=None):
        self.auth = auth or FakeAuth()


def make_client(auth=None, pending=None, redirect_url="http://localhost:8501"):
    auth = auth if auth is not None else FakeAuth()
    return SessionClient(FakeSupabase(auth), redirect_url=redirect_url, storage=auth.storage, pending=pending)


@pytest.fixture
def settings():
    return Settings(
        service_url="https://project.supabase.test",
        public_key="anon-key",
        status_api_url="http://status.test",
        status_timeout=1.0,
    )


@pytest.fixture
def empty_settings():
    return Settings(status_api_url="http://status.test", status_timeout=1.0)


@pytest.fixture
def fake_auth():
    return FakeAuth()


@pytest.fixture
def session_client(fake_auth):
    return make_client(fake_auth)


@pytest.fixture
def pending():
    return PendingSignIns()
