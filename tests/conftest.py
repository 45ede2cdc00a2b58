import os
import tempfile
import pytest
import httpx
from fastapi.testclient import TestClient
import jwt as pyjwt

# === Configure env BEFORE any imports ===
os.environ["APP_ENV"] = "test"
os.environ.setdefault("DOCSHARE_API_URL", "http://backend.test/api")
os.environ.setdefault("DOCSHARE_TOKEN_STORE", os.path.join(tempfile.mkdtemp(), "session.json"))

API = "http://backend.test/api"


class FakeBackend:
    """
    Stand-in for the document-sharing backend behind httpx.MockTransport.
    Routes are keyed by (method, path without the /api prefix).
    """

    def __init__(self):
        self.routes = {}
        self.calls = []

    def on(self, method, path, response):
        self.routes[(method.upper(), path)] = response
        return self

    def paths(self):
        return [(r.method, r.url.path.removeprefix("/api")) for r in self.calls]

    def __call__(self, request: httpx.Request):
        self.calls.append(request)
        key = (request.method, request.url.path.removeprefix("/api"))
        handler = self.routes.get(key)
        if handler is None:
            return httpx.Response(404, json={"error": f"no route {key}"})
        return handler(request) if callable(handler) else handler


# === Auth helpers ===
def _token_for(sub="alice", roles=("USER",)):
    """Generate a JWT token the way the backend would."""
    return pyjwt.encode({"sub": sub, "roles": list(roles)}, "backend-secret", algorithm="HS256")


def _login_response(username="alice", roles=("USER",)):
    return httpx.Response(200, json={
        "token": _token_for(username, roles),
        "type": "Bearer",
        "id": 7,
        "username": username,
        "email": f"{username}@example.com",
        "roles": list(roles),
    })


def _doc(id, name, **extra):
    body = {
        "id": id,
        "name": name,
        "description": extra.pop("description", ""),
        "fileType": extra.pop("fileType", "text/plain"),
        "fileSize": extra.pop("fileSize", 10),
        "shareableLink": extra.pop("shareableLink", f"h-{id}"),
        "ownerName": extra.pop("ownerName", "alice"),
        "teamShared": extra.pop("teamShared", False),
        "createdAt": extra.pop("createdAt", "2025-01-01T10:00:00"),
    }
    body.update(extra)
    return body


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def settings(tmp_path):
    from docshare.config import Settings
    return Settings(api_url=API, token_store_path=str(tmp_path / "session.json"))


@pytest.fixture
def app_instance(backend, settings):
    """Fresh app per test, wired to the fake backend."""
    from docshare.main import create_app
    return create_app(settings, transport=httpx.MockTransport(backend))


@pytest.fixture
def services(app_instance):
    return app_instance.state.services


@pytest.fixture
def client(app_instance):
    """Test client for making HTTP requests."""
    return TestClient(app_instance)


@pytest.fixture
def logged_in(client, backend):
    """Session held for a regular user."""
    backend.on("POST", "/auth/login", _login_response("alice", ("USER",)))
    r = client.post("/session/login", json={"usernameOrEmail": "alice", "password": "Secret1!"})
    assert r.status_code == 200, r.text
    backend.calls.clear()
    return client


@pytest.fixture
def admin_logged_in(client, backend):
    """Session held for an administrator."""
    backend.on("POST", "/auth/login", _login_response("root", ("USER", "ADMIN")))
    r = client.post("/session/login", json={"usernameOrEmail": "root", "password": "Secret1!"})
    assert r.status_code == 200, r.text
    backend.calls.clear()
    return client


@pytest.fixture
def preview_stack(tmp_path):
    """
    Factory for an acquirer + blob store talking to `handler`, without the
    web layer. Returns (acquirer, store, session).
    """
    from docshare.auth.session import SessionContext, TokenStore
    from docshare.backend.api import PublicAPI
    from docshare.backend.client import BackendClient
    from docshare.preview.acquire import PreviewAcquirer
    from docshare.preview.resource import BlobStore

    def _make(handler):
        session = SessionContext(TokenStore(str(tmp_path / "stack-session.json")))
        client = BackendClient(session, API, timeout=5, transport=httpx.MockTransport(handler))
        store = BlobStore()
        return PreviewAcquirer(PublicAPI(client), store), store, session

    return _make
