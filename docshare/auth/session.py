# docshare/auth/session.py
import os
import json
import logging
from typing import Any, Dict, Optional

import jwt

from docshare.errors import Forbidden, InvalidCredentials, NetworkError, Unauthenticated
from docshare.models.schemas import LoginForm, SessionIdentity, SessionInfo

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"


class TokenStore:
    """
    Persistent key/value file holding the session token under a fixed key.

    Layout: {"token": "<bearer>", "user": {...identity without token...}}
    """

    def __init__(self, path: str):
        self.path = path

    def load(self) -> Dict[str, Any]:
        if not os.path.isfile(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable token store {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, identity: SessionIdentity) -> None:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        user = identity.model_dump(exclude={"token"}, mode="json")
        with open(self.path, "w", encoding="utf-8") as out:
            json.dump({TOKEN_KEY: identity.token, USER_KEY: user}, out)

    def clear(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass


def token_claims(token: str) -> Dict[str, Any]:
    """Unverified JWT claims; the backend is the one that verifies."""
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return {}


def identity_from_login(payload: Dict[str, Any]) -> SessionIdentity:
    """Build a SessionIdentity from a login response, falling back to token claims."""
    token = payload.get("token") or payload.get("accessToken") or payload.get("access_token")
    if not token:
        raise InvalidCredentials("Login response did not contain a token")
    user = payload.get("user") if isinstance(payload.get("user"), dict) else payload
    claims = token_claims(token)

    roles = user.get("roles") or claims.get("roles") or claims.get("authorities")
    return SessionIdentity(
        token=token,
        username=user.get("username") or claims.get("sub") or "",
        roles=roles,
        active=user.get("active", True),
        email=user.get("email"),
        user_id=str(user["id"]) if user.get("id") is not None else None,
    )


class SessionContext:
    """
    The single current session of this front server.

    Created once at startup and handed to every component that makes
    authenticated calls. Readers go through `token` each time, so a logout is
    observed by the very next request.
    """

    def __init__(self, store: TokenStore):
        self.store = store
        self._identity: Optional[SessionIdentity] = None

    # ----- lifecycle -----
    def restore(self) -> Optional[SessionIdentity]:
        data = self.store.load()
        token = data.get(TOKEN_KEY)
        if not token:
            return None
        user = data.get(USER_KEY) or {}
        try:
            self._identity = SessionIdentity(token=token, **{k: v for k, v in user.items() if k != "token"})
        except ValueError as e:
            logger.warning(f"Stored session is invalid, discarding: {e}")
            self.store.clear()
            return None
        logger.info(f"Restored session for {self._identity.username}")
        return self._identity

    async def login(self, form: LoginForm, auth_api) -> SessionIdentity:
        """Authenticate against the backend and hold the resulting identity."""
        try:
            payload = await auth_api.login(form)
        except NetworkError as e:
            if e.status in (400, 401, 403):
                raise InvalidCredentials() from e
            raise
        identity = identity_from_login(payload)
        self._identity = identity
        self.store.save(identity)
        logger.info(f"Logged in as {identity.username} roles={sorted(identity.roles)}")
        return identity

    def logout(self) -> None:
        if self._identity:
            logger.info(f"Logging out {self._identity.username}")
        self._identity = None
        self.store.clear()

    # ----- queries -----
    @property
    def identity(self) -> Optional[SessionIdentity]:
        return self._identity

    @property
    def token(self) -> Optional[str]:
        return self._identity.token if self._identity else None

    @property
    def username(self) -> Optional[str]:
        return self._identity.username if self._identity else None

    def is_authenticated(self) -> bool:
        return self.token is not None

    def is_admin(self) -> bool:
        return self._identity is not None and self._identity.is_admin

    def require_authenticated(self) -> SessionIdentity:
        if self._identity is None:
            raise Unauthenticated()
        return self._identity

    def require_admin(self) -> SessionIdentity:
        identity = self.require_authenticated()
        if not identity.is_admin:
            raise Forbidden()
        return identity

    def info(self) -> SessionInfo:
        if self._identity is None:
            return SessionInfo(authenticated=False)
        return SessionInfo(
            authenticated=True,
            is_admin=self._identity.is_admin,
            username=self._identity.username,
            roles=sorted(self._identity.roles),
        )
