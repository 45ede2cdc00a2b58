"""Grouped calls onto the backend REST surface."""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

import httpx
import pydantic

from docshare.backend.client import BackendClient
from docshare.errors import NetworkError
from docshare.models.schemas import (
    DocumentEditForm,
    DocumentRef,
    LoginForm,
    RegisterForm,
    ShareForm,
    UserAccount,
    UserCreateForm,
    UserUpdateForm,
)

logger = logging.getLogger(__name__)


def _parse(model, data: Any):
    """Validate one backend record; a malformed one is a backend failure."""
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        logger.error(f"Malformed {model.__name__} from backend: {e}")
        raise NetworkError(f"Backend sent a malformed {model.__name__} record") from e


def _documents(data: Any, username: Optional[str]) -> List[DocumentRef]:
    if not isinstance(data, list):
        logger.warning(f"Expected a list of documents, got {type(data).__name__}")
        return []
    return [_parse(DocumentRef, d).with_owner(username) for d in data]


def _users(data: Any) -> List[UserAccount]:
    if not isinstance(data, list):
        logger.warning(f"Expected a list of users, got {type(data).__name__}")
        return []
    return [_parse(UserAccount, u) for u in data]


class AuthAPI:
    """Unauthenticated endpoints."""

    def __init__(self, client: BackendClient):
        self.client = client

    async def login(self, form: LoginForm) -> Dict[str, Any]:
        payload = {"usernameOrEmail": form.username_or_email, "password": form.password}
        return await self.client.send_json("POST", "/auth/login", payload, auth=False) or {}

    async def register(self, form: RegisterForm) -> Dict[str, Any]:
        payload = form.model_dump(by_alias=True, exclude={"confirm_password"})
        return await self.client.send_json("POST", "/auth/register", payload, auth=False) or {}


class DocumentAPI:
    def __init__(self, client: BackendClient):
        self.client = client

    @property
    def _username(self) -> Optional[str]:
        return self.client.session.username

    async def upload(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str],
        name: str,
        description: str = "",
        team_shared: bool = False,
    ) -> Optional[DocumentRef]:
        files = {"file": (filename, content, content_type or "application/octet-stream")}
        data = {"name": name, "description": description, "teamShared": str(team_shared).lower()}
        response = await self.client.request("POST", "/documents/upload", files=files, data=data)
        logger.info(f"Uploaded {filename} ({len(content)} bytes) as '{name}'")
        try:
            return DocumentRef.model_validate(response.json()).with_owner(self._username)
        except ValueError as e:
            # stored, but the backend did not echo a usable record back
            logger.warning(f"Upload of {filename} answered without a document record: {e}")
            return None

    async def my_documents(self) -> List[DocumentRef]:
        return _documents(await self.client.get_json("/documents/my-files"), self._username)

    async def team_documents(self) -> List[DocumentRef]:
        return _documents(await self.client.get_json("/documents/team-files"), self._username)

    async def get(self, document_id: str) -> DocumentRef:
        data = await self.client.get_json(f"/documents/{document_id}")
        return _parse(DocumentRef, data).with_owner(self._username)

    async def download(self, document_id: str) -> httpx.Response:
        return await self.client.request("GET", f"/documents/{document_id}/download")

    async def share(self, document_id: str, form: ShareForm) -> Any:
        payload = {
            "documentId": document_id,
            "sharedWithUsers": form.users(),
            "teamShared": form.team_shared,
        }
        return await self.client.send_json("POST", f"/documents/{document_id}/share", payload)

    async def update(self, document_id: str, form: DocumentEditForm) -> Any:
        payload = {"name": form.name, "description": form.description, "teamShared": form.team_shared}
        return await self.client.send_json("PUT", f"/documents/{document_id}", payload)

    async def delete(self, document_id: str) -> None:
        await self.client.request("DELETE", f"/documents/{document_id}")

    async def search(self, term: str) -> List[DocumentRef]:
        data = await self.client.get_json("/documents/search", params={"q": term})
        return _documents(data, self._username)


class PublicAPI:
    """Sharing-handle endpoints; never sends the bearer token."""

    def __init__(self, client: BackendClient):
        self.client = client

    async def shared_document(self, handle: str) -> httpx.Response:
        return await self.client.request("GET", f"/documents/share/{handle}", auth=False)


class AdminAPI:
    def __init__(self, client: BackendClient):
        self.client = client

    async def users(self) -> List[UserAccount]:
        return _users(await self.client.get_json("/admin/users"))

    async def active_users(self) -> List[UserAccount]:
        return _users(await self.client.get_json("/admin/users/active"))

    async def user(self, user_id: str) -> UserAccount:
        return _parse(UserAccount, await self.client.get_json(f"/admin/users/{user_id}"))

    async def create_user(self, form: UserCreateForm) -> Any:
        payload = form.model_dump(by_alias=True, exclude={"confirm_password", "active"})
        return await self.client.send_json("POST", "/admin/users", payload)

    async def update_user(self, user_id: str, form: UserUpdateForm) -> Any:
        return await self.client.send_json("PUT", f"/admin/users/{user_id}", form.model_dump(by_alias=True))

    async def delete_user(self, user_id: str) -> None:
        await self.client.request("DELETE", f"/admin/users/{user_id}")

    async def all_documents(self) -> List[DocumentRef]:
        return _documents(await self.client.get_json("/documents/admin/all"), self.client.session.username)

    async def team_documents(self) -> List[DocumentRef]:
        return _documents(await self.client.get_json("/documents/admin/team"), self.client.session.username)

    async def delete_team_document(self, document_id: str) -> None:
        await self.client.request("DELETE", f"/documents/admin/team/{document_id}")


def disposition_filename(disposition: str) -> Optional[str]:
    """Pull the filename out of a Content-Disposition header value."""
    if not disposition:
        return None
    for part in disposition.split(";"):
        key, _, value = part.strip().partition("=")
        if key.strip().lower() in ("filename", "filename*") and value:
            value = value.strip().strip("'\"")
            if key.strip().lower() == "filename*" and "''" in value:
                value = unquote(value.split("''", 1)[1])
            return value or None
    return None
