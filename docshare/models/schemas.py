from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Set
from pydantic import BaseModel, ConfigDict, Field, field_validator

Role = Literal["USER", "ADMIN"]
KNOWN_ROLES = {"USER", "ADMIN"}


# ---------- Documents ----------
class DocumentRef(BaseModel):
    """A shareable document as the backend describes it."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: Optional[str] = None
    file_type: Optional[str] = Field(None, alias="fileType")
    file_size: int = Field(0, ge=0, alias="fileSize")
    file_name: Optional[str] = Field(None, alias="fileName")
    sharing_handle: Optional[str] = Field(None, alias="shareableLink")
    owner_name: Optional[str] = Field(None, alias="ownerName")
    team_shared: bool = Field(False, alias="teamShared")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    owned_by_current_user: bool = Field(False, alias="ownedByCurrentUser")

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        return str(v) if v is not None else v

    @field_validator("file_size", mode="before")
    @classmethod
    def _size_default(cls, v):
        return 0 if v is None else v

    @field_validator("sharing_handle", "description", "file_type", mode="before")
    @classmethod
    def _blank_is_absent(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def with_owner(self, username: Optional[str]) -> "DocumentRef":
        """Return a copy with `owned_by_current_user` derived for `username`."""
        owned = bool(username) and self.owner_name == username
        return self.model_copy(update={"owned_by_current_user": owned})


class ShareForm(BaseModel):
    team_shared: bool = False
    shared_with: str = Field("", description="Comma separated usernames or emails")

    def users(self) -> List[str]:
        return [u.strip() for u in self.shared_with.split(",") if u.strip()]


class DocumentEditForm(BaseModel):
    name: str
    description: str = ""
    team_shared: bool = False


class DashboardStats(BaseModel):
    my_files_count: int
    team_files_count: int
    total_size: int
    total_size_display: str
    recent_files: List[DocumentRef]


# ---------- Session ----------
class LoginForm(BaseModel):
    username_or_email: str = Field(..., min_length=1, alias="usernameOrEmail")
    password: str = Field(..., min_length=1)
    model_config = ConfigDict(populate_by_name=True)


class RegisterForm(BaseModel):
    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str
    confirm_password: str = Field(..., alias="confirmPassword")
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    model_config = ConfigDict(populate_by_name=True)


class SessionIdentity(BaseModel):
    token: str
    username: str
    roles: Set[Role] = Field(default_factory=lambda: {"USER"})
    active: bool = True
    email: Optional[str] = None
    user_id: Optional[str] = None

    @field_validator("roles", mode="before")
    @classmethod
    def _normalise_roles(cls, v):
        if not v:
            return {"USER"}
        if isinstance(v, str):
            v = [v]
        # Spring style authorities come back as ROLE_ADMIN
        roles = {r.upper().removeprefix("ROLE_") for r in v if r} & KNOWN_ROLES
        return roles or {"USER"}

    @property
    def is_admin(self) -> bool:
        return "ADMIN" in self.roles


class SessionInfo(BaseModel):
    authenticated: bool
    is_admin: bool = False
    username: Optional[str] = None
    roles: List[Role] = []


# ---------- Admin ----------
class UserAccount(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: str
    email: str = ""
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    roles: List[Role] = Field(default_factory=lambda: ["USER"])
    active: bool = True

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        return str(v) if v is not None else v

    @field_validator("first_name", "last_name", "email", mode="before")
    @classmethod
    def _none_is_blank(cls, v):
        return "" if v is None else v

    @field_validator("roles", mode="before")
    @classmethod
    def _normalise_roles(cls, v):
        if not v:
            return ["USER"]
        roles = {r.upper().removeprefix("ROLE_") for r in v if r} & KNOWN_ROLES
        return sorted(roles) or ["USER"]


class UserCreateForm(BaseModel):
    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str
    confirm_password: str = Field(..., alias="confirmPassword")
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    roles: List[Role] = Field(default_factory=lambda: ["USER"])
    active: bool = True
    model_config = ConfigDict(populate_by_name=True)


class UserUpdateForm(BaseModel):
    username: str
    email: str
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    roles: List[Role] = Field(default_factory=lambda: ["USER"])
    active: bool = True
    model_config = ConfigDict(populate_by_name=True)


class UserStats(BaseModel):
    total: int
    active: int
    admins: int
    regular_users: int


# ---------- Preview ----------
class RenderStrategy(str, Enum):
    IMAGE = "image"
    PDF = "pdf"
    TEXT = "text"
    CSV = "csv"
    OFFICE = "office"
    AUDIO = "audio"
    VIDEO = "video"
    UNSUPPORTED = "unsupported"


class CsvTable(BaseModel):
    header: List[str]
    rows: List[List[str]]
    total_rows: int
    hidden_rows: int = 0
    truncated: bool = False
    notice: Optional[str] = None


class RenderedPreview(BaseModel):
    """View-model handed to the browser for one preview."""
    kind: RenderStrategy
    title: str
    src: Optional[str] = None
    mime_type: Optional[str] = None
    text: Optional[str] = None
    table: Optional[CsvTable] = None
    details: Dict[str, Any] = {}
    message: Optional[str] = None


class PreviewSnapshot(BaseModel):
    state: Literal["idle", "loading", "ready", "failed"]
    document: Optional[DocumentRef] = None
    strategy: Optional[RenderStrategy] = None
    access_url: Optional[str] = None
    suggested_filename: Optional[str] = None
    error: Optional[str] = None
    rendered: Optional[RenderedPreview] = None
