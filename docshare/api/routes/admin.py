# docshare/api/routes/admin.py
import logging
from fastapi import APIRouter, Depends, Query, status

from docshare.auth.gate import admin_only
from docshare.auth.validation import check_new_password, require_confirmation
from docshare.deps import Services, get_services
from docshare.errors import DocShareError, to_http
from docshare.models.schemas import UserAccount, UserCreateForm, UserStats, UserUpdateForm
from docshare.utils.formatting import filter_users

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin/users", tags=["admin"], dependencies=[Depends(admin_only)])


@router.get("")
async def list_users(
    q: str = Query("", description="Match on username, email, first or last name"),
    active_only: bool = Query(False),
    services: Services = Depends(get_services),
):
    try:
        users = await services.admin.users()
    except DocShareError as e:
        raise to_http(e, "Failed to fetch users")
    return filter_users(users, q, active_only)


@router.get("/stats", response_model=UserStats)
async def user_stats(services: Services = Depends(get_services)):
    try:
        users = await services.admin.users()
    except DocShareError as e:
        raise to_http(e, "Failed to fetch users")
    admins = sum(1 for u in users if "ADMIN" in u.roles)
    return UserStats(
        total=len(users),
        active=sum(1 for u in users if u.active),
        admins=admins,
        regular_users=sum(1 for u in users if "USER" in u.roles and "ADMIN" not in u.roles),
    )


@router.get("/active")
async def active_users(services: Services = Depends(get_services)):
    try:
        return await services.admin.active_users()
    except DocShareError as e:
        raise to_http(e, "Failed to fetch active users")


@router.get("/{user_id}", response_model=UserAccount)
async def get_user(user_id: str, services: Services = Depends(get_services)):
    try:
        return await services.admin.user(user_id)
    except DocShareError as e:
        raise to_http(e, "Failed to fetch user")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(form: UserCreateForm, services: Services = Depends(get_services)):
    try:
        check_new_password(form.password, form.confirm_password)
        await services.admin.create_user(form)
    except DocShareError as e:
        raise to_http(e, "Failed to create user")
    logger.info(f"Created user {form.username} roles={form.roles}")
    return {"message": "User created successfully!"}


@router.put("/{user_id}")
async def update_user(user_id: str, form: UserUpdateForm, services: Services = Depends(get_services)):
    try:
        await services.admin.update_user(user_id, form)
    except DocShareError as e:
        raise to_http(e, "Failed to update user")
    return {"message": "User updated successfully!"}


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    confirm: bool = Query(False),
    username: str = Query("", description="Shown in the confirmation prompt"),
    services: Services = Depends(get_services),
):
    try:
        require_confirmation(confirm, f'user "{username or user_id}"')
        await services.admin.delete_user(user_id)
    except DocShareError as e:
        raise to_http(e, "Failed to delete user")
    logger.info(f"Deleted user {username or user_id}")
    return {"message": "User deleted successfully!"}
