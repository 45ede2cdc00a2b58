# docshare/api/routes/session.py
import logging
from fastapi import APIRouter, Depends, status

from docshare.auth.validation import check_new_password
from docshare.deps import Services, get_services
from docshare.errors import DocShareError, to_http
from docshare.models.schemas import LoginForm, RegisterForm, SessionInfo

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/session", tags=["session"])


@router.get("", response_model=SessionInfo)
def session_info(services: Services = Depends(get_services)):
    return services.session.info()


@router.post("/login", response_model=SessionInfo)
async def login(form: LoginForm, services: Services = Depends(get_services)):
    """Exchange credentials for a bearer token held by this front server."""
    previous = services.session.username
    try:
        identity = await services.session.login(form, services.auth)
    except DocShareError as e:
        raise to_http(e)
    if previous is not None and identity.username != previous:
        # the preview belonged to the account that was signed in before
        services.preview.close()
    return services.session.info()


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(form: RegisterForm, services: Services = Depends(get_services)):
    """
    Create an account. Password confirmation and complexity are checked here
    and block the call; the backend decides everything else.
    """
    try:
        check_new_password(form.password, form.confirm_password)
        await services.auth.register(form)
    except DocShareError as e:
        raise to_http(e, "Registration failed")
    logger.info(f"Registered user {form.username}")
    return {"message": "Registration successful. Please log in."}


@router.post("/logout", response_model=SessionInfo)
def logout(services: Services = Depends(get_services)):
    # the preview belongs to the session that is going away
    services.preview.close()
    services.session.logout()
    return services.session.info()
