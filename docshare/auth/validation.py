import re
from docshare.errors import ConfirmationRequired, ValidationError

PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{6,}$")
PASSWORD_RULE = (
    "Password must contain at least one uppercase letter, one lowercase letter, "
    "one number, and one special character"
)


def check_new_password(password: str, confirm_password: str) -> None:
    """Raise ValidationError unless the pair is acceptable for a new account."""
    if password != confirm_password:
        raise ValidationError("Passwords do not match")
    if not PASSWORD_RE.match(password):
        raise ValidationError(PASSWORD_RULE)


def require_confirmation(confirm: bool, what: str) -> None:
    """Destructive actions only go through when the caller confirmed them."""
    if not confirm:
        raise ConfirmationRequired(f"Are you sure you want to delete {what}? This action cannot be undone.")
