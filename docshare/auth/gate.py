# docshare/auth/gate.py
from fastapi import Depends, HTTPException, status

from docshare.auth.session import SessionContext
from docshare.deps import get_session
from docshare.models.schemas import SessionIdentity

# Role order for comparison
ORDER = {"USER": 0, "ADMIN": 1}


def require_role(min_role: str):
    """
    Dependency factory that ensures a session is held and its best role is at
    least `min_role`. Returns the SessionIdentity on success.

    - 401: no token held; nothing is sent to the backend.
    - 403: authenticated but role below requirement.
    """
    if min_role not in ORDER:
        raise ValueError(f"Invalid min_role '{min_role}'. Valid: {list(ORDER.keys())}")

    def _dep(session: SessionContext = Depends(get_session)) -> SessionIdentity:
        identity = session.identity
        if identity is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
        best = max(ORDER.get(r, -1) for r in identity.roles)
        if best < ORDER[min_role]:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Requires role {min_role}")
        return identity

    return _dep


authenticated = require_role("USER")
admin_only = require_role("ADMIN")
