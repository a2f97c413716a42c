"""Request-scoped dependencies shared by the routers.

Shopper identity arrives from the upstream gateway in headers:
``X-User-ID`` names the authenticated user and ``X-User-Role``
carries their role.
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from storefront.infrastructure.database import get_session

ADMIN_ROLE = "admin"


def get_request_id(request: Request) -> str | None:
    """Get the correlation ID assigned by the request ID middleware."""
    return getattr(request.state, "request_id", None)


def get_current_user(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """Resolve the authenticated shopper.

    Raises:
        HTTPException: 401 when the gateway sent no user.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error_code": "UNAUTHENTICATED",
                "message": "Authentication required",
            },
        )
    return x_user_id.strip()


def require_admin(
    user_id: Annotated[str, Depends(get_current_user)],
    x_user_role: Annotated[str | None, Header()] = None,
) -> str:
    """Resolve the authenticated user and require the admin role.

    Raises:
        HTTPException: 403 when the user is not an admin.
    """
    if (x_user_role or "").strip().lower() != ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error_code": "FORBIDDEN",
                "message": "Admin access required",
            },
        )
    return user_id


CurrentUser = Annotated[str, Depends(get_current_user)]
AdminUser = Annotated[str, Depends(require_admin)]
RequestId = Annotated[str | None, Depends(get_request_id)]

__all__ = [
    "ADMIN_ROLE",
    "AdminUser",
    "CurrentUser",
    "RequestId",
    "get_current_user",
    "get_request_id",
    "get_session",
    "require_admin",
]
