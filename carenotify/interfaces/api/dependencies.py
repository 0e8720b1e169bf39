"""FastAPI dependency utilities."""

from fastapi import Depends, Header, HTTPException, Request, status

from carenotify.application.use_cases.notifications import NotificationDispatcher
from carenotify.bootstrap import NotificationServices

ADMIN_ROLE = "admin"


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Return the user identifier forwarded by the authentication layer."""

    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authenticated user",
        )
    return user_id


def require_admin(
    user_id: str = Depends(get_current_user_id),
    x_user_role: str | None = Header(default=None),
) -> str:
    """Ensure the authenticated user has administrator privileges."""

    if (x_user_role or "").strip().lower() != ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized",
        )
    return user_id


def get_services(request: Request) -> NotificationServices:
    services = getattr(request.app.state, "notification_services", None)
    if services is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification services are not ready",
        )
    return services


def get_dispatcher(
    services: NotificationServices = Depends(get_services),
) -> NotificationDispatcher:
    return services.dispatcher
