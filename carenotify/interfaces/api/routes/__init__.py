from fastapi import FastAPI

from .deliveries import router as deliveries_router
from .notifications import router as notifications_router


def register_routes(app: FastAPI) -> None:
    """Register every API router on the FastAPI application."""

    app.include_router(notifications_router)
    app.include_router(deliveries_router)
