from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from carenotify.bootstrap import build_services
from carenotify.infrastructure.database import (
    get_engine,
    get_session_factory,
    initialize_database,
)
from carenotify.interfaces.api.routes import register_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Prepare the database and notification services, then release them on shutdown."""

    initialize_database()
    services = build_services(get_session_factory())
    app.state.notification_services = services
    yield
    await services.scheduler.cancel_all()
    get_engine().dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(title="CareNotify", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
