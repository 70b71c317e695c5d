from __future__ import annotations

from fastapi import FastAPI
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .database import Base, engine
from .observability import RequestTimingLoggingMiddleware, add_exception_handlers, configure_logging
from .routers import status as status_router
from .routers import checkpoints as checkpoints_router
from .routers import exports as exports_router
from .routers import countries as countries_router
from .routers import users as users_router

# Ensure schema is present when the module is imported (tests use TestClient without lifespan)
Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()
    application = FastAPI(title="Checkpoint Admin API", version="0.1.0", lifespan=lifespan)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(RequestTimingLoggingMiddleware)

    add_exception_handlers(application)

    application.include_router(status_router.router)
    application.include_router(checkpoints_router.router)
    application.include_router(exports_router.router)
    application.include_router(countries_router.router)
    application.include_router(users_router.router)

    return application


app = create_app()
