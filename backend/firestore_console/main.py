from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .dependencies import get_conn_mgr
from .errors import ConsoleError, console_error_handler
from .logging_setup import setup_logging
from .routers import auth, collections, connections, databases, documents


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.validate_on_startup:
        # broken credentials abort startup
        get_conn_mgr().validate_credentials()
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    logger = setup_logging(settings)

    app = FastAPI(title="Firestore Console Backend", version="0.1.0", lifespan=lifespan)

    # CORS (allow local Next.js dev server and same-origin)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ConsoleError, console_error_handler)

    # Routers
    app.include_router(connections.router, prefix="/api")
    app.include_router(databases.router, prefix="/api")
    app.include_router(collections.router, prefix="/api")
    app.include_router(documents.router, prefix="/api")
    app.include_router(auth.router, prefix="/api")

    @app.get("/api/health")
    def health():
        return {"status": "ok"}

    logger.info("Firestore console backend ready (databases: %s)", ", ".join(settings.databases))
    return app


app = create_app()
