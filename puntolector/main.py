# puntolector/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import settings
from .catalog import catalog_router
from .database import get_session, init_schema, make_engine, make_session_factory
from .errors import CatalogError
from .storage import default_storage


logger = logging.getLogger(__name__)


def _describe(errors) -> str:
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def create_app(database_url: Optional[str] = None, storage=None) -> FastAPI:
    """Build the API with its own engine, session factory and storage client."""
    logging.basicConfig(level=settings.LOG_LEVEL)

    engine = make_engine(database_url or settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_schema(engine)
        yield
        engine.dispose()
        logger.info("Database engine disposed")

    app = FastAPI(
        title="Punto Lector API",
        description=(
            "Administrative REST API for the bookstore catalogue: authors, "
            "categories, nationalities, books, stores and listings."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.storage = storage if storage is not None else default_storage()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.CORS_ORIGIN],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["content-type"],
    )

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _describe(exc.errors())})

    @app.get("/")
    def index():
        return {"message": "Punto Lector API", "version": "1.0.0", "status": "running"}

    @app.get("/health")
    def health_check(session: Session = Depends(get_session)):
        try:
            session.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.error("Health check failed: %s", exc)
            return JSONResponse(
                status_code=500,
                content={"status": "unhealthy", "database": "disconnected"},
            )
        return {"status": "healthy", "database": "connected"}

    app.include_router(catalog_router)
    return app


app = create_app()
