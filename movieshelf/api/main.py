from __future__ import annotations
import logging
import os

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from dotenv import load_dotenv

from fastapi import FastAPI, HTTPException, status, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from sqlalchemy import text

from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from movieshelf.db.database_session import engine
from movieshelf.db.db_creation import create_tables
from movieshelf.api.routers import auth, collections, ratings


# _________________________________________________________________________________________________________
# API Endpoints
# _________________________________________________________________________________________________________

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan handler: runs once at startup and once at shutdown.
    Ensures that all tables exist before the first request is served.
    """
    create_tables(engine)
    logger.info("[startup] Database ready")

    yield                                       # app runs while yielded

    engine.dispose()
    logger.info("[shutdown] Database connections closed")


app = FastAPI(
    title="Movieshelf API",
    description="Accounts, movie collections and ratings for the movieshelf app.",
    lifespan=lifespan
)

# Include router endpoints
app.include_router(auth.router)
app.include_router(collections.router)
app.include_router(ratings.router)


@app.get("/health", tags=["System"])
def health_check():
    """
    Lightweight healthcheck endpoint.
    Verifies connectivity to the database.
    Returns 200 OK if it is reachable, else 500.
    """
    status_report = {"timestamp": datetime.now(timezone.utc).isoformat()}

    # Check database connectivity
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        status_report["database"] = "reachable"
    except Exception as e:
        logger.warning("Health check could not reach the database: %s", e)
        status_report["database"] = f"unreachable ({str(e)})"

    if status_report.get("database") == "reachable":
        return status_report
    raise HTTPException(status_code=500, detail=status_report)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_: Request, exc: RequestValidationError):
    '''
    Malformed request bodies are client errors: answer with 400 and a readable message
    instead of FastAPIs default 422 error list.
    '''
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": message},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    '''
    Catches any other exception that wasn't explicitly handled and returns a 500 JSON response instead.
    '''
    logger.exception("Unhandled error in %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error."},
    )


@app.get("/metrics", tags=["System"])
def metrics():
    """
    Prometheus scrape endpoint.
    Returns all registered metrics in Prometheus text format.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def run() -> None:
    """Starts the API with uvicorn on HOST:PORT."""
    import uvicorn

    load_dotenv()
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "3000"))
    logger.info("Server running on http://%s:%s", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run()
