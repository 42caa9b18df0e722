"""
Duesbook API: customer dues ledger for a village shop.

ARCHITECTURE:
- FastAPI: routes, auth sessions, error mapping
- SQLAlchemy: customers, transactions, sessions (SQLite by default)
- Browser frontend: calls these routes with a bearer token or session cookie

LEDGER MODEL:
- Every transaction write adjusts the customer's outstanding dues in the
  same database commit (services/ledger.py)
- Dues are never edited directly; reconciliation recomputes them from history
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from duesbook.api.routes import auth, customers, dashboard, export, transactions, villages
from duesbook.core.config import settings
from duesbook.core.exceptions import BackendUnavailable, DuesbookError
from duesbook.core.logging_config import configure_logging
from duesbook.db.init_db import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: configure logging, create tables.
    """
    configure_logging()
    logger.info("Initializing database...")
    init_db()
    logger.info("Database initialized")
    yield


app = FastAPI(
    title="Duesbook API",
    description="Customers, villages and a running balance of outstanding dues.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
    ],
    max_age=600,
    expose_headers=["Content-Type", "Content-Disposition"],
)


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


@app.exception_handler(DuesbookError)
async def duesbook_error_handler(request: Request, exc: DuesbookError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.error_code}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.error_code} {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(OperationalError)
async def database_error_handler(request: Request, exc: OperationalError):
    # Reads fail here directly; writes are already wrapped by atomic()
    error = BackendUnavailable(exc)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(customers.router, prefix="/customers", tags=["customers"])
app.include_router(transactions.router, prefix="/transactions", tags=["transactions"])
app.include_router(villages.router, prefix="/villages", tags=["villages"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
app.include_router(export.router, prefix="/export", tags=["export"])


@app.get("/health")
def health():
    return {"status": "ok"}
