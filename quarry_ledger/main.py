import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError
from quarry_ledger.core.config import settings
from quarry_ledger.core.exceptions import LedgerError, ledger_error_handler
from quarry_ledger.core.logging import configure_logging
from quarry_ledger.db.mongo import close_mongo_connection, connect_to_mongo, get_db
from quarry_ledger.db.session import translate_error
from quarry_ledger.repositories.expense_repo import ExpenseRepository
from quarry_ledger.repositories.settings_repo import SettingsRepository
from quarry_ledger.repositories.user_repo import UserRepository
from quarry_ledger.api.v1.api import api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect to Mongo and seed defaults on startup, disconnect on shutdown."""
    configure_logging(settings.LOG_LEVEL)
    await connect_to_mongo()
    db = get_db()
    await SettingsRepository(db).seed_defaults()
    await ExpenseRepository(db).seed_categories()
    await UserRepository(db).ensure_admin(settings.DEFAULT_ADMIN_USERNAME, settings.DEFAULT_ADMIN_PASSWORD)
    logger.info("%s started (%s)", settings.PROJECT_NAME, settings.ENVIRONMENT)

    yield

    await close_mongo_connection()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(LedgerError, ledger_error_handler)


@app.exception_handler(PyMongoError)
async def driver_error_handler(request: Request, exc: PyMongoError):
    """Driver errors that escaped a unit of work still answer in the ledger taxonomy."""
    error = translate_error(exc)
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return await ledger_error_handler(request, error)


@app.get("/")
async def root():
    return {"message": "Welcome to Quarry Ledger API"}


@app.get("/health")
async def health():
    return {"status": "ok", "version": settings.PROJECT_VERSION}


app.include_router(api_router, prefix=settings.API_V1_STR)
