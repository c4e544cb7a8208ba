# backend/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from database import Database
from utils.handlers import register_exception_handlers
from utils.logging_config import setup_logging
from utils.migrations import run_database_migrations
from utils.response import success_response

# Import routerów
from routes.movement import router as movement_router
from routes.product import router as product_router

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: configuration errors and failed migrations stop the server here
    settings.require_database()
    database = Database.from_settings(settings)
    try:
        run_database_migrations(settings, engine=database.engine)
    except Exception:
        database.dispose()
        raise
    app.state.database = database
    logger.info("Stock movement API started")

    yield

    app.state.database = None
    database.dispose()
    logger.info("Database pool disposed")


app = FastAPI(title="Stock Movement API", version="1.0.0", lifespan=lifespan)

# CORS Configuration
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Rejestracja routerów
app.include_router(movement_router)
app.include_router(product_router)


@app.get("/")
def read_root():
    return {"message": "Stock movement API is running"}


@app.get("/health")
def health(request: Request):
    database = getattr(request.app.state, "database", None)
    reachable = database.ping() if database is not None else False
    return success_response({"status": "ok" if reachable else "degraded", "database": reachable})
