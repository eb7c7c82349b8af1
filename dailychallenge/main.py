import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

# Process env wins over .env; tests configure their own database
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv()

from dailychallenge.api import challenges, entries, health, progress, scoring
from dailychallenge.core.config import settings, validate_config
from dailychallenge.core.database import create_all_tables
from dailychallenge.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
)
from dailychallenge.core.logging import configure_logging
from dailychallenge.core.middleware.request_id import RequestIdMiddleware

configure_logging(settings.ENV)
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("dailychallenge")
    logger.info("Starting daily challenge service...")
    create_all_tables()
    try:
        yield
    finally:
        logger.info("Stopping daily challenge service...")


app = FastAPI(title="Daily Challenge", lifespan=lifespan)

app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.ALLOWED_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(challenges.router)
app.include_router(entries.router)
app.include_router(progress.router)
app.include_router(scoring.router)
app.include_router(health.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("dailychallenge.main:app", host="0.0.0.0", port=8000, reload=settings.ENV == "development")
