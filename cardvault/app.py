"""FastAPI app initialization, exception handling"""

import asyncio
import logging
import traceback
from contextlib import asynccontextmanager

import uvicorn
from cardvault.config import Config, get_config
from cardvault.errors.base import ApplicationError
from cardvault.routes.card import card_router
from cardvault.services.locks import CardLockTimeout
from cardvault.tasks.sweep_challenges import schedule_sweep
from fastapi import FastAPI, Request
from fastapi.exceptions import ResponseValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)
alert_logger = logging.getLogger("cardvault.alerts")

config: Config = get_config()


@asynccontextmanager
async def lifespan(app: FastAPI):
    sweep_task = None
    if config.sweep_interval_seconds > 0:
        sweep_task = asyncio.create_task(schedule_sweep(config))
    yield
    if sweep_task is not None:
        sweep_task.cancel()


app = FastAPI(title=config.app_name, version=config.app_version, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Token"],
)
if not config.secret_key:
    logger.warning(
        "CARDVAULT_SECRET_KEY is missing in the configuration, session tokens will be rejected."
    )


@app.exception_handler(ResponseValidationError)
async def response_validation_exception_handler(
    request: Request, exc: ResponseValidationError
):
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Response validation error encountered",
            "errors": exc.errors(),
        },
    )


@app.exception_handler(ApplicationError)
def application_exception_handler(request: Request, exc: ApplicationError):
    c = {
        "error_code": exc.error_code,
        "error": exc.error,
        "where": exc.where,
    }
    if exc.alert:
        alert_logger.critical("%s %s: %s", request.method, request.url.path, c)
    else:
        logger.error(c)
    # Only print full traceback when in debug logging
    if logger.isEnabledFor(logging.DEBUG):
        traceback.print_exception(exc)
    return JSONResponse(
        status_code=exc.http_code or 400,
        content=c,
    )


@app.exception_handler(CardLockTimeout)
def card_lock_timeout_handler(request: Request, exc: CardLockTimeout):
    logger.error(exc)
    return JSONResponse(
        status_code=503,
        content={"error_code": 1503, "error": "Card is busy, retry later"},
        headers={"Retry-After": "1"},
    )


@app.exception_handler(SQLAlchemyError)
def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(exc)
    # Only print full traceback when in debug logging
    if logger.isEnabledFor(logging.DEBUG):
        traceback.print_exception(exc)
    return JSONResponse(
        status_code=500,
        content={"error_code": 1500, "error": exc._message()},
    )


app.include_router(card_router)

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8080, log_level="info")
