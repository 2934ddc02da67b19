"""Domain exceptions and centralized FastAPI error handlers."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class CryptoExchangeError(Exception):
    """Base exception with HTTP status code."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class InvalidQuoteError(CryptoExchangeError, ValueError):
    def __init__(self, message: str = "quote and its symbol are required"):
        super().__init__(message, status_code=400)


class ApiNotConfiguredError(CryptoExchangeError):
    def __init__(self):
        super().__init__("API_NOT_CONFIGURED", status_code=503)


def register_error_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(CryptoExchangeError)
    async def handle_domain_error(_request: Request, exc: CryptoExchangeError):
        logger.warning("[API][domain_error] status=%s error=%s", exc.status_code, exc)
        return JSONResponse({"detail": str(exc)}, status_code=exc.status_code)

    @app.exception_handler(ValueError)
    async def handle_value_error(_request: Request, exc: ValueError):
        logger.warning("[API][bad_request] error=%s", exc)
        return JSONResponse({"detail": "INVALID_REQUEST"}, status_code=400)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception("[API][unhandled_error] error=%s", exc)
        return JSONResponse(
            {"detail": "An unexpected error occurred. Please try again later."},
            status_code=500,
        )
