# app/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.crypto import router as crypto_router
from app.api.health import router as health_router
from app.api.payments import router as payments_router
from app.api.prices import router as prices_router
from app.config.settings import get_settings
from app.utils.log import configure_logging

logger = logging.getLogger("crypto_wallet.api")


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": jsonable_errors(exc)},
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("❌ unhandled error | %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Crypto Wallet API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Price-Source", "X-Price-Captured-At"],
    )

    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    # Routers
    app.include_router(health_router)
    app.include_router(prices_router)
    app.include_router(crypto_router)
    app.include_router(payments_router)

    @app.get("/")
    def root() -> dict[str, str]:
        return {"message": "Crypto Wallet API"}

    return app


app = create_app()
