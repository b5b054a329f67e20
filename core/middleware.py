from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi import FastAPI, Request

from core.logging import get_logger
from schemas.common import error_response, ApiStatus

log = get_logger("middleware")


def setup_middleware(app: FastAPI, origins: list[str] | None = None):
    """Setup CORS and global exception handlers"""

    # Global exception handler for validation errors
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        log.warning("request_validation_failed", url=str(request.url), errors=exc.errors())
        return JSONResponse(
            status_code=422,
            content=error_response(
                message="Request validation failed",
                status=ApiStatus.VALIDATION_ERROR,
                error_code="VALIDATION_ERROR",
                details=str(exc.errors()),
            )
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or [
            "http://localhost:3000", # Frontend dev server
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
