"""ASGI application.

``create_app`` wires the document store, middleware, error envelope handlers
and the v1 router. ``app`` is the module-level instance uvicorn serves::

    uvicorn career_agent.main:app
"""

import logging

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from career_agent.agents.base import DocumentStore, InMemoryDocumentStore
from career_agent.api.v1.router import router as v1_router
from career_agent.core.config import settings
from career_agent.core.errors import APIError
from career_agent.core.responses import ErrorResponse

logger = structlog.get_logger()

_SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """JSON-only API carrying CV text: never framed, API responses never cached."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        response.headers.update(_SECURITY_HEADERS)
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store, max-age=0"
        # TLS terminates at the proxy in production
        if settings.environment == "production":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response


def _envelope(
    status_code: int, code: str, message: str, details: list[dict] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse.of(code, message, details).model_dump(),
    )


def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    logger.info(
        "api_error", code=exc.code, status=exc.status_code, path=request.url.path
    )
    return _envelope(exc.status_code, exc.code, exc.message, exc.details)


def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report request-body and parameter problems as 400 VALIDATION_ERROR, not 422."""
    details = [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]
    return _envelope(400, "VALIDATION_ERROR", "Request validation failed", details)


def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # The traceback goes to the log only
    logger.exception("unhandled_exception", exc_info=exc, path=request.url.path)
    return _envelope(500, "INTERNAL_ERROR", "An unexpected error occurred")


def create_app(document_store: DocumentStore | None = None) -> FastAPI:
    """Build the application.

    Args:
        document_store: Backing store for CVs, postings and applications.
            Defaults to an empty in-memory store.
    """
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(
        title="Career Agent API",
        version="0.1.0",
        description="Conversational career assistant",
    )
    app.state.document_store = (
        document_store if document_store is not None else InMemoryDocumentStore()
    )

    app.add_middleware(SecurityHeadersMiddleware)
    # Added last so it runs first and answers preflights
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "X-User-ID", "X-Request-ID"],
    )

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, internal_error_handler)

    app.include_router(v1_router, prefix="/api/v1")

    @app.get("/health")
    def health_check() -> dict:
        return {"status": "healthy"}

    return app


app = create_app()
