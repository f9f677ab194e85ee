"""
Gestionnaires d'exceptions.
- CommerceError non traitée par une vue -> JSON {"error": message} avec le status de l'erreur.
- HTTPException -> JSON FastAPI standard {"detail": ...}.
"""
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from storefront.payments.errors import CommerceError

logger = logging.getLogger(__name__)


def error_response(exc: CommerceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CommerceError)
    async def commerce_error(request: Request, exc: CommerceError):
        logger.warning("commerce error path=%s type=%s: %s", request.url.path, type(exc).__name__, exc.message)
        return error_response(exc)

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
