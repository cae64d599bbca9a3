"""
Uniform ``{success, message, data?}`` envelope and the exception handlers
that render every error path in it, unexpected exceptions included.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def api_response(
    success: bool,
    message: str,
    data: Any = None,
    status_code: int = status.HTTP_200_OK,
    headers: Optional[dict] = None
) -> JSONResponse:
    content = {"success": success, "message": message}
    if data is not None:
        content["data"] = jsonable_encoder(data)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _field_name(loc) -> str:
    # Drop the "body"/"query" prefix FastAPI puts in front of the field path.
    parts = [str(p) for p in loc if p not in ("body", "query", "header", "path")]
    return ".".join(parts) or "body"


def register_exception_handlers(app: FastAPI, debug: bool = False) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return api_response(False, str(exc.detail), status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": _field_name(err.get("loc", ())), "message": err.get("msg", "Invalid value")}
            for err in exc.errors()
        ]
        fields = ", ".join(dict.fromkeys(e["field"] for e in errors))
        return api_response(
            False,
            f"Invalid or missing fields: {fields}",
            {"errors": errors},
            status_code=status.HTTP_400_BAD_REQUEST
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        data = {"detail": str(exc)} if debug else None
        return api_response(False, "Database error", data, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        data = {"detail": str(exc)} if debug else None
        return api_response(False, "Internal server error", data, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
