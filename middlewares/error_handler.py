import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from services.exceptions import ServiceError

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "حدث خطأ غير متوقع، يرجى المحاولة لاحقاً"
VALIDATION_MESSAGE = "البيانات المدخلة غير صحيحة"


def _now_iso():
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _error(status_code: int, code: str, message: str, **extra) -> JSONResponse:
    error = {"code": code, "message": message, **extra}
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "generated_at": _now_iso()},
    )


def add_error_handlers(app: FastAPI):
    # ✅ domain errors raised by services / dependencies
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        extra = {}
        redirect = getattr(exc, "redirect", None)
        if redirect:
            extra["redirect"] = redirect
        if exc.status_code >= 500:
            logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
        return _error(exc.status_code, exc.code, exc.message or exc.code, **extra)

    # ✅ HTTPException (routers, unknown routes)
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return _error(exc.status_code, f"HTTP_{exc.status_code}", str(exc.detail))

    # ✅ request body / query validation
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in e.get("loc", ())[1:]) for e in exc.errors()]
        return _error(400, "VALIDATION_FAILED", VALIDATION_MESSAGE, fields=fields)

    # ✅ anything else: static message, full traceback in the log
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "INTERNAL_ERROR", GENERIC_MESSAGE)
