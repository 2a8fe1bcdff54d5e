"""
Middleware for the quote browser API.
Provides CORS, request logging, error handling and the mapping from
domain exceptions to HTTP responses.
"""

import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware

from utils import api_logger
from utils.config_manager import ApiConfig
from utils.exceptions import (
    QuoteSystemError, ValidationError, NotFoundError, AlreadyExistsError,
    InvalidCredentialsError, AuthenticationError, ErrorCodes, create_error_response
)


# 异常类型 -> HTTP 状态码，按顺序匹配
ERROR_STATUS_CODES = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (AlreadyExistsError, 400),
    (InvalidCredentialsError, 401),
)


def status_code_for(error: QuoteSystemError) -> int:
    if isinstance(error, AuthenticationError):
        return 401 if error.error_code == ErrorCodes.AUTH_MISSING_TOKEN else 403
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 500


class LoggingMiddleware(BaseHTTPMiddleware):
    """日志中间件"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        api_logger.info(f"[API] {request.method} {request.url.path}")

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            api_logger.error(f"[API] {request.method} {request.url.path} - ERROR - {process_time:.3f}s - {e}")
            raise

        process_time = time.time() - start_time
        api_logger.info(f"[API] {request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s")
        response.headers["X-Process-Time"] = f"{process_time:.6f}"
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """兜底错误处理，未预期的异常统一返回 500"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            api_logger.error(f"[API] Unexpected error: {e}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"error": "Server error", "error_code": "INTERNAL_ERROR"}
            )


async def quote_system_error_handler(request: Request, exc: QuoteSystemError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        api_logger.error(f"[API] {request.method} {request.url.path} failed: {exc}")
    else:
        api_logger.info(f"[API] {request.method} {request.url.path} rejected: {exc.error_code}")
    return JSONResponse(status_code=status_code, content=create_error_response(exc))


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(part) for part in error.get("loc", ()) if part != "body") for error in exc.errors()]
    error = ValidationError(
        "Missing or invalid fields: " + ", ".join(field for field in fields if field),
        ErrorCodes.VALIDATION_ERROR
    )
    return JSONResponse(status_code=400, content=create_error_response(error))


def setup_cors(app: FastAPI, api_config: ApiConfig):
    """设置CORS"""
    cors_origins = api_config.cors_origins or ["*"]
    if cors_origins == ["*"]:
        api_logger.debug("[CORS] Allowing all origins")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def setup_exception_handlers(app: FastAPI):
    app.add_exception_handler(QuoteSystemError, quote_system_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)


def setup_middleware(app: FastAPI, api_config: ApiConfig):
    """设置所有中间件与异常处理"""
    setup_exception_handlers(app)
    setup_cors(app, api_config)

    # 后添加的先执行
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(LoggingMiddleware)

    api_logger.info("[API] Middleware setup completed")
