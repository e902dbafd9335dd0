import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api import (
    admin_router,
    catalog_router,
    orders_router,
    password_reset_router,
    payments_router,
    providers_router,
    two_factor_router,
)
from config import settings
from services.status_worker import order_status_worker

logger = logging.getLogger("smm-panel")

app = FastAPI(title="SMM Panel API")


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
    )


# Registered before CORSMiddleware so the CORS layer wraps the 500 envelope.
@app.middleware("http")
async def unexpected_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as exc:
        logger.exception("%s %s crashed: %s", request.method, request.url.path, exc)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Unknown error")


if settings.allowed_origins == ["*"]:
    allow_origins = ["*"]
else:
    allow_origins = settings.allowed_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(orders_router)
app.include_router(providers_router)
app.include_router(catalog_router)
app.include_router(two_factor_router)
app.include_router(password_reset_router)
app.include_router(payments_router)
app.include_router(admin_router)


@app.exception_handler(StarletteHTTPException)
async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.warning("%s %s invalid body: %s", request.method, request.url.path, message)
    return _error_response(status.HTTP_400_BAD_REQUEST, message)


@app.on_event("startup")
async def _on_startup() -> None:
    await order_status_worker.start()
    if allow_origins == ["*"]:
        logger.warning(
            "CORS is set to allow all origins with credentials; set ALLOWED_ORIGINS to explicit values in production."
        )


@app.on_event("shutdown")
async def _on_shutdown() -> None:
    await order_status_worker.stop()


@app.middleware("http")
async def log_preflight(request, call_next):
    if request.method == "OPTIONS":
        origin = request.headers.get("origin", "")
        logger.info("CORS preflight %s %s origin=%s", request.method, request.url.path, origin)
    response = await call_next(request)
    return response
