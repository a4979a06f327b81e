from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import settings
from core.config_validator import validate_config_on_startup
from core.errors import MalformedResourceError
from core.logging_config import logger
from routers import api_router


def register_exception_handlers(app: FastAPI) -> None:
    """
    401/403/500 are logged with method and path. A malformed record
    surfaces as a 500 carrying its code, never as an allow or a deny.
    """

    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (401, 403, 500):
            logger.warning(
                f"HTTP {exc.status_code} at {request.method} {request.url.path}: {exc.detail}"
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(MalformedResourceError)
    async def handle_malformed(request: Request, exc: MalformedResourceError):
        logger.error(f"{exc.code} at {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "code": exc.code},
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.error("Unhandled error at %s", request.url, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def log_routes(app: FastAPI) -> None:
    for route in app.routes:
        methods = ",".join(sorted(getattr(route, "methods", None) or []))
        logger.info(f"Route {methods:10s} {route.path}")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description=(
            "Vendor governance portal API: documents, payments, statements "
            "and messaging between companies and their vendors"
        ),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def on_startup():
        logger.info(f"Starting {settings.PROJECT_NAME} ({settings.ENV})")
        if settings.ENV != "test":
            validate_config_on_startup()
        log_routes(app)

    register_exception_handlers(app)
    app.include_router(api_router)

    return app


app = create_app()
