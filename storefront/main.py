import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.config import Settings, settings as default_settings
from storefront.database import create_db_and_tables
from storefront.errors import StorefrontError
from storefront.routes import admin, auth, categories_admin, categories_public, health, orders, payment, products
from storefront.services.payment_gateway import PaymentGateway
from storefront.services.storage import SignedUrlGateway

logger = logging.getLogger(__name__)

HTTP_KINDS = {
    400: "validation_error",
    401: "auth_error",
    403: "authorization_error",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
}


def _error_response(status_code: int, kind: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": kind, "message": message})


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} -> {exc.status_code} {exc.kind}: {exc.message}")
        return _error_response(exc.status_code, exc.kind, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
        return _error_response(400, "validation_error", message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        kind = HTTP_KINDS.get(exc.status_code, "http_error")
        return _error_response(exc.status_code, kind, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error_response(500, "internal_error", "Internal server error")


def create_app(
    settings: Optional[Settings] = None,
    payment_gateway: Optional[PaymentGateway] = None,
    storage: Optional[SignedUrlGateway] = None,
) -> FastAPI:
    settings = settings or default_settings

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Run DB creation ONLY in local
        if settings.env == "local":
            create_db_and_tables()
        yield

    app = FastAPI(title="Design Store API", lifespan=lifespan)

    app.state.settings = settings
    app.state.payment_gateway = payment_gateway or PaymentGateway.from_settings(settings)
    app.state.storage = storage or SignedUrlGateway.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    app.include_router(products.router, prefix="/products", tags=["Products"])
    app.include_router(categories_public.router, prefix="/categories", tags=["Categories"])
    app.include_router(payment.router, prefix="/payment", tags=["Payment"])
    app.include_router(orders.router, prefix="/orders", tags=["Orders"])
    app.include_router(admin.router, prefix="/admin", tags=["Admin Endpoints"])
    app.include_router(categories_admin.router, prefix="/admin/categories", tags=["Admin Categories"])
    app.include_router(health.router, prefix="/health", tags=["Health"])

    return app


app = create_app()
