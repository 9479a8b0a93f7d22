import sys
import uuid
from contextlib import asynccontextmanager
from functools import partial
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import ServiceName, ServiceSettings, load_settings
from database import connect_remote
from errors import ServiceError, ValidationError, describe_errors
from logger import log_error, log_info, set_level
from routes import orders, products
from schemas import ORDER, PRODUCT
from service import EntityService, OrderService, now_iso
from supervisor import ReconnectionSupervisor


def build_service(name: ServiceName) -> EntityService:
    if name == "order":
        return OrderService(ORDER)
    return EntityService(PRODUCT)


def create_app(
    name: ServiceName,
    settings: Optional[ServiceSettings] = None,
    service: Optional[EntityService] = None,
    supervise: bool = True,
) -> FastAPI:
    """Build the FastAPI app for the product or order service.

    ``supervise=False`` skips the background MongoDB connection; the service
    then keeps whatever store its ``Storage`` already holds.
    """
    settings = settings or load_settings(name)
    service = service or build_service(name)
    label = f"{service.kind.label} Service"
    set_level(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        supervisor = None
        if supervise:
            supervisor = ReconnectionSupervisor(
                service,
                partial(connect_remote, settings, service.kind.collection),
                retry_interval=settings.retry_interval_seconds,
                probe_interval=settings.liveness_probe_seconds,
            )
            supervisor.start()
        app.state.supervisor = supervisor
        log_info(f"{label} running on port {settings.port}")
        yield
        log_info(f"Shutting down {label}...")
        if supervisor is not None:
            supervisor.stop(timeout=settings.retry_interval_seconds)

    app = FastAPI(title=label, version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id = request.headers.get("Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        log_info(f"Received request: {request.method} {request.url.path}", request_id=request_id)
        response = await call_next(request)
        response.headers["Request-ID"] = request_id
        log_info(
            f"Completed request: {request.method} {request.url.path} with status {response.status_code}",
            request_id=request_id,
        )
        return response

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        error = ValidationError(describe_errors(exc.errors()))
        return JSONResponse(status_code=error.status_code, content={"error": error.message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        log_error(
            f"Unhandled error: {exc!r}",
            request_id=getattr(request.state, "request_id", "N/A"),
        )
        return JSONResponse(status_code=500, content={"error": "Internal Server Error"})

    @app.get("/health")
    def health():
        return {"status": "OK", "service": label, "timestamp": now_iso()}

    app.include_router(orders if name == "order" else products)
    return app


product_app = create_app("product")
order_app = create_app("order")


if __name__ == "__main__":
    import uvicorn
    name = sys.argv[1] if len(sys.argv) > 1 else "product"
    if name not in ("product", "order"):
        sys.exit("usage: python main.py [product|order]")
    app = order_app if name == "order" else product_app
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
