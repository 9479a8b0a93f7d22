"""
Service configuration.

Each service reads its settings from the environment. Defaults match the
local development setup: product service on 3001, order service on 3002,
both pointing at a MongoDB on localhost.
"""

import os
from typing import List, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, Field

ServiceName = Literal["product", "order"]

DEFAULT_PORTS = {"product": 3001, "order": 3002}
DEFAULT_DATABASES = {"product": "product_db", "order": "order_db"}


class ServiceSettings(BaseModel):
    service: ServiceName
    port: int = Field(..., ge=1, le=65535)
    mongodb_uri: str
    database_name: str = Field(..., min_length=1)
    retry_interval_seconds: float = Field(5.0, gt=0)
    server_selection_timeout_ms: int = Field(5000, ge=0)
    connect_timeout_ms: int = Field(10000, ge=0)
    max_pool_size: int = Field(10, ge=1)
    # 0 keeps the connection sticky once established
    liveness_probe_seconds: float = Field(0.0, ge=0)
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


def database_from_uri(uri: str, default: str) -> str:
    """Return the database named in the URI path, or ``default``."""
    path = urlparse(uri).path.lstrip("/")
    return path or default


def load_settings(service: ServiceName) -> ServiceSettings:
    uri = os.getenv(
        "MONGODB_URI", f"mongodb://localhost:27017/{DEFAULT_DATABASES[service]}"
    )
    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    return ServiceSettings(
        service=service,
        port=int(os.getenv("PORT", DEFAULT_PORTS[service])),
        mongodb_uri=uri,
        database_name=os.getenv(
            "DATABASE_NAME", database_from_uri(uri, DEFAULT_DATABASES[service])
        ),
        retry_interval_seconds=float(os.getenv("RETRY_INTERVAL_SECONDS", 5)),
        server_selection_timeout_ms=int(os.getenv("SERVER_SELECTION_TIMEOUT_MS", 5000)),
        connect_timeout_ms=int(os.getenv("CONNECT_TIMEOUT_MS", 10000)),
        max_pool_size=int(os.getenv("MAX_POOL_SIZE", 10)),
        liveness_probe_seconds=float(os.getenv("LIVENESS_PROBE_SECONDS", 0)),
        cors_origins=origins or ["*"],
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
