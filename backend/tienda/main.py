"""
Tienda Services: FastAPI Application Scaffold
===============================================

What:  Builds any of the five services from one factory, create_app(service).
How:   SERVICES maps each service key to a ServiceDefinition: its routers, the
       tables it owns, its port setting and whether it serves uploaded files.
       Everything else (middleware, error handlers, docs, /health, lifespan)
       is identical for every service.
Who:   uvicorn, through the per-service factories at the bottom of this
       module or the `tienda-serve` console script (tienda.serve).

    uvicorn --factory tienda.main:productos_app --port 4003

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │              FastAPI App (one per service)          │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌──────────┐ ┌────────┐  │
    │  │  Req ID  │→│  Access  │→│   GZip   │→│  CORS  │  │
    │  └──────────┘ └──────────┘ └──────────┘ └────────┘  │
    │                                                     │
    │  Routes: service routers + GET /health              │
    │  Docs:   /api-docs, /redoc, /openapi.json           │
    │  Static: /uploads (productos only)                  │
    │                                                     │
    │  Exception Handlers:                                │
    │  Validation→400 │ Auth→401 │ Token→403 │ 404 │ 409  │
    │  Database / FileStorage / unexpected → 500          │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Log insecure configuration defaults
    3. Store.initialize() for the service's tables
    4. Create the upload directory (productos)

    Shutdown:
    1. Store.dispose() (close pooled connections)
"""

import logging
import sys
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator, Dict, Optional, Tuple

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import Table

from tienda import __version__
from tienda.config import settings
from tienda.database import Store
from tienda.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    FileStorageError,
    InvalidValueError,
    NotFoundError,
    TiendaError,
    TokenMissingError,
    ValidationError,
)
from tienda.middleware.logging import RequestLoggingMiddleware
from tienda.middleware.request_id import RequestIDMiddleware, request_id_var
from tienda.models import Boleta, Categoria, Producto, Usuario
from tienda.routes import boletas, categorias, detalle, health, productos, usuarios
from tienda.services.file_service import PUBLIC_PREFIX, FileService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure process-wide logging once per service process.

    Format: 2024-06-10T12:00:00 [INFO] tienda.access: GET /productos 200 ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # uvicorn's own access log duplicates tienda.access
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Service Registry
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ServiceDefinition:
    """Everything that differs between the five services."""

    key: str
    title: str
    description: str
    routers: Tuple[APIRouter, ...]
    tables: Tuple[Table, ...]
    port_setting: str
    serves_uploads: bool = False

    @property
    def port(self) -> int:
        return getattr(settings, self.port_setting)


SERVICES: Dict[str, ServiceDefinition] = {
    "usuarios": ServiceDefinition(
        key="usuarios",
        title="Tienda: Usuarios",
        description="Registro, login con token bearer y consulta de usuarios.",
        routers=(usuarios.router,),
        tables=(Usuario.__table__,),
        port_setting="port_usuarios",
    ),
    "productos": ServiceDefinition(
        key="productos",
        title="Tienda: Productos",
        description="CRUD de productos, filtro por categoría y subida de imágenes.",
        routers=(productos.router,),
        tables=(Producto.__table__,),
        port_setting="port_productos",
        serves_uploads=True,
    ),
    "categorias": ServiceDefinition(
        key="categorias",
        title="Tienda: Categorías",
        description="CRUD de categorías y carga de categorías por defecto.",
        routers=(categorias.router,),
        tables=(Categoria.__table__,),
        port_setting="port_categorias",
    ),
    "boletas": ServiceDefinition(
        key="boletas",
        title="Tienda: Boletas",
        description="Creación y consulta de boletas por número de compra o usuario.",
        routers=(boletas.router,),
        tables=(Boleta.__table__,),
        port_setting="port_boletas",
    ),
    "detalle": ServiceDefinition(
        key="detalle",
        title="Tienda: Detalle de Boleta",
        description="Consulta de solo lectura de boletas.",
        routers=(detalle.router,),
        tables=(Boleta.__table__,),
        port_setting="port_detalle_boleta",
    ),
}


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    definition: ServiceDefinition = app.state.definition
    logger.info("%s starting up (v%s)", definition.title, __version__)

    for finding in settings.insecure_defaults():
        logger.warning("Insecure configuration: %s", finding)

    store: Store = app.state.store
    await store.initialize(definition.tables)

    if definition.serves_uploads:
        app.state.files.ensure_directory()

    logger.info(
        "%s ready on port %d; docs at /api-docs",
        definition.key,
        definition.port,
    )

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("%s shutting down...", definition.key)
    await store.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error(status: int, code: str, exc: TiendaError, details: Optional[dict] = None) -> JSONResponse:
    content = {
        "error": code,
        "message": exc.message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy onto HTTP responses.

        ValidationError / RequestValidationError → 400
        InvalidValueError                        → 400 (details.code)
        AuthenticationError                      → 401
        TokenMissingError                        → 403
        NotFoundError                            → 404
        ConflictError                            → 409
        FileStorageError / DatabaseError         → 500 (generic message)
        anything else                            → 500

    Internal details (driver errors, paths, stack traces) go to the log only.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error(400, "validation_error", exc, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [
            {
                "loc": [str(part) for part in err.get("loc", ())],
                "msg": str(err.get("msg", "")),
                "type": str(err.get("type", "")),
            }
            for err in exc.errors()
        ]
        first = errors[0] if errors else {"loc": [], "msg": "Datos inválidos"}
        where = ".".join(part for part in first["loc"] if part != "body")
        message = f"{where}: {first['msg']}" if where else first["msg"]
        logger.warning("[%s] Request validation error: %s", request_id_var.get(""), message)
        return _error(400, "validation_error", ValidationError(message=message), {"errors": errors})

    @app.exception_handler(InvalidValueError)
    async def handle_invalid_value(request: Request, exc: InvalidValueError):
        logger.warning("[%s] Invalid value: %s", request_id_var.get(""), exc.context)
        return _error(400, "invalid_value", exc, {"code": exc.code})

    @app.exception_handler(AuthenticationError)
    async def handle_authentication(request: Request, exc: AuthenticationError):
        return _error(401, "authentication_error", exc)

    @app.exception_handler(TokenMissingError)
    async def handle_token_missing(request: Request, exc: TokenMissingError):
        return _error(403, "token_required", exc)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error(404, "not_found", exc)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.info("[%s] Conflict: %s", request_id_var.get(""), exc.message)
        return _error(409, "conflict", exc)

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error("[%s] File storage error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error(500, "server_error", exc)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
            exc_info=exc.__cause__ is not None,
        )
        return _error(500, "server_error", exc)

    @app.exception_handler(TiendaError)
    async def handle_tienda_error(request: Request, exc: TiendaError):
        logger.error("[%s] Unhandled application error: %s", request_id_var.get(""), exc.message)
        return _error(500, "server_error", exc)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "Ocurrió un error inesperado. Intente nuevamente.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    service: str,
    store: Optional[Store] = None,
    files: Optional[FileService] = None,
) -> FastAPI:
    """
    Assemble one service.

    Args:
        service: Key in SERVICES ("usuarios", "productos", ...).
        store:   Database component; a Store on DATABASE_URL when omitted.
        files:   Upload storage for services that serve uploads; a
                 FileService on UPLOAD_DIR when omitted.

    Raises:
        KeyError for an unknown service key.
    """
    definition = SERVICES[service]

    app = FastAPI(
        title=definition.title,
        description=definition.description,
        version=__version__,
        docs_url="/api-docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.definition = definition
    app.state.service_key = definition.key
    app.state.started_at = time.time()
    app.state.store = store or Store()

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials="*" not in settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    for router in definition.routers:
        app.include_router(router)
    app.include_router(health.router)

    if definition.serves_uploads:
        app.state.files = files or FileService()
        # the directory is created in the lifespan
        app.mount(
            PUBLIC_PREFIX,
            StaticFiles(directory=str(app.state.files.upload_dir), check_dir=False),
            name="uploads",
        )

    return app


# ── Per-service factories (uvicorn --factory tienda.main:<name>) ─────────

def usuarios_app() -> FastAPI:
    return create_app("usuarios")


def productos_app() -> FastAPI:
    return create_app("productos")


def categorias_app() -> FastAPI:
    return create_app("categorias")


def boletas_app() -> FastAPI:
    return create_app("boletas")


def detalle_app() -> FastAPI:
    return create_app("detalle")
