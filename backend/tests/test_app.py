"""
Tienda Services: Application Scaffold Tests
=============================================

What:  Behaviour every service shares: startup, /health, API docs, request
       IDs and the error envelope.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import inspect

from tienda.config import INSECURE_JWT_SECRET, settings
from tienda.database import Store
from tienda.main import SERVICES, create_app
from tienda.services.file_service import FileService
from tienda.serve import build_parser


class TestLifespan:
    """Startup and shutdown, driven directly since ASGITransport skips them."""

    @staticmethod
    async def _table_names(store: Store):
        async with store.engine.connect() as conn:
            return await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())

    @pytest.mark.asyncio
    async def test_startup_creates_tables_and_upload_dir(self, tmp_path):
        store = Store(f"sqlite+aiosqlite:///{tmp_path / 'nueva.db'}")
        upload_dir = tmp_path / "nuevas" / "imagenes"
        app = create_app("productos", store=store, files=FileService(upload_dir=str(upload_dir)))

        with patch("tienda.main.setup_logging"):
            async with app.router.lifespan_context(app):
                assert upload_dir.is_dir()
                assert await self._table_names(store) == ["producto"]

    @pytest.mark.asyncio
    async def test_only_the_service_tables_are_created(self, tmp_path):
        store = Store(f"sqlite+aiosqlite:///{tmp_path / 'nueva.db'}")
        app = create_app("usuarios", store=store)

        with patch("tienda.main.setup_logging"):
            async with app.router.lifespan_context(app):
                assert await self._table_names(store) == ["usuario"]

    @pytest.mark.asyncio
    async def test_startup_warns_about_default_jwt_secret(self, tmp_path):
        store = Store(f"sqlite+aiosqlite:///{tmp_path / 'nueva.db'}")
        app = create_app("categorias", store=store)

        with patch("tienda.main.setup_logging"), patch("tienda.main.logger") as logger, \
                patch.object(settings, "jwt_secret", INSECURE_JWT_SECRET):
            async with app.router.lifespan_context(app):
                pass

        warnings = [c.args for c in logger.warning.call_args_list]
        assert any(args[0] == "Insecure configuration: %s" and "JWT_SECRET" in args[1] for args in warnings)

    @pytest.mark.asyncio
    async def test_no_warning_with_a_real_secret(self, tmp_path):
        store = Store(f"sqlite+aiosqlite:///{tmp_path / 'nueva.db'}")
        app = create_app("categorias", store=store)

        with patch("tienda.main.setup_logging"), patch("tienda.main.logger") as logger:
            async with app.router.lifespan_context(app):
                pass

        logger.warning.assert_not_called()


class TestHealth:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("service", sorted(SERVICES))
    async def test_health_reports_service_and_database(self, service_client, service):
        client = await service_client(service)

        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == service
        assert body["database"] == "connected"
        assert body["uptime_seconds"] >= 0

    @pytest.mark.asyncio
    async def test_unreachable_database_is_503(self):
        store = MagicMock()
        store.ping = AsyncMock(return_value=False)
        app = create_app("categorias", store=store)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
        assert response.json()["database"] == "disconnected"


class TestDocs:

    @pytest.mark.asyncio
    async def test_api_docs_page(self, categorias_client):
        response = await categorias_client.get("/api-docs")
        assert response.status_code == 200
        assert "swagger" in response.text.lower()

    @pytest.mark.asyncio
    async def test_openapi_documents_form_bodies(self, productos_client):
        schema = (await productos_client.get("/openapi.json")).json()

        content = schema["paths"]["/productos"]["post"]["requestBody"]["content"]
        assert "multipart/form-data" in content
        assert "imagen" in content["multipart/form-data"]["schema"]["properties"]

    @pytest.mark.asyncio
    async def test_each_service_only_mounts_its_routes(self, service_client):
        detalle = await service_client("detalle")

        paths = (await detalle.get("/openapi.json")).json()["paths"]

        assert set(paths) == {"/detalle", "/detalle/{numero_compra}", "/health"}


class TestRequestIds:

    @pytest.mark.asyncio
    async def test_generated_when_absent(self, categorias_client):
        response = await categorias_client.get("/categorias")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_client_id_is_echoed(self, categorias_client):
        response = await categorias_client.get("/categorias", headers={"X-Request-ID": "front-42.a"})
        assert response.headers["X-Request-ID"] == "front-42.a"

    @pytest.mark.asyncio
    async def test_unsafe_client_id_is_replaced(self, categorias_client):
        response = await categorias_client.get("/categorias", headers={"X-Request-ID": "bad id with spaces"})
        assert response.headers["X-Request-ID"] != "bad id with spaces"

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, categorias_client):
        response = await categorias_client.post(
            "/categorias",
            json={"nombre": ""},
            headers={"X-Request-ID": "trace-1"},
        )

        assert response.status_code == 400
        assert response.json() == {
            "error": "validation_error",
            "message": "Nombre de categoría requerido",
            "details": {"field": "nombre"},
            "request_id": "trace-1",
        }


class TestServeCommand:

    def test_parser_accepts_every_service(self):
        for service in SERVICES:
            args = build_parser().parse_args([service, "--port", "9000"])
            assert args.service == service
            assert args.port == 9000

    def test_parser_rejects_unknown_service(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["inventario"])
