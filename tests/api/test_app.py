import httpx
import pytest

from pushboard.api import app as app_module
from pushboard.api import deps
from pushboard.api.app import FastAPI, create_app
from pushboard.api.routers import analytics, notifications, subscriptions, webhook
from pushboard.config import DashboardConfig

pytestmark = pytest.mark.unit


class TestHealthEndpoint:
    async def test_health_returns_ok(self):
        app = create_app()
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        ) as client:
            response = await client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestCORSMiddleware:
    async def test_cors_allows_configured_origin(self):
        app = create_app(cors_origins=["https://dashboard.example.com"])
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        ) as client:
            response = await client.options(
                "/api/notifications",
                headers={
                    "origin": "https://dashboard.example.com",
                    "access-control-request-method": "GET",
                },
            )
        assert response.status_code == 200
        assert (
            response.headers.get("access-control-allow-origin") == "https://dashboard.example.com"
        )

    async def test_cors_default_origins(self):
        app = create_app()
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        ) as client:
            response = await client.options(
                "/api/health",
                headers={
                    "origin": "http://localhost:5173",
                    "access-control-request-method": "GET",
                },
            )
        assert response.headers.get("access-control-allow-origin") == "http://localhost:5173"

    async def test_cors_origins_from_config(self):
        app = create_app(config=DashboardConfig(cors_origins=["https://crm.example.com"]))
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        ) as client:
            response = await client.options(
                "/api/health",
                headers={
                    "origin": "https://crm.example.com",
                    "access-control-request-method": "GET",
                },
            )
        assert response.headers.get("access-control-allow-origin") == "https://crm.example.com"


class TestAppFactory:
    def test_create_app_returns_fastapi_instance(self):
        app = create_app()
        assert isinstance(app, FastAPI)

    def test_redirect_slashes_disabled(self):
        app = create_app()
        assert app.router.redirect_slashes is False

    def test_config_is_installed(self):
        config = DashboardConfig(default_range_days=30)
        create_app(config=config)
        assert deps.get_config() is config


class TestStaticMount:
    async def test_serves_frontend_index(self, tmp_path):
        (tmp_path / "index.html").write_text("<html>pushboard</html>")
        app = create_app(static_dir=tmp_path)
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        ) as client:
            page = await client.get("/")
            health = await client.get("/api/health")
        assert page.status_code == 200
        assert "pushboard" in page.text
        assert health.json() == {"status": "ok"}

    def test_missing_dir_is_skipped(self, tmp_path):
        app = create_app(static_dir=tmp_path / "dist")
        assert not any(getattr(route, "name", None) == "frontend" for route in app.routes)


class TestLifespan:
    async def test_lifespan_wires_store_and_shuts_down(self, monkeypatch):
        calls = {"init_store": 0, "shutdown_store": 0}

        async def fake_init_store():
            calls["init_store"] += 1

        async def fake_shutdown_store():
            calls["shutdown_store"] += 1

        monkeypatch.setattr(app_module, "init_store", fake_init_store)
        monkeypatch.setattr(app_module, "shutdown_store", fake_shutdown_store)

        app = create_app()

        async with app.router.lifespan_context(app):
            for module in (analytics, notifications, subscriptions, webhook):
                assert app.dependency_overrides[module._get_store] is deps.get_store

        assert calls == {"init_store": 1, "shutdown_store": 1}

    async def test_unreachable_database_leaves_endpoints_unavailable(self, monkeypatch):
        async def failing_init_store():
            raise ConnectionRefusedError("connection refused")

        async def fake_shutdown_store():
            return None

        monkeypatch.setattr(app_module, "init_store", failing_init_store)
        monkeypatch.setattr(app_module, "shutdown_store", fake_shutdown_store)

        app = create_app()

        async with app.router.lifespan_context(app):
            async with httpx.AsyncClient(
                transport=httpx.ASGITransport(app=app), base_url="http://test"
            ) as client:
                response = await client.get("/api/notifications")

        assert response.status_code == 503
        assert app.dependency_overrides == {}
