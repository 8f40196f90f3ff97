"""
Tests for the application middleware stack and error rendering.
"""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from carquote.core.errors import NotFoundError
from carquote.main import carquote_error_handler
from carquote.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware
from carquote.middleware.security_headers import API_CSP_POLICY, SecurityHeadersMiddleware


class TestRequestID:
    async def test_generated_when_absent(self, client):
        response = await client.get("/health")

        assert len(response.headers[REQUEST_ID_HEADER]) == 36

    async def test_client_id_is_echoed(self, client):
        response = await client.get("/health", headers={REQUEST_ID_HEADER: "trace-42"})

        assert response.headers[REQUEST_ID_HEADER] == "trace-42"

    def test_overlong_client_id_is_replaced(self):
        app = FastAPI()
        app.add_middleware(RequestIDMiddleware)

        @app.get("/ping")
        async def ping():
            return {}

        response = TestClient(app).get("/ping", headers={REQUEST_ID_HEADER: "x" * 500})

        assert response.headers[REQUEST_ID_HEADER] != "x" * 500


class TestSecurityHeaders:
    async def test_headers_on_every_response(self, client):
        response = await client.get("/api/auth/me")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Content-Security-Policy"] == API_CSP_POLICY
        assert "Strict-Transport-Security" not in response.headers

    def test_hsts_when_enabled(self):
        app = FastAPI()
        app.add_middleware(SecurityHeadersMiddleware, hsts=True)

        @app.get("/ping")
        async def ping():
            return {}

        response = TestClient(app).get("/ping")

        assert response.headers["Strict-Transport-Security"].startswith("max-age=")


class TestErrorRendering:
    def test_service_errors_render_as_error_field(self):
        app = FastAPI()
        app.add_exception_handler(NotFoundError, carquote_error_handler)

        @app.get("/missing")
        async def missing():
            raise NotFoundError("Quote not found")

        response = TestClient(app).get("/missing")

        assert response.status_code == 404
        assert response.json() == {"error": "Quote not found"}
        assert "WWW-Authenticate" not in response.headers

    async def test_root_endpoint(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"
