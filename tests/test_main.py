"""
Tests for the application-level endpoints and error envelope.
"""
from fastapi import FastAPI
from fastapi.testclient import TestClient

from clinic import __version__
from clinic.exceptions import SERVER_ERROR_MESSAGE, register_exception_handlers


def test_health_check(client):
    """
    Test the health check endpoint reports availability and version.
    """
    response = client.get("/v1/healthcheck")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "available"
    assert data["system_info"]["version"] == __version__
    assert "environment" in data["system_info"]


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/v1/nowhere")
    assert response.status_code == 404
    assert "error" in response.json()


def test_malformed_body_is_bad_request(client):
    """
    Test that a body that is not valid JSON is rejected with 400.
    """
    response = client.post(
        "/v1/tokens/authentication",
        content="{not json",
        headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "request body is badly formed"


def test_unhandled_error_is_generic_500():
    """
    Test that unexpected failures are reported without leaking details.
    """
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    def boom():
        raise RuntimeError("database password is hunter2")

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"error": SERVER_ERROR_MESSAGE}
    assert "hunter2" not in response.text


def test_request_id_header(client):
    response = client.get("/v1/healthcheck")
    assert "X-Request-ID" in response.headers
