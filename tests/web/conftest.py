"""Fixtures for Web API tests."""

import pytest
from fastapi.testclient import TestClient

from gamify.web.api import create_app


@pytest.fixture
def client(db):
    """Test client bound to the isolated database."""
    app = create_app(db_path=db)
    return TestClient(app)


@pytest.fixture
def student_id(client):
    response = client.post("/api/students", json={"name": "Ana", "surname": "Rao"})
    return response.json()["student_id"]
