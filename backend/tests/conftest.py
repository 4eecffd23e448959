"""
Pytest fixtures for the API test suite.

The app runs against a shared in-memory SQLite database. Tables are dropped
and recreated around every test, so tests never see each other's rows.
"""

import os
import tempfile

# Settings are read at import time, so the environment must be set first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="inventory-uploads-")
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id"
os.environ["SMTP_HOST"] = ""
os.environ["API_PREFIX"] = "/api"

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from main import app


@pytest.fixture
def client():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with TestClient(app) as c:
        yield c
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(client):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def register(client, email="owner@example.com", password="secret123", full_name="Store Owner"):
    response = client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "fullName": full_name},
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


def create_category(client, headers, name="Tools"):
    response = client.post("/api/categories", json={"name": name}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["id"]


def create_product(client, headers, category_id, sku="SKU-1", name="Hammer", **fields):
    data = {"name": name, "sku": sku, "categoryId": category_id, "price": "9.99"}
    data.update({k: str(v) for k, v in fields.items()})
    response = client.post("/api/products", data=data, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def add_movement(client, headers, product_id, type_, quantity, notes=None):
    body = {"productId": product_id, "type": type_, "quantity": quantity}
    if notes is not None:
        body["notes"] = notes
    return client.post("/api/stock/movements", json=body, headers=headers)


@pytest.fixture
def owner(client):
    return register(client)


@pytest.fixture
def other_owner(client):
    return register(client, email="other@example.com", full_name="Other Owner")


@pytest.fixture
def category_id(client, owner):
    return create_category(client, owner)
