"""
Pytest fixtures for the pharmacy storefront backend.

Every app-level test runs twice: once on the in-memory store and once on
the SQL backend (in-memory SQLite).
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from pharmacy import create_app
from pharmacy.domain import Role
from pharmacy.extensions import db
from pharmacy.repositories import MemoryRepositories
from pharmacy.services import build_services, get_services

PASSWORD = "secret123"

TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "BCRYPT_ROUNDS": 4,
    "JWT_SECRET": "test-access-secret",
    "JWT_REFRESH_SECRET": "test-refresh-secret",
    "JWT_EXPIRES_IN": "15m",
    "JWT_REFRESH_EXPIRES_IN": "7d",
    "SEED_DEMO_DATA": False,
    "CORS_ORIGINS": ["http://localhost:5173"],
    "ORDER_TRANSITION_POLICY": "open",
}


@pytest.fixture(params=["memory", "sql"])
def app(request):
    """Create application for testing, once per repository backend."""
    app = create_app({**TEST_CONFIG, "REPOSITORY_BACKEND": request.param})

    with app.app_context():
        if request.param == "sql":
            db.create_all()
        yield app
        db.session.remove()
        if request.param == "sql":
            db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return get_services()


@pytest.fixture
def memory_services():
    """Services over a bare memory store, no Flask app involved."""
    config = {
        **TEST_CONFIG,
        "JWT_EXPIRES_IN": timedelta(minutes=15),
        "JWT_REFRESH_EXPIRES_IN": timedelta(days=7),
    }
    return build_services(config, MemoryRepositories())


def create_user(services, email="user@example.com", *, role=Role.USER, full_name="Test User", password=PASSWORD):
    return services.auth.register(
        email=email,
        password=password,
        full_name=full_name,
        role=role,
    ).unwrap()


def create_category(services, name="Pain Relief", description=None):
    return services.catalog.create_category({"name": name, "description": description}).unwrap()


def create_product(services, name="Aspirin 100mg", *, price="10.00", stock=5, discount=None, **extra):
    fields = {
        "name": name,
        "price": Decimal(price),
        "stock_quantity": stock,
        "discount": Decimal(discount) if discount is not None else None,
        **extra,
    }
    return services.catalog.create_product(fields).unwrap()


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer(services):
    return create_user(services, "customer@example.com", full_name="Jane Customer")


@pytest.fixture
def admin_user(services):
    return create_user(services, "admin@example.com", role=Role.ADMIN, full_name="Admin User")


@pytest.fixture
def user_headers(services, customer):
    return auth_headers(services.tokens.issue(customer).access_token)


@pytest.fixture
def admin_headers(services, admin_user):
    return auth_headers(services.tokens.issue(admin_user).access_token)
