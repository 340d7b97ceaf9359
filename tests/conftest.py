"""Pytest fixtures for the pharmacy storefront tests."""

import os

# Settings are read at import time.
os.environ.setdefault("POSTGRES_DSN", "sqlite://")
os.environ["RATE_LIMIT_PER_MINUTE"] = "0"
os.environ["EVENTS_ENABLED"] = "false"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pharmacy.api.deps import get_db
from pharmacy.db.models import Category, Product, User, UserRole
from pharmacy.db.session import Base
from pharmacy.main import app
from pharmacy.security.utils import create_access_token, hash_password

# bcrypt is slow on purpose; hash once for every test user.
PASSWORD = "secret-pass-1"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session in a test."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    """TestClient whose requests run against the test session."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role=UserRole.CUSTOMER, email=None, name="Test User"):
        counter["n"] += 1
        user = User(
            name=name,
            email=email or f"user{counter['n']}@example.com",
            password_hash=PASSWORD_HASH,
            role=role,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def customer(make_user):
    return make_user(UserRole.CUSTOMER, email="customer@example.com", name="Customer")


@pytest.fixture
def other_customer(make_user):
    return make_user(UserRole.CUSTOMER, email="other@example.com", name="Other")


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN, email="admin@example.com", name="Admin")


@pytest.fixture
def pharmacist(make_user):
    return make_user(UserRole.PHARMACIST, email="pharmacist@example.com", name="Pharmacist")


@pytest.fixture
def category(db):
    cat = Category(name="Pain Relief", description="Analgesics")
    db.add(cat)
    db.commit()
    return cat


@pytest.fixture
def make_product(db):
    def _make(name="Paracetamol", price="25.00", stock=10, category_id=None, description=""):
        product = Product(
            name=name,
            slug=name.lower().replace(" ", "-"),
            description=description,
            price=Decimal(price),
            stock=stock,
            category_id=category_id,
        )
        db.add(product)
        db.commit()
        return product

    return _make


def auth_headers(user):
    token, _ = create_access_token(user.email, user.role.value, user.id)
    return {"Authorization": f"Bearer {token}"}


def stock_of(db, product_id):
    """Current stock straight from the database, bypassing the identity map."""
    return db.scalar(select(Product.stock).where(Product.id == product_id))


SHIPPING = {
    "shipping_address": "12 Baker Street",
    "phone_number": "0123456789",
    "payment_method": "cash_on_delivery",
}
