import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RUN_MIGRATIONS", "false")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.domain.models import (
    Address, Base, CartItem, Customer, Order, OrderItem, Product, Review, WishlistItem,
)
from storefront.infrastructure.db import get_db
from storefront.infrastructure.security import hash_password
from storefront.main import app

PASSWORD = "secret123"
T0 = datetime(2024, 1, 1, 12, 0, 0)

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# pysqlite needs explicit BEGIN for SAVEPOINT support
@event.listens_for(engine, "connect")
def _disable_driver_transactions(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None

@event.listens_for(engine, "begin")
def _emit_begin(conn):
    conn.exec_driver_sql("BEGIN")

TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

def seed(db):
    password = hash_password(PASSWORD)
    home = Address(id=1, address_line1="1 High Street", address_line2="Flat 2", city="London", county="Greater London", postcode="E1 6AN")
    db.add(home)
    db.add_all([
        Customer(id=1, name="Alice Smith", username="alice", email="alice@example.com", password=password,
                 billing_address_id=1, shipping_address_id=1, join_date=T0),
        Customer(id=2, name="Bob Jones", username="bob", email="bob@example.com", password=password, join_date=T0),
        Customer(id=3, name="Carol White", username="carol", email="carol@example.com", password=password, join_date=T0),
    ])
    db.add_all([
        Product(id=1, name="Wireless Mouse", description="Two-button mouse", price=Decimal("19.99"), stock=10,
                category_name="Electronics", supplier_name="Acme Supplies"),
        Product(id=2, name="Mechanical Keyboard", description="Tenkeyless keyboard", price=Decimal("49.50"), stock=0,
                category_name="Electronics", supplier_name="KeyCo"),
        Product(id=3, name="Desk Lamp", description="LED lamp", price=Decimal("30.00"), stock=5,
                category_name="Home", supplier_name="Acme Supplies"),
        Product(id=4, name="Notebook", description="A5 ruled notebook", price=Decimal("3.25"), stock=100,
                category_name="Stationery", supplier_name="PaperWorks"),
        Product(id=5, name="Office Chair", description="Ergonomic chair", price=Decimal("120.00"), stock=2,
                category_name="Home", supplier_name="Comfort Ltd"),
    ])
    db.flush()
    db.add_all([
        Order(id=1, customer_id=1, billing_address_id=1, shipping_address_id=1, status="completed",
              payment_method="card", total=Decimal("69.97"), created_at=T0),
        Order(id=2, customer_id=2, status="completed", payment_method="card",
              total=Decimal("36.24"), created_at=T0 + timedelta(days=1)),
        Order(id=3, customer_id=1, billing_address_id=1, shipping_address_id=1, status="completed",
              payment_method="paypal", total=Decimal("3.25"), created_at=T0 + timedelta(days=2)),
    ])
    db.flush()
    db.add_all([
        OrderItem(order_id=1, product_id=1, quantity=2),
        OrderItem(order_id=1, product_id=3, quantity=1),
        OrderItem(order_id=2, product_id=1, quantity=1),
        OrderItem(order_id=2, product_id=4, quantity=5),
        OrderItem(order_id=3, product_id=4, quantity=1),
    ])
    db.add_all([
        Review(id=1, customer_id=1, product_id=1, order_id=1, title="Solid", body="Does the job.", rating=4,
               recommend=True, created_at=T0 + timedelta(days=3)),
        Review(id=2, customer_id=2, product_id=1, order_id=2, title="Great", body="Love it.", rating=5,
               recommend=False, created_at=T0 + timedelta(days=4)),
        Review(id=3, customer_id=2, product_id=4, order_id=2, title="Okay", body="Thin paper.", rating=3,
               recommend=True, created_at=T0 + timedelta(days=5)),
        Review(id=4, customer_id=1, product_id=4, order_id=3, title="Nice", body="Good value.", rating=4,
               recommend=True, created_at=T0 + timedelta(days=6)),
        Review(id=5, customer_id=3, product_id=4, title="Handy", body="Fits my bag.", rating=4,
               recommend=False, created_at=T0 + timedelta(days=7)),
    ])
    db.add_all([
        CartItem(customer_id=1, product_id=4, quantity=3),
        WishlistItem(customer_id=1, product_id=5),
    ])
    db.commit()

@pytest.fixture(autouse=True)
def database():
    """Fresh schema and seed data for every test."""
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    db = TestingSessionLocal()
    try:
        seed(db)
    finally:
        db.close()
    yield engine

@pytest.fixture
def db():
    """A session for direct service and query tests.

    Close it (or let the fixture do so) before issuing HTTP requests: every
    session shares the single in-memory connection.
    """
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def client():
    return TestClient(app)

def login(username: str, password: str = PASSWORD) -> TestClient:
    client = TestClient(app)
    response = client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return client

@pytest.fixture
def alice():
    return login("alice")

@pytest.fixture
def bob():
    return login("bob")

@pytest.fixture
def login_as():
    return login
