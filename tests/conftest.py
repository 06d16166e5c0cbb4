from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from bazaar.core.security import hash_password
from bazaar.db.init_db import init_db
from bazaar.db.models.market_model import ChatMessage, Product
from bazaar.db.models.user_model import User
from bazaar.db.session import build_engine, get_db
from bazaar.main import app

PASSWORD = "Secret123"
# bcrypt is slow on purpose; hash the shared fixture password once
PASSWORD_HASH = hash_password(PASSWORD)

T = datetime(2026, 3, 1, 12, 0, 0)


@pytest.fixture
def db():
    engine = build_engine("sqlite://")
    init_db(engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def make_user(db):
    def _make(username, balance=5_000_000, is_admin=False, can_login=True, ban_expiry=None, bio=None):
        user = User(
            username=username,
            password_hash=PASSWORD_HASH,
            bio=bio,
            is_admin=is_admin,
            can_login=can_login,
            ban_expiry=ban_expiry,
            balance=balance,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_product(db):
    def _make(author, price=100_000, title="Film camera", **fields):
        product = Product(
            title=title,
            description=fields.pop("description", "Works fine"),
            image_url=fields.pop("image_url", "https://img.example.com/item.jpg"),
            author=author,
            price=price,
            created_at=fields.pop("created_at", T),
            is_deleted=fields.pop("is_deleted", False),
            **fields,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make


@pytest.fixture
def make_message(db):
    def _make(author, content="hello", recipient=None, created_at=T):
        message = ChatMessage(
            content=content,
            author=author,
            recipient=recipient,
            is_private=recipient is not None,
            created_at=created_at,
        )
        db.add(message)
        db.commit()
        db.refresh(message)
        return message
    return _make


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    # no context manager: the lifespan (fixtures, sweep task) stays off
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    def _login(username, password=PASSWORD):
        response = client.post("/api/v1/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}
    return _login
