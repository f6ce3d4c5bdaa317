import os
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

os.environ.setdefault("DATABASE_URL", "sqlite://")

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import app.models  # noqa: F401
from app.auth import JwksProvider, get_clerk_client, get_jwks_provider
from app.db.session import get_session
from app.main import app
from app.models import Employee, Product, Role
from app.services.clerk_client import ClerkError

PRIVATE_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)
OTHER_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)


def make_token(sub: Optional[str] = "user_1", expires_in: int = 300, key=PRIVATE_KEY) -> str:
    claims = {"exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in)}
    if sub is not None:
        claims["sub"] = sub
    return jwt.encode(claims, key, algorithm="RS256")


def bearer(sub: str = "user_1") -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token(sub)}"}


class StaticJwksProvider(JwksProvider):
    def __init__(self) -> None:
        super().__init__("https://clerk.test/.well-known/jwks.json")

    def signing_key(self, token: str):
        return PRIVATE_KEY.public_key()


class FakeClerkClient:
    def __init__(self) -> None:
        self.emails: Dict[str, Optional[str]] = {}

    def get_user_email(self, user_id: str) -> Optional[str]:
        if user_id not in self.emails:
            raise ClerkError(f"Erreur Clerk get_user: 404 {user_id}")
        return self.emails[user_id]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def clerk():
    return FakeClerkClient()


@pytest.fixture
def client(engine, clerk):
    def _session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_jwks_provider] = StaticJwksProvider
    app.dependency_overrides[get_clerk_client] = lambda: clerk
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(session, clerk):
    clerk.emails["admin_1"] = "admin@shop.tn"
    session.add(Employee(full_name="Admin", email="admin@shop.tn", role=Role.ADMIN))
    session.commit()
    return bearer("admin_1")


@pytest.fixture
def make_product(session):
    def _make(**overrides) -> Product:
        data = {
            "title": "Tasse céramique",
            "price_piece": 100.0,
            "price_quantity": 80.0,
            "sale_type": "both",
        }
        data.update(overrides)
        product = Product(**data)
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make
