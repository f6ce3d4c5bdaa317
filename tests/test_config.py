import base64
import logging

import pytest
from sqlalchemy.exc import IntegrityError

import app.db.session as db_session
from app.config import Settings, check_production_config, jwks_url_from_publishable_key, production_config_errors
from app.db.session import mask_db_url, normalize_database_url
from app.logging_setup import RedactSecretsFilter, redact


def publishable_key(host: str, prefix: str = "pk_test_") -> str:
    return prefix + base64.b64encode(f"{host}$".encode()).decode().rstrip("=")


def test_jwks_url_from_publishable_key():
    key = publishable_key("clerk.boutique.tn")
    assert jwks_url_from_publishable_key(key) == "https://clerk.boutique.tn/.well-known/jwks.json"


def test_jwks_url_fallback():
    assert jwks_url_from_publishable_key("", "https://x/jwks") == "https://x/jwks"
    assert jwks_url_from_publishable_key("not a key") == ""


def test_production_guard():
    ok = Settings(
        environment="production",
        frontend_url="https://boutique.tn",
        clerk_publishable_key=publishable_key("clerk.boutique.tn", "pk_live_"),
        clerk_secret_key="sk_live_abc",
    )
    assert production_config_errors(ok) == []
    check_production_config(ok)

    bad = Settings(
        environment="production",
        frontend_url="http://boutique.tn",
        clerk_publishable_key="pk_test_abc",
        clerk_secret_key="sk_test_abc",
    )
    assert len(production_config_errors(bad)) == 3
    with pytest.raises(RuntimeError):
        check_production_config(bad)


def test_development_is_not_checked():
    dev = Settings(environment="development", frontend_url="http://localhost:5173", clerk_secret_key="sk_test_x")
    assert production_config_errors(dev) == []


def test_database_url_normalization():
    assert normalize_database_url("postgres://u:p@h/db") == "postgresql+psycopg://u:p@h/db"
    assert normalize_database_url("postgresql://u:p@h/db") == "postgresql+psycopg://u:p@h/db"
    assert normalize_database_url("") == "sqlite:///./storefront.db"
    assert "p@" not in mask_db_url("postgresql+psycopg://u:p@h/db")


def test_redaction():
    assert "abc.def.ghi" not in redact("Authorization: Bearer abc.def.ghi")
    assert redact("sent Bearer abc.def.ghi") == "sent Bearer ***"
    assert "s3cr3t" not in redact("password=s3cr3t")

    record = logging.LogRecord("x", logging.INFO, __file__, 1, "token=%s", ("abc123",), None)
    assert RedactSecretsFilter().filter(record)
    assert record.getMessage() == "token=***"


def test_session_rolls_back_on_database_error(engine, monkeypatch):
    monkeypatch.setattr(db_session, "engine", engine)
    gen = db_session.get_session()
    session = next(gen)

    rollbacks = []
    monkeypatch.setattr(session, "rollback", lambda: rollbacks.append(True))

    with pytest.raises(IntegrityError):
        gen.throw(IntegrityError("INSERT", {}, Exception("duplicate")))
    assert rollbacks == [True]
