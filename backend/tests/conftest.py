import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENCRYPTION_KEY", "YWFhYWFhYWFhYWFhYWFhYWFhYWFhYWFhYWFhYWFhYWE=")

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base
from app.models import Connection
from app.utils.encrypt import encrypt_data

from odoo_fakes import FakeOdoo


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


@pytest.fixture
def connection(db_session) -> Connection:
    conn = Connection(
        name="Main Odoo",
        base_url="https://odoo.example.com",
        database="prod",
        username="sync@example.com",
        api_key=encrypt_data("secret-key"),
        odoo_version="17.0",
        status="connected"
    )
    db_session.add(conn)
    db_session.commit()
    db_session.refresh(conn)
    return conn


@pytest.fixture
def fake_odoo(monkeypatch) -> FakeOdoo:
    """Routes every httpx.AsyncClient created by the transport to an in-memory Odoo."""
    fake = FakeOdoo()
    real_client = httpx.AsyncClient

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(fake.handler), **kwargs)

    monkeypatch.setattr("app.connectors.xmlrpc_transport.httpx.AsyncClient", client_factory)
    return fake
