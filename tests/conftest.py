"""
Test configuration and fixtures for the LinkShrink API.
Every test gets a fresh SQLite database and no cache.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from main import app
from linkshrink.cache.strategies import NullCache
from linkshrink.database.connection import Base, get_db
from linkshrink.dependencies import get_cache

# Test database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Tables are dropped afterwards so tests don't see each other's links.
    """
    Base.metadata.create_all(bind=engine)
    
    db = TestingSessionLocal()
    
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Test client with the database and cache dependencies overridden.
    """
    def override_get_db():
        yield db_session
    
    def override_get_cache():
        return NullCache()
    
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = override_get_cache
    
    with TestClient(app) as test_client:
        yield test_client
    
    app.dependency_overrides.clear()


@pytest.fixture
def create_link(client):
    """POST /api/urls and return the JSON body"""
    def _create(original_url="https://example.com", **extra):
        payload = {"originalUrl": original_url, **extra}
        response = client.post("/api/urls", json=payload)
        assert response.status_code == 201, response.text
        return response.json()
    return _create


@pytest.fixture
def unguarded_client(client):
    """
    Client that returns 500 responses instead of re-raising server errors.
    Shares the overrides installed by `client`.
    """
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
