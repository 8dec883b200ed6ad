# tests/conftest.py

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from shop_pricing import models  # noqa: F401  (regista as tabelas no Base)
from shop_pricing.main import app
from shop_pricing.database import Base, get_db

# --- Configuração do Banco de Dados de Teste ---
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    TEST_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# --- Fixtures do Pytest ---

@pytest.fixture(scope="function")
def db_session() -> Generator:
    """Fixture para criar uma sessão de banco de dados limpa para cada teste."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator:
    """Fixture para criar um TestClient com a dependência do DB sobrescrita."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()
