import os

os.environ.setdefault("ENV", "testing")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from main import app
from core.database import Base
from models.categories import Category
from services.auth_service import AuthService
from services.storage import LocalFileStorage
from services.token_service import TokenService
from utils.deps import get_db, get_storage

# SYNC SQLite for testing (matches sync service layer)
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False}
)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

ADMIN_PASSWORD = "AdminPass123!"


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """
    Creates a fresh, empty database for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    # Self-referencing RESTRICT keys block DROP TABLE while FKs are enforced
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
        Base.metadata.drop_all(bind=conn)
        conn.commit()
        conn.exec_driver_sql("PRAGMA foreign_keys=ON")


@pytest.fixture
def storage(tmp_path) -> LocalFileStorage:
    """File storage rooted in a per-test temporary directory."""
    return LocalFileStorage(tmp_path / "media", "/storage")


@pytest.fixture
async def client(session: Session, storage: LocalFileStorage):
    """
    Yields an HTTP client bound to the app, using the test database and
    the temporary file storage.
    """
    def override_get_db():
        try:
            yield session
        finally:
            pass  # Session cleanup handled by session fixture

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def admin_user(session: Session):
    return AuthService.create_user(
        session,
        email="admin@example.com",
        password=ADMIN_PASSWORD,
        role="admin",
        is_verified=True,
        first_name="Ada",
        last_name="Admin",
    )


@pytest.fixture
def admin_headers(admin_user) -> dict:
    token = TokenService.create_access_token(admin_user.email, admin_user.id, admin_user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_category(session: Session):
    """Factory inserting a category directly, bypassing the service layer."""
    def _make(name: str, display_order: int = 0, parent: Category = None, **kwargs) -> Category:
        category = Category(
            name=name,
            display_order=display_order,
            parent_id=parent.id if parent else None,
            **kwargs
        )
        session.add(category)
        session.commit()
        session.refresh(category)
        return category
    return _make
