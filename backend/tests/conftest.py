"""
YelpCamp Backend - Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment overrides are applied before any app module is imported.
       Every test gets its own in-memory SQLite database (aiosqlite with a
       StaticPool, so all sessions share one connection) and a fresh app
       whose database, geocoder and file storage are swapped through
       dependency_overrides.

Fixture Hierarchy:
    Session-scoped:
    └── password_hash: one PBKDF2 hash of PASSWORD, reused by every user fixture

    Function-scoped:
    ├── db_engine → session_factory → db_session → store, read_back
    ├── owner, stranger: two registered users
    ├── ctx_factory: RequestContext builder with an in-memory flash session
    ├── geocoder: FakeGeocoder returning a fixed point
    ├── file_service: FileService rooted in a temp directory
    ├── app: FastAPI app wired to the above
    ├── client: httpx AsyncClient talking to `app` (keeps the session cookie)
    └── login: signs a user in on `client`
"""

import os
import tempfile

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="yelpcamp_test_")
os.environ["MAPBOX_TOKEN"] = ""
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["RETRY_MAX_ATTEMPTS"] = "2"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "1"
os.environ["RETRY_JITTER"] = "0"
os.environ["CB_FAILURE_THRESHOLD"] = "2"

from typing import Any, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.auth.flash import FlashSink  # noqa: E402
from app.auth.models import Principal, RequestContext  # noqa: E402
from app.auth.passwords import hash_password  # noqa: E402
from app.database import get_db_session, init_models  # noqa: E402
from app.dependencies import get_file_service, get_geocoder  # noqa: E402
from app.exceptions import ValidationError  # noqa: E402
from app.models.campground import Campground  # noqa: E402
from app.models.review import Review  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services.file_service import FileService  # noqa: E402
from app.services.geocoding_base import GeocodingService  # noqa: E402
from app.services.store import ResourceStore  # noqa: E402

PASSWORD = "correct horse"
DEFAULT_POINT = {"type": "Point", "coordinates": [-105.2705, 40.015]}


# ══════════════════════════════════════════════════════════════════════════
# Test doubles
# ══════════════════════════════════════════════════════════════════════════

class FakeGeocoder(GeocodingService):
    """Returns DEFAULT_POINT for every query and records what was asked."""

    def __init__(self):
        self.queries: List[str] = []
        self.error: Optional[Exception] = None
        self.unknown: set = set()

    async def forward(self, query: str) -> Dict[str, Any]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        if query in self.unknown:
            raise ValidationError(
                message='"campground.location" could not be found on the map',
                field="campground.location",
            )
        return dict(DEFAULT_POINT)

    async def health_check(self) -> bool:
        return self.error is None


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(db_session):
    return ResourceStore(db_session)


@pytest.fixture
def read_back(session_factory):
    """
    Run one ResourceStore read on a brand-new session.

    Requests write through their own sessions; reading on a new one avoids
    stale objects cached in `db_session`.

    Usage:
        campground = await read_back("get_campground", campground_id)
    """

    async def run(method: str, *args):
        async with session_factory() as session:
            return await getattr(ResourceStore(session), method)(*args)

    return run


# ══════════════════════════════════════════════════════════════════════════
# Users & request context
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def password_hash():
    return hash_password(PASSWORD)


@pytest_asyncio.fixture
async def owner(store, password_hash):
    return await store.add_user(
        User(username="owner", email="owner@example.com", password_hash=password_hash)
    )


@pytest_asyncio.fixture
async def stranger(store, password_hash):
    return await store.add_user(
        User(username="stranger", email="stranger@example.com", password_hash=password_hash)
    )


def principal_for(user: Optional[User]) -> Optional[Principal]:
    if user is None:
        return None
    return Principal(id=user.id, username=user.username)


@pytest.fixture
def ctx_factory():
    """
    Build a RequestContext for `user` (None for anonymous).

    The flash session is a plain dict exposed as ctx.flash._session for asserts.
    """

    def build(user: Optional[User] = None) -> RequestContext:
        return RequestContext(principal=principal_for(user), flash=FlashSink({}))

    return build


# ══════════════════════════════════════════════════════════════════════════
# Documents
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_campground(store):
    async def build(author: User, **overrides) -> Campground:
        fields = {
            "title": "Misty Hollow",
            "location": "Boulder, Colorado",
            "price": 25.0,
            "description": "Quiet sites by the creek.",
            "images": [],
            "geometry": dict(DEFAULT_POINT),
            "author_id": author.id,
            "reviews": [],
        }
        fields.update(overrides)
        return await store.add_campground(Campground(**fields))

    return build


@pytest.fixture
def make_review(store):
    async def build(campground: Campground, author: User, body="Great!", rating=5) -> Review:
        review = await store.add_review(Review(body=body, rating=rating, author_id=author.id))
        await store.push_review(campground.id, review.id)
        return review

    return build


# ══════════════════════════════════════════════════════════════════════════
# Collaborators & HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def geocoder():
    return FakeGeocoder()


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def file_service(temp_storage):
    return FileService(storage_root=temp_storage)


@pytest.fixture
def sample_image_bytes():
    """Smallest valid JPEG: SOI + JFIF header + EOI."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def app(session_factory, geocoder, file_service):
    from app.main import create_app

    application = create_app()

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_db_session
    application.dependency_overrides[get_geocoder] = lambda: geocoder
    application.dependency_overrides[get_file_service] = lambda: file_service
    return application


@pytest_asyncio.fixture
async def client(app):
    """
    HTTP client for endpoint tests.

    Redirects are not followed so tests can assert the 303 target; unhandled
    exceptions come back as responses, as they would in production.
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http


@pytest.fixture
def login(client):
    """Sign `username` in on the shared client; returns the /login response."""

    async def run(username: str, password: str = PASSWORD):
        return await client.post("/login", data={"username": username, "password": password})

    return run
