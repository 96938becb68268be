"""
pytest Fixtures for Classic Nooks API Tests

This file contains shared fixtures used across all test files.

For database tests, we use:
- session scope for the engine (expensive to create)
- function scope for sessions (isolation between tests)

Every test runs inside a transaction that is rolled back afterwards.
Services call commit()/rollback() themselves, so the session joins the
outer transaction through SAVEPOINTs ("create_savepoint" mode): a service
rollback only undoes its own savepoint, never the test's transaction.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
# This disables rate limiting, the Redis cache and reCAPTCHA verification
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CACHE_ENABLED"] = "false"
os.environ["CAPTCHA_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "development"

from collections.abc import Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from classicnooks.database import Base, get_db
from classicnooks.main import app
from classicnooks.models import Author, Book, Genre, User
from classicnooks.services.security import hash_password

TEST_PASSWORD = "pemberley1813"


# =============================================================================
# DATABASE FIXTURES
# =============================================================================
# SQLite in-memory keeps the suite self-contained. The upserts use the
# SQLite ON CONFLICT dialect here and the PostgreSQL one in production.

@pytest.fixture(scope="session")
def engine():
    """
    Create a SQLite in-memory database engine.

    StaticPool keeps the connection alive for the entire session.
    Without it, SQLite in-memory database would disappear between connections.

    pysqlite does not emit BEGIN itself, so the outer test transaction
    would not exist and a released SAVEPOINT would commit for real. The
    listeners take over transaction control so BEGIN/SAVEPOINT/ROLLBACK
    reach SQLite as issued.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """
    Create a fresh database session for each test.

    Changes are rolled back after each test.
    """
    connection = engine.connect()
    transaction = connection.begin()

    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=connection,
        join_transaction_mode="create_savepoint",
    )
    session = TestSessionLocal()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """
    Create a test client with the test database.

    We override the get_db dependency to use our test session.
    """

    def override_get_db():
        """Provide test database session instead of real one."""
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# CATALOG FIXTURES
# =============================================================================

@pytest.fixture
def austen(db_session: Session) -> Author:
    author = Author(name="Austen, Jane", birth_year=1775)
    db_session.add(author)
    db_session.commit()
    return author


@pytest.fixture
def shelley(db_session: Session) -> Author:
    author = Author(name="Shelley, Mary Wollstonecraft", birth_year=1797)
    db_session.add(author)
    db_session.commit()
    return author


@pytest.fixture
def romance(db_session: Session) -> Genre:
    genre = Genre(name="Romance")
    db_session.add(genre)
    db_session.commit()
    return genre


@pytest.fixture
def gothic(db_session: Session) -> Genre:
    genre = Genre(name="Gothic Fiction")
    db_session.add(genre)
    db_session.commit()
    return genre


@pytest.fixture
def sample_book(db_session: Session, austen: Author, romance: Genre) -> Book:
    """Pride and Prejudice, with an author, a genre and a text URL."""
    book = Book(
        id=1342,
        title="Pride and Prejudice",
        cover_url="https://www.gutenberg.org/cache/epub/1342/pg1342.cover.medium.jpg",
        description="Elizabeth Bennet and Mr. Darcy misjudge each other.",
        source_text_url="https://www.gutenberg.org/ebooks/1342.txt.utf-8",
        authors=[austen],
        genres=[romance],
    )
    db_session.add(book)
    db_session.commit()
    return book


@pytest.fixture
def catalog(
    db_session: Session,
    austen: Author,
    shelley: Author,
    romance: Genre,
    gothic: Genre,
) -> list[Book]:
    """
    A small catalog with sparse ids.

    Includes titles containing LIKE wildcards and a book without authors
    or genres.
    """
    rows = [
        (11, "Alice's Adventures in Wonderland", [], []),
        (84, "Frankenstein", [shelley], [gothic]),
        (161, "Sense and Sensibility", [austen], [romance]),
        (1342, "Pride and Prejudice", [austen], [romance]),
        (1400, "Great Expectations", [], []),
        (4000, "100% Pure Poetry", [], []),
        (4001, "100 Pure Poems", [], []),
        (4100, "snake_case primer", [], []),
        (4101, "snakeXcase primer", [], []),
        (15000, "The Last Man", [shelley], [gothic, romance]),
    ]

    books = []
    for book_id, title, authors, genres in rows:
        book = Book(
            id=book_id,
            title=title,
            source_text_url=f"https://www.gutenberg.org/ebooks/{book_id}.txt.utf-8",
            authors=authors,
            genres=genres,
        )
        db_session.add(book)
        books.append(book)

    db_session.commit()
    return books


# =============================================================================
# USER / SESSION FIXTURES
# =============================================================================

@pytest.fixture
def sample_user(db_session: Session) -> User:
    """Create a sample user for testing."""
    user = User(username="austenfan", password_hash=hash_password(TEST_PASSWORD))
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def csrf_token(client: TestClient, sample_user: User) -> str:
    """
    Log the test client in through the API.

    The client keeps the session cookie; the returned CSRF token must be
    sent as X-CSRF-Token on state-changing requests.
    """
    response = client.post(
        "/api/v1/auth/login",
        json={"user": "austenfan", "password": TEST_PASSWORD, "captchaToken": "test"},
    )
    assert response.status_code == 200
    return response.json()["csrfToken"]


# =============================================================================
# OUTBOUND HTTP MOCKS
# =============================================================================

def create_mock_async_client(post_response=None, get_response=None, error=None):
    """
    Create a mocked httpx.AsyncClient usable as an async context manager.

    Args:
        post_response: Response returned by client.post()
        get_response: Response returned by client.get()
        error: Exception raised by both post() and get() instead
    """
    mock_client = MagicMock()

    async def async_enter():
        return mock_client

    async def async_exit(*args):
        return None

    mock_client.__aenter__ = MagicMock(side_effect=async_enter)
    mock_client.__aexit__ = MagicMock(side_effect=async_exit)

    async def mock_post(*args, **kwargs):
        if error is not None:
            raise error
        return post_response

    async def mock_get(*args, **kwargs):
        if error is not None:
            raise error
        return get_response

    mock_client.post = MagicMock(side_effect=mock_post)
    mock_client.get = MagicMock(side_effect=mock_get)

    return mock_client
