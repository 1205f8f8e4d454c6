"""
Pytest configuration and fixtures for panel tests.

Provides shared fixtures for:
- Test database sessions
- Settings with a configurable lookup list limit
- Sample data factories
- FastAPI test client with dependency overrides
"""

import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app modules
os.environ['PANEL_DB_URL'] = 'sqlite:///:memory:'
os.environ.setdefault('PANEL_LOG_LEVEL', 'WARNING')

from panel.src.config.settings import AppSettings
from panel.src.models import Base, Comment, Course, CourseLink, Fish, Post, Project, User
from panel.src.services.form_session_service import FormSessionService


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope='function')
def test_db_engine():
    """Create an in-memory SQLite database engine for testing."""
    from sqlalchemy import event

    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )

    # Enable foreign key constraints for SQLite
    # This must be set for each connection
    def _fk_pragma_on_connect(dbapi_con, con_record):
        dbapi_con.execute('pragma foreign_keys=ON')

    event.listen(engine, 'connect', _fk_pragma_on_connect)

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope='function')
def test_db_session(test_db_engine):
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(autouse=True)
def clear_form_sessions():
    """Form sessions are process-wide; start every test with none."""
    FormSessionService.clear_sessions()
    yield
    FormSessionService.clear_sessions()


# ============================================================================
# Settings Fixtures
# ============================================================================

@pytest.fixture
def make_settings():
    """Factory for AppSettings with explicit values (environment ignored for these fields)."""
    def _create(lookup_list_limit=1000, form_session_ttl_minutes=60):
        return AppSettings(
            associations_lookup_list_limit=lookup_list_limit,
            form_session_ttl_minutes=form_session_ttl_minutes,
        )
    return _create


@pytest.fixture
def test_settings(make_settings):
    """Default test settings."""
    return make_settings()


# ============================================================================
# Sample Data Factories
# ============================================================================

@pytest.fixture
def sample_user(test_db_session):
    """Factory for creating sample User models in the database."""
    counter = {'n': 0}

    def _create(first_name='Jane', last_name='Doe', email=None, password='password'):
        counter['n'] += 1
        user = User(
            email=email or f'user{counter["n"]}@example.com',
            first_name=first_name,
            last_name=last_name,
        )
        user.password = password
        test_db_session.add(user)
        test_db_session.commit()
        test_db_session.refresh(user)
        return user
    return _create


@pytest.fixture
def sample_post(test_db_session):
    """Factory for creating sample Post models in the database."""
    def _create(name='Test post', body=None):
        post = Post(name=name, body=body)
        test_db_session.add(post)
        test_db_session.commit()
        test_db_session.refresh(post)
        return post
    return _create


@pytest.fixture
def sample_project(test_db_session):
    """Factory for creating sample Project models in the database."""
    def _create(name='Test project', description=None):
        project = Project(name=name, description=description)
        test_db_session.add(project)
        test_db_session.commit()
        test_db_session.refresh(project)
        return project
    return _create


@pytest.fixture
def sample_course(test_db_session):
    """Factory for creating sample Course models in the database."""
    def _create(name='Algebra'):
        course = Course(name=name)
        test_db_session.add(course)
        test_db_session.commit()
        test_db_session.refresh(course)
        return course
    return _create


@pytest.fixture
def sample_course_link(test_db_session):
    """Factory for creating sample CourseLink models in the database."""
    def _create(link='https://example.com/algebra', course=None):
        course_link = CourseLink(link=link, course_id=course.id if course else None)
        test_db_session.add(course_link)
        test_db_session.commit()
        test_db_session.refresh(course_link)
        return course_link
    return _create


@pytest.fixture
def sample_fish(test_db_session):
    """Factory for creating sample Fish models in the database."""
    def _create(name='Nemo', user=None):
        fish = Fish(name=name, user_id=user.id if user else None)
        test_db_session.add(fish)
        test_db_session.commit()
        test_db_session.refresh(fish)
        return fish
    return _create


@pytest.fixture
def sample_comment(test_db_session):
    """Factory for creating sample Comment models in the database."""
    def _create(body='Test comment', user=None, commentable=None):
        comment = Comment(body=body, user_id=user.id if user else None)
        if commentable is not None:
            comment.commentable_type = type(commentable).__name__.lower()
            comment.commentable_id = commentable.id
        test_db_session.add(comment)
        test_db_session.commit()
        test_db_session.refresh(comment)
        return comment
    return _create


# ============================================================================
# API Fixtures
# ============================================================================

@pytest.fixture
def test_client(test_db_session, test_settings):
    """Create a test client for FastAPI application."""
    from fastapi.testclient import TestClient
    from panel.src.main import app
    from panel.src.config.settings import get_settings
    from panel.src.db.database import get_db

    # Override dependencies
    def get_test_db():
        try:
            yield test_db_session
        finally:
            pass

    def get_test_settings():
        return test_settings

    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_settings] = get_test_settings

    with TestClient(app) as client:
        yield client

    # Clear overrides
    app.dependency_overrides.clear()
