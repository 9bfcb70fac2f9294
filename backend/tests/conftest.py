"""
Pytest fixtures for the autocrm backend tests.

Every test gets a fresh application: a new in-memory database seeded with
the demo fixtures and a new EntityStore over it.
"""

import pytest

from autocrm import create_app
from autocrm.config import TestConfig
from autocrm.extensions import db
from autocrm.store import get_store


class EmptyStoreConfig(TestConfig):
    SEED_FIXTURES = False


def _make_app(config_object):
    app = create_app(config_object)
    ctx = app.app_context()
    ctx.push()
    return app, ctx


@pytest.fixture(scope='function')
def app():
    """Create a seeded application for one test."""
    app, ctx = _make_app(TestConfig)
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture(scope='function')
def empty_app():
    """Create an application whose store starts empty."""
    app, ctx = _make_app(EmptyStoreConfig)
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture(scope='function')
def store(app):
    return get_store()


@pytest.fixture(scope='function')
def empty_store(empty_app):
    return get_store()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


def user_headers(user_id: str) -> dict:
    """Helper to create identification headers."""
    return {'X-User-Id': user_id}


@pytest.fixture
def owner_headers():
    return user_headers("user-1")


@pytest.fixture
def manager_headers():
    return user_headers("user-2")


@pytest.fixture
def staff_headers():
    return user_headers("user-3")
