import pytest

from markgrove import create_app
from markgrove.config import TestConfig
from markgrove.extensions import db


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.drop_all()
        db.create_all()
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    with app.app_context():
        yield app.extensions["bookmark_store"]
        db.session.remove()
