import pytest

from sinkingfund import create_app


@pytest.fixture
def app():
    return create_app({"TESTING": True, "LOG_LEVEL": "DEBUG"})


@pytest.fixture
def client(app):
    return app.test_client()
