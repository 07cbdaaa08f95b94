import os
from unittest.mock import patch

import pytest
from celery import Task
from fastapi.testclient import TestClient

# Set test environment variables
os.environ.update(
    {
        "GITHUB_WEBHOOK_SECRET": "whsec_test",
        "PROJECT_ID": "fourkeys-test",
        "DATABASE_URL": "sqlite://",
        "REDIS_URL": "redis://localhost:6379/2",  # Use a separate Redis DB for testing
        "CONSUMER_URL": "http://consumer.test/",
    }
)

from fourkeys.core.config import ConsumerSettings, IngressSettings
from fourkeys.db.crud import SqlEventSink
from fourkeys.db.session import create_session_factory
from fourkeys.main import create_consumer_app, create_ingress_app
from factories import SECRET, FakePublisher


@pytest.fixture(autouse=True)
def celery_task_always_eager():
    with patch.object(Task, "apply_async") as mock:

        class MockAsyncResult:
            def __init__(self):
                self.id = "mock-task-id"

        mock.return_value = MockAsyncResult()
        yield mock


@pytest.fixture
def ingress_settings() -> IngressSettings:
    return IngressSettings(github_webhook_secret=SECRET, project_id="fourkeys-test")


@pytest.fixture
def consumer_settings() -> ConsumerSettings:
    return ConsumerSettings(database_url="sqlite://", project_id="fourkeys-test")


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def ingress_client(ingress_settings, publisher):
    app = create_ingress_app(ingress_settings, publisher=publisher)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def sink(consumer_settings) -> SqlEventSink:
    sink = SqlEventSink(create_session_factory(consumer_settings.database_url))
    sink.create_schema()
    return sink


@pytest.fixture
def db(sink):
    with sink.session_factory() as session:
        yield session


@pytest.fixture
def consumer_client(consumer_settings, sink):
    app = create_consumer_app(consumer_settings, sink=sink)
    with TestClient(app) as client:
        yield client
