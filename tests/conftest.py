"""Test config and shared fixtures."""
import threading
from typing import Iterator, List
import pytest
from loguru import logger

from persistkit.config import Settings
from persistkit.database import StorageContextBase, StorageManager
from persistkit.repository import RepositoryRegistry, UnitOfWork
from tests.models import CustomerRepository, OrderRepository


# In-memory SQLite for tests
TEST_DATABASE_URL = "sqlite://"


class CountingStorageContext(StorageContextBase):
    """Storage context that counts engine commits and remembers being closed."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.commit_calls = 0
        self.closed = False

    def commit(self):
        self.commit_calls += 1
        super().commit()

    def close(self):
        self.closed = True
        super().close()


class BlockingStorageContext(CountingStorageContext):
    """Storage context whose commit waits until the test releases it."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.started = threading.Event()
        self.release = threading.Event()
        self.finished = threading.Event()

    def commit(self):
        self.started.set()
        try:
            self.release.wait(timeout=5)
            super().commit()
        finally:
            self.finished.set()


class FlushBlockingStorageContext(CountingStorageContext):
    """Storage context whose flush waits until the test releases it."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.started = threading.Event()
        self.release = threading.Event()

    def flush(self, objects=None):
        self.started.set()
        self.release.wait(timeout=5)
        super().flush(objects)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(DB_URL=TEST_DATABASE_URL, DB_EXPIRE_ON_COMMIT=False, REGISTRY_USE_CACHING=False)


@pytest.fixture
def manager(test_settings: Settings) -> Iterator[StorageManager]:
    """Storage manager over a fresh in-memory database with all tables created."""
    manager = StorageManager(test_settings, context_class=CountingStorageContext)
    manager.create_all()
    yield manager
    manager.dispose()


@pytest.fixture
def storage_context(manager: StorageManager) -> Iterator[CountingStorageContext]:
    with manager.storage_context() as context:
        yield context


@pytest.fixture
def registry() -> RepositoryRegistry:
    return RepositoryRegistry([CustomerRepository, OrderRepository])


@pytest.fixture
def uow(storage_context: CountingStorageContext, registry: RepositoryRegistry) -> UnitOfWork:
    return UnitOfWork(storage_context, registry)


@pytest.fixture
def log_messages() -> Iterator[List[str]]:
    """Capture loguru messages at WARNING and above."""
    messages: List[str] = []
    handler_id = logger.add(messages.append, level="WARNING", format="{message}")
    yield messages
    logger.remove(handler_id)
