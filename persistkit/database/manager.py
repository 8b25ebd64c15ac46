from contextlib import contextmanager
from typing import Iterator, Optional, Type
from sqlalchemy import text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine
from persistkit.config import Settings, settings as default_settings
from persistkit.logging.logger import get_logger
from .context import StorageContextBase

logger = get_logger("storage_manager")


class StorageManager:
    """Owns the engine and opens storage contexts; the composition root builds one."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        context_class: Type[StorageContextBase] = StorageContextBase,
    ):
        settings = settings or default_settings
        url = settings.DATABASE_URL
        engine_kwargs = {}
        if url.startswith("sqlite"):
            # Async commits run in a worker thread
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(url, echo=settings.DB_ECHO, **engine_kwargs)
        self.context_factory = sessionmaker(
            self.engine,
            class_=context_class,
            expire_on_commit=settings.DB_EXPIRE_ON_COMMIT,
        )

    def connect(self):
        """Check the database is reachable."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info(f"Connected to {self.engine.url.render_as_string(hide_password=True)}")

    def create_all(self):
        """Create tables for all SQLModel models imported so far."""
        SQLModel.metadata.create_all(self.engine)

    def dispose(self):
        self.engine.dispose()

    @contextmanager
    def storage_context(self) -> Iterator[StorageContextBase]:
        """Open a storage context; it is closed when the block exits."""
        with self.context_factory() as context:
            yield context
