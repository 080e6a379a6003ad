import os

# settings are read at import time by rental_contracts.db.session
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("EXPIRATION_SWEEPER_ENABLED", "false")

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# FORCE model registration
import rental_contracts.models  # noqa

from rental_contracts.core.clock import FixedClock
from rental_contracts.core.config import get_settings
from rental_contracts.db.base import Base
from rental_contracts.services.change_request_service import ChangeRequestService
from rental_contracts.services.contract_lifecycle_service import ContractLifecycleService
from rental_contracts.services.expiration_sweeper import ExpirationSweeper

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")


@pytest.fixture(scope="function")
def db():
    if TEST_DATABASE_URL:
        # shared database: wrap the test in a transaction, service commits become savepoints
        engine = create_engine(TEST_DATABASE_URL)
        Base.metadata.create_all(engine)
        connection = engine.connect()
        transaction = connection.begin()
        session = Session(bind=connection, join_transaction_mode="create_savepoint")
        try:
            yield session
        finally:
            session.close()
            transaction.rollback()
            connection.close()
            engine.dispose()
        return

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def lifecycle(clock, settings):
    return ContractLifecycleService(clock=clock, settings=settings)


@pytest.fixture
def change_requests(clock, settings):
    return ChangeRequestService(clock=clock, settings=settings)


@pytest.fixture
def sweeper(clock):
    return ExpirationSweeper(clock=clock)
