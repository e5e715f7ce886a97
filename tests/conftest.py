from typing import Generator

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from db.models import Base
from db.state_store import SqlStateStore
from domain.asset_ledger import AssetLedger
from domain.state import StateStore
from services.state_store import InMemoryStateStore

engine: Engine = create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False})
session_factory = sessionmaker(engine)


@pytest.fixture(scope="function")
def test_session() -> Generator[Session, None, None]:
    with session_factory() as session:
        yield session


@pytest.fixture(scope="function", autouse=True)
def reset_db() -> Generator[None, None, None]:
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function", params=["memory", "sql"])
def state_store(request: pytest.FixtureRequest, test_session: Session) -> StateStore:
    if request.param == "memory":
        return InMemoryStateStore()
    return SqlStateStore(test_session)


@pytest.fixture(scope="function")
def ledger(state_store: StateStore) -> AssetLedger:
    return AssetLedger(state_store)
