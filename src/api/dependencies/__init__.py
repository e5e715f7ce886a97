from typing import Annotated, Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from db.state_store import SqlStateStore
from domain.asset_ledger import AssetLedger
from domain.state import StateStore


def get_session(request: Request) -> Generator[Session, None, None]:
    with request.app.state.sessionmaker() as session:
        yield session


def get_state_store(session: Annotated[Session, Depends(get_session)]) -> StateStore:
    return SqlStateStore(session)


def get_asset_ledger(store: Annotated[StateStore, Depends(get_state_store)]) -> AssetLedger:
    return AssetLedger(store)
