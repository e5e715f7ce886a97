from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import Engine, create_engine

from db.models import Base

logger = logging.getLogger(__name__)


def create_db_engine(db_file: str | Path, *, echo: bool = False, reset: bool = False) -> Engine:
    path = Path(db_file)
    if reset and path.exists():
        logger.info("Removing existing state database %s", path)
        path.unlink()
    path.parent.mkdir(parents=True, exist_ok=True)

    engine: Engine = create_engine(f"sqlite:///{path}", echo=echo)
    Base.metadata.create_all(engine)
    return engine
