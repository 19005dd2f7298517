from __future__ import annotations

from sqlalchemy.engine import Engine

from nextplay.db.base import Base


def init_db(engine: Engine) -> None:
    """Create ORM tables.

    Tables live in the managed backend in production; this is for local
    development and tests.
    """
    Base.metadata.create_all(bind=engine)
