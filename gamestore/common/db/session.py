from contextlib import contextmanager
from pathlib import Path
from typing import Callable, ContextManager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


SessionFactory = Callable[[], ContextManager[Session]]


def _ensure_sqlite_parent(database_url: str) -> None:
    # Ensure sqlite file parent directory exists to avoid 'unable to open database file'
    if not database_url.startswith("sqlite:///") or ":memory:" in database_url:
        return
    db_path = database_url.split("sqlite:///")[-1]
    Path(db_path).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)


def create_session_factory(database_url: str, *, create_schema: bool = True) -> SessionFactory:
    """Build a ``get_session``-style context manager bound to ``database_url``.

    In-memory SQLite URLs share one connection so every session sees the
    same database.
    """
    from ..models.base import Base

    engine_kwargs = {"future": True}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        engine_kwargs.update(
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        _ensure_sqlite_parent(database_url)
    engine = create_engine(database_url, **engine_kwargs)
    if create_schema:
        Base.metadata.create_all(engine)
    session_local = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)

    @contextmanager
    def get_session():
        session = session_local()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    get_session.engine = engine  # type: ignore[attr-defined]
    return get_session
