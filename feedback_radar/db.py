# feedback_radar/db.py
import os
import contextlib
from typing import Optional, Dict, Any, List, Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from sqlalchemy.exc import SQLAlchemyError

from feedback_radar import monitoring
from feedback_radar.errors import StoreFailure

# Default dev DB — on Vercel api/index.py sets DATABASE_URL to /tmp before import
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./feedback_radar.db")

def _make_engine(url: str):
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)

engine = _make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def reconfigure(url: str):
    """Reconfigure the DB engine and session factory at runtime (for tests)."""
    global engine, SessionLocal
    engine.dispose()
    engine = _make_engine(url)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    # Create tables if they don't exist
    try:
        # import models lazily
        import feedback_radar.models as models  # noqa: F841
        Base.metadata.create_all(bind=engine)
    except Exception:
        # don't crash the app at import time; the first store call will surface it
        monitoring.logger.exception("DB init failed")


def row_to_dict(row) -> Dict[str, Any]:
    return {c.name: getattr(row, c.name) for c in row.__table__.columns}


class RecordStore:
    """
    Parameterized access to the feedback table.

    Every SQLAlchemy error is logged and re-raised as StoreFailure; callers
    never see driver exceptions.
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        # None means "whatever SessionLocal is at call time", so reconfigure() applies
        self._session_factory = session_factory

    @contextlib.contextmanager
    def _session(self, op: str) -> Iterator[Session]:
        db: Session = (self._session_factory or SessionLocal)()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            monitoring.logger.exception("Store operation failed", extra={"op": op})
            raise StoreFailure(f"{op} failed: {e}") from e
        finally:
            db.close()

    def insert(self, fields: Dict[str, Any]) -> int:
        from feedback_radar.models import Feedback
        with self._session("insert") as db:
            row = Feedback(**fields)
            db.add(row)
            db.flush()
            new_id = row.id
        return new_id

    def update(self, record_id: int, fields: Dict[str, Any]) -> None:
        from feedback_radar.models import Feedback
        with self._session("update") as db:
            db.query(Feedback).filter(Feedback.id == record_id).update(
                fields, synchronize_session=False
            )

    def select_one(self, record_id: int) -> Optional[Dict[str, Any]]:
        from feedback_radar.models import Feedback
        with self._session("select_one") as db:
            row = db.get(Feedback, record_id)
            return row_to_dict(row) if row is not None else None

    def select_many(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        with self._session("select_many") as db:
            result = db.execute(text(sql), params or {})
            return [dict(r) for r in result.mappings().all()]

    def aggregate(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        with self._session("aggregate") as db:
            result = db.execute(text(sql), params or {})
            return [dict(r) for r in result.mappings().all()]
