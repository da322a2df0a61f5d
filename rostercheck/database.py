"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for matches, field comparison results and
verification summaries.
"""

import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict

from sqlalchemy import (
    create_engine,
    event,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .logger import get_logger
from .records import VerificationStatus

logger = get_logger()

Base = declarative_base()

_status_type = Enum(
    VerificationStatus,
    name="verification_status",
    values_callable=lambda enum_cls: [member.value for member in enum_cls],
    validate_strings=True,
)


class CandidateMatch(Base):
    """Accepted 1:1 assignment between a declared and an authoritative record."""

    __tablename__ = "candidate_matches"
    __table_args__ = (
        UniqueConstraint("source_file_id", "target_file_id", "source_candidate_id",
                         name="uq_match_source_candidate"),
        UniqueConstraint("source_file_id", "target_file_id", "target_candidate_id",
                         name="uq_match_target_candidate"),
    )

    match_id = Column(Integer, primary_key=True, autoincrement=True)
    source_file_id = Column(Integer, nullable=False, index=True)
    target_file_id = Column(Integer, nullable=False, index=True)
    source_candidate_id = Column(Integer, nullable=False, index=True)
    target_candidate_id = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def __repr__(self):
        return (
            f"CandidateMatch(match_id={self.match_id}, files={self.source_file_id}->{self.target_file_id}, "
            f"candidates={self.source_candidate_id}->{self.target_candidate_id})"
        )


class ComparisonResult(Base):
    """Similarity and classification of one field of a match."""

    __tablename__ = "comparison_results"

    result_id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(
        Integer,
        ForeignKey("candidate_matches.match_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    field_name = Column(String, nullable=False)
    source_value = Column(String, nullable=True)
    target_value = Column(String, nullable=True)
    similarity_score = Column(Float, nullable=False)
    verification_status = Column(_status_type, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


class ComparisonSummary(Base):
    """Aggregated verification outcome of a match (one row per match)."""

    __tablename__ = "comparison_summaries"

    summary_id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(
        Integer,
        ForeignKey("candidate_matches.match_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    average_similarity = Column(Float, nullable=False)
    overall_verification_status = Column(_status_type, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ships with foreign key enforcement off
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# One engine per database file for the life of the process; never evicted.
_engines: Dict[str, Engine] = {}
_engines_lock = threading.Lock()


def get_engine(db_path: Path) -> Engine:
    """
    Get the engine for a SQLite database file, creating it once per path.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy engine
    """
    key = str(Path(db_path).resolve())
    with _engines_lock:
        engine = _engines.get(key)
        if engine is None:
            engine = create_engine(f"sqlite:///{key}")
            _engines[key] = engine
    return engine


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(get_engine(db_path))


def get_session_factory(db_path: Path) -> sessionmaker:
    """
    Get a session factory bound to the database.

    Objects stay readable after commit so repositories can hand them
    back to callers once the session is closed.
    """
    return sessionmaker(bind=get_engine(db_path), expire_on_commit=False)


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    return get_session_factory(db_path)()


@contextmanager
def session_scope(session_factory: sessionmaker, name: str = "transaction"):
    """
    Transaction scope with commit on success and rollback on failure.

    The session is closed on every exit path. Errors are logged and
    re-raised, never swallowed.

    Example:
        with session_scope(factory, "save_matches") as session:
            session.add_all(rows)
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Rolled back {name}", error=str(e), error_type=type(e).__name__)
        raise
    finally:
        session.close()
