"""
Database layer - SQLAlchemy engine, session factory and declarative base

Resources never own a session: the request dependency below hands one to the
panel context, and the resource builds its queries from it.
"""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from panelkit.config import settings


def make_engine(url: str = settings.DATABASE_URL) -> Engine:
    """Create an engine; SQLite connections may be shared across threads"""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


engine = make_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency: yield a database session for the current request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = engine) -> None:
    """Create all tables known to the declarative base"""
    Base.metadata.create_all(bind=bind)
