# FILE: shelf/db.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from shelf.config import DATABASE_URL

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
    echo=False,  # Set True to log SQL statements for debugging
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db():
    """Create all tables. Call once at startup."""
    # Import models so Base.metadata knows about them
    from shelf.content import models  # noqa: F401
    from shelf.commands import history  # noqa: F401
    Base.metadata.create_all(bind=engine)
