from sqlalchemy import create_engine, event
from .config import DATABASE_URL
from sqlalchemy.orm import sessionmaker, declarative_base

_is_sqlite = DATABASE_URL.startswith("sqlite")

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if _is_sqlite else {}
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


if _is_sqlite:
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        # SQLite ignores ON DELETE CASCADE unless this is set per connection
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_db():
    """Dependency generator that yields a SQLAlchemy Session.

    Usage:
        as a FastAPI dependency: db: Session = Depends(get_db)

    Yields:
        sqlalchemy.orm.Session: a database session that will be closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
