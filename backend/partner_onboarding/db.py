from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from partner_onboarding.config import settings

connect_args = {"check_same_thread": False} if settings.is_sqlite else {}

engine = create_engine(
    settings.database_url_fixed,
    connect_args=connect_args,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield a session per request; closed when the request finishes."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
