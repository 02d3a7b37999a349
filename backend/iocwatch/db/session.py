# backend/iocwatch/db/session.py

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from iocwatch.core.config import settings

# settings.DATABASE_URL = "postgresql+psycopg2://user:pass@db:5432/iocwatch"
# or DATABASE_URL_OVERRIDE="sqlite:///./iocwatch.db" for local runs

# SQLite needs special connect args; Postgres does not
connect_args = (
    {"check_same_thread": False}
    if settings.DATABASE_URL.startswith("sqlite")
    else {}
)

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=connect_args,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)
