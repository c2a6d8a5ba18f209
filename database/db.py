from sqlalchemy import create_engine               # SQLAlchemy engine factory
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from config.settings import settings               # ✅ environment settings


def _engine_kwargs(url: str) -> dict:
    # SQLite (local runs/tests) shares one in-memory connection across threads
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {"pool_pre_ping": True}


# ✅ engine built from the configured DB URL
engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

# ✅ session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# ✅ Base class for every model (declarative)
Base = declarative_base()


# ✅ per-request DB session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ✅ create missing tables (startup / tests)
def init_models(bind=None):
    from models import (  # noqa: F401  registers every table on Base.metadata
        appointments, attendance, behaviors, excuse_requests, exit_permissions,
        guidance_sessions, notifications, observations, parent_links, referrals,
        risk_actions, schools, staff, student_points, students, user_sessions,
    )
    Base.metadata.create_all(bind=bind or engine)
