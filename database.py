from sqlalchemy import create_engine, Column, Integer, String, Boolean, DateTime, JSON
from sqlalchemy.orm import declarative_base, sessionmaker
from datetime import datetime, timezone
from config import settings

def utcnow() -> datetime:
    """Naive UTC timestamp, as stored in DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# Database Models
class Option(Base):
    __tablename__ = "options"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(191), unique=True, nullable=False, index=True)
    value = Column(JSON)

    # Whether the host should preload the option
    autoload = Column(Boolean, default=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

class Transient(Base):
    __tablename__ = "transients"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(191), unique=True, nullable=False, index=True)
    value = Column(JSON)

    # Expiry (NULL never expires)
    expires_at = Column(DateTime, index=True)
    created_at = Column(DateTime, default=utcnow)

def init_db(bind=None):
    """Create tables."""
    Base.metadata.create_all(bind=bind or engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
