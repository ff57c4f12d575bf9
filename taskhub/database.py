from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base

from taskhub.config.settings import settings

DATABASE_URL = settings.DATABASE_URL

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}
elif DATABASE_URL.startswith("postgresql"):
    # If you're using PostgreSQL on Render or similar, keep sslmode=require
    connect_args = {"sslmode": "require"}

engine = create_engine(DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# ✅ This is required to be imported wherever DB session is needed
def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# Long-lived handlers (WebSocket) open their own short sessions per unit of work
def get_session_factory() -> sessionmaker:
    return SessionLocal
