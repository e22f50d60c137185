from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from school_app.core.config import DATABASE_URL

# SQLite needs this flag because FastAPI serves requests from a thread pool
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()
