from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./taskboard.db")

# SQLite connections are shared across the request threadpool
if DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}
elif os.getenv("DATABASE_SSLMODE"):
    connect_args = {"sslmode": os.getenv("DATABASE_SSLMODE")}
else:
    connect_args = {}

engine = create_engine(DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# One session per request; imported wherever a DB session is needed
def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
