from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import DATABASE_URL, DATABASE_URL_CONFIGURED
from .logger import get_logger

logger = get_logger(__name__)

if not DATABASE_URL_CONFIGURED:
    logger.warning(f"DATABASE_URL is not set, falling back to {DATABASE_URL}")

# SQLite connections are shared across the threadpool FastAPI runs sync routes in
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

