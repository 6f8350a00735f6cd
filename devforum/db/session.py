import logging
import psycopg2
from psycopg2 import sql
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from devforum.core.config import settings

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

connect_args = {}
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def ensure_database():
    """Create the PostgreSQL database named in the URL if it doesn't exist yet."""
    url = make_url(SQLALCHEMY_DATABASE_URL)
    if not url.drivername.startswith("postgresql"):
        return

    conn = None
    try:
        conn = psycopg2.connect(
            dbname="postgres",
            user=url.username,
            password=url.password,
            host=url.host,
            port=url.port or 5432,
        )
        conn.autocommit = True
        cur = conn.cursor()
        try:
            cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(url.database)))
        finally:
            cur.close()
        logger.info(f"Created database {url.database}")
    except psycopg2.errors.DuplicateDatabase:
        pass
    except psycopg2.Error as e:
        logger.warning(f"Could not ensure database {url.database}: {e}")
    finally:
        if conn is not None:
            conn.close()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
