"""SQLite storage for the mock segmentation service.

``jobs`` holds one row per submitted job: its status and how many status
queries it has answered so far. ``job_inputs`` keeps the four uploaded
volumes per job, keyed by modality index, so the view endpoint can serve
them back. Clearing the service empties both.
"""

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from .settings import settings

engine = create_engine(settings.database_url, future=True, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS jobs (
        id TEXT PRIMARY KEY,
        prediction_id TEXT NOT NULL,
        status TEXT NOT NULL,
        polls INTEGER NOT NULL DEFAULT 0,
        message TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS job_inputs (
        job_id TEXT NOT NULL REFERENCES jobs(id) ON DELETE CASCADE,
        idx INTEGER NOT NULL,
        modality TEXT NOT NULL,
        filename TEXT NOT NULL,
        content BLOB NOT NULL,
        PRIMARY KEY (job_id, idx)
    )
    """,
)

def init_db():
    with engine.begin() as conn:
        for ddl in SCHEMA:
            conn.execute(text(ddl))
