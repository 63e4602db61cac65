"""
SQLite storage foundation for the outreach CRM.
Connection handling, schema creation and health checks.
"""

import sqlite3
from contextlib import contextmanager
from typing import Generator, Optional
from .config import get_db_path, ensure_db_directory

REQUIRED_TABLES = [
    'teams',
    'team_members',
    'prospects',
    'activities',
    'templates',
    'qc_queue',
    'tasks',
]


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection."""
    ensure_db_directory()
    conn = sqlite3.connect(get_db_path())
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: Optional[sqlite3.Connection] = None) -> Generator[sqlite3.Connection, None, None]:
    """Run a block of writes as one unit.

    With no connection a new one is opened, committed on success and rolled
    back on error. A caller-supplied connection is reused as is, leaving the
    commit to whoever opened it.
    """
    if conn is not None:
        yield conn
        return

    with get_db() as new_conn:
        try:
            yield new_conn
            new_conn.commit()
        except Exception:
            new_conn.rollback()
            raise


def init_db():
    """Initialize the database with required tables."""
    with get_db() as conn:
        cursor = conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS teams (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                owner_id TEXT NOT NULL,
                settings TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS team_members (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                team_id INTEGER NOT NULL,
                user_id TEXT NOT NULL,
                role TEXT NOT NULL DEFAULT 'VA',
                created_at TEXT NOT NULL,
                UNIQUE (team_id, user_id)
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS prospects (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                team_id INTEGER NOT NULL,
                first_name TEXT NOT NULL,
                last_name TEXT NOT NULL,
                email TEXT,
                linkedin_url TEXT,
                twitter_handle TEXT,
                company TEXT NOT NULL,
                title TEXT NOT NULL,
                source TEXT NOT NULL,
                source_detail TEXT,
                tags TEXT DEFAULT '[]',
                custom_fields TEXT DEFAULT '{}',
                stage TEXT NOT NULL DEFAULT 'IDENTIFIED',
                assigned_to_id TEXT,
                warming_started_at TEXT,
                first_touch_sent_at TEXT,
                video_sent_at TEXT,
                call_booked_at TEXT,
                closed_at TEXT,
                close_reason TEXT,
                notes TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        ''')

        # No foreign key to prospects: activities outlive a deleted prospect
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS activities (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                prospect_id INTEGER NOT NULL,
                user_id TEXT NOT NULL,
                type TEXT NOT NULL,
                details TEXT DEFAULT '{}',
                created_at TEXT NOT NULL
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS templates (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                team_id INTEGER NOT NULL,
                name TEXT NOT NULL,
                type TEXT NOT NULL,
                content TEXT NOT NULL,
                is_active BOOLEAN DEFAULT TRUE,
                created_by_id TEXT NOT NULL,
                times_used INTEGER DEFAULT 0,
                reply_count INTEGER DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS qc_queue (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                prospect_id INTEGER NOT NULL,
                template_id INTEGER,
                submitted_by_id TEXT NOT NULL,
                reviewed_by_id TEXT,
                type TEXT NOT NULL,
                draft_content TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'PENDING',
                feedback TEXT,
                submitted_at TEXT NOT NULL,
                reviewed_at TEXT
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS tasks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                team_id INTEGER NOT NULL,
                prospect_id INTEGER,
                assigned_to_id TEXT NOT NULL,
                type TEXT NOT NULL,
                title TEXT NOT NULL,
                description TEXT,
                due_date TEXT NOT NULL,
                priority TEXT NOT NULL DEFAULT 'MEDIUM',
                status TEXT NOT NULL DEFAULT 'PENDING',
                completed_at TEXT,
                created_at TEXT NOT NULL
            )
        ''')

        # Create indexes for the list filters
        cursor.execute('CREATE INDEX IF NOT EXISTS idx_prospects_team_stage ON prospects(team_id, stage)')
        cursor.execute('CREATE INDEX IF NOT EXISTS idx_activities_prospect ON activities(prospect_id, created_at DESC)')
        cursor.execute('CREATE INDEX IF NOT EXISTS idx_tasks_team_due ON tasks(team_id, due_date)')
        cursor.execute('CREATE INDEX IF NOT EXISTS idx_qc_status ON qc_queue(status, submitted_at DESC)')

        conn.commit()


def health_check():
    """Check database health."""
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table';")
            table_names = [row[0] for row in cursor.fetchall()]
            return all(table in table_names for table in REQUIRED_TABLES)
    except sqlite3.Error:
        return False
