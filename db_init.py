"""
Database initialization script for the Vardiya roster portal.
Creates all necessary tables and initializes with sample data if needed.
"""

import json
import sqlite3
from datetime import datetime

from entities import INITIAL_PERSONNEL

DEFAULT_DB_PATH = "vardiya.db"


def create_database_schema(db_path: str = DEFAULT_DB_PATH):
    """
    Create all database tables.

    Args:
        db_path: Path to SQLite database file
    """
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    # Personnel directory: people with IncludeInSchedule=1 form the roster
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS Personnel (
            Id INTEGER PRIMARY KEY AUTOINCREMENT,
            Name TEXT NOT NULL UNIQUE,
            IncludeInSchedule INTEGER NOT NULL DEFAULT 1,
            CreatedAt TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)

    # Serialized schedule states: 'published' and 'draft'
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS ScheduleStates (
            Name TEXT PRIMARY KEY,
            Payload TEXT NOT NULL,
            UpdatedAt TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            UpdatedBy TEXT
        )
    """)

    # Schedule settings (JSON values)
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS Settings (
            Key TEXT PRIMARY KEY,
            Value TEXT NOT NULL
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS AuditLogs (
            Id INTEGER PRIMARY KEY AUTOINCREMENT,
            Timestamp TEXT NOT NULL,
            UserName TEXT,
            EntityName TEXT NOT NULL,
            EntityId TEXT NOT NULL,
            Action TEXT NOT NULL,
            Changes TEXT
        )
    """)

    cursor.execute("CREATE INDEX IF NOT EXISTS IX_AuditLogs_Timestamp ON AuditLogs(Timestamp)")

    conn.commit()
    conn.close()
    print(f"✅ Database schema created successfully: {db_path}")


def initialize_schedule_states(db_path: str = DEFAULT_DB_PATH):
    """Create empty published and draft states if missing"""
    from data_loader import serialize_state
    from schedule_state import empty_state

    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    payload = json.dumps(serialize_state(empty_state()), ensure_ascii=False)
    for name in ("published", "draft"):
        cursor.execute("""
            INSERT OR IGNORE INTO ScheduleStates (Name, Payload, UpdatedAt, UpdatedBy)
            VALUES (?, ?, ?, ?)
        """, (name, payload, datetime.utcnow().isoformat(), "db_init"))

    conn.commit()
    conn.close()
    print("✅ Schedule states initialized (published, draft)")


def initialize_sample_personnel(db_path: str = DEFAULT_DB_PATH):
    """Initialize the reference team"""
    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    for name in INITIAL_PERSONNEL:
        cursor.execute("""
            INSERT OR IGNORE INTO Personnel (Name, IncludeInSchedule)
            VALUES (?, 1)
        """, (name,))

    conn.commit()
    conn.close()
    print(f"✅ Sample personnel initialized: {len(INITIAL_PERSONNEL)} people")


def initialize_database(db_path: str = DEFAULT_DB_PATH, with_sample_data: bool = True):
    """
    Initialize complete database with schema and optional sample data.

    Args:
        db_path: Path to SQLite database file
        with_sample_data: Whether to include the reference team
    """
    print(f"🔧 Initializing database: {db_path}")
    print("=" * 60)

    create_database_schema(db_path)
    initialize_schedule_states(db_path)

    if with_sample_data:
        initialize_sample_personnel(db_path)
        # Roster comes from the directory; bring both states in line with it
        from data_loader import STATE_NAMES, sync_roster_in_database
        sync_roster_in_database(db_path, state_names=STATE_NAMES)

    print("=" * 60)
    print("✅ Database initialization complete!")
    print()
    print("You can now start the server with:")
    print(f"  python main.py serve --db {db_path}")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description='Initialize Vardiya database')
    parser.add_argument('db_path', nargs='?', default=DEFAULT_DB_PATH,
                        help=f'Path to database file (default: {DEFAULT_DB_PATH})')
    parser.add_argument('--with-sample-data', '--sample-data', action='store_true',
                        help='Include the reference team')

    args = parser.parse_args()

    initialize_database(args.db_path, with_sample_data=args.with_sample_data)
