"""
Ticket Tracker Demo Database

Creates a small SQLite database shaped like the ticket tracker behind
the reporting dashboard, so the console can be tried without a backend.
"""

import sqlite3
import random
from datetime import datetime, timedelta
from pathlib import Path


STATUSES = ["To Do", "In Progress", "In Review", "Done", "Blocked"]
PRIORITIES = ["Low", "Medium", "High", "Critical"]
TEAMS = ["Payments", "Settlement", "Onboarding", "Core Switching"]
SUMMARIES = [
    "Reconciliation report mismatch",
    "Timeout on settlement batch",
    "Add audit trail to approvals",
    'Customer says "transfer pending" after success',
    "Update merchant onboarding form",
    "Dashboard widget shows stale data",
    "Migrate cron job to scheduler",
    "Investigate duplicate debit",
]


def random_date(days_back: int = 120) -> datetime:
    """Generate a random date within the last ``days_back`` days."""
    return datetime.now() - timedelta(days=random.randint(0, days_back), minutes=random.randint(0, 1440))


def setup_tickets_database(db_path: str = "./data/tickets.db", ticket_count: int = 45, seed: int = 7) -> str:
    """
    Create and populate the demo database.

    Tables:
    1. teams - Delivery teams
    2. tickets - Work items, enough rows for several pages
    3. incidents - Production incidents (some columns left NULL)

    Args:
        db_path: Where to create the SQLite file
        ticket_count: Number of tickets to generate
        seed: Random seed for reproducible data

    Returns:
        Path of the created database
    """
    random.seed(seed)
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    for table in ("incidents", "tickets", "teams"):
        cursor.execute(f"DROP TABLE IF EXISTS {table}")

    cursor.execute("""
        CREATE TABLE teams (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL
        )
    """)

    cursor.execute("""
        CREATE TABLE tickets (
            id INTEGER PRIMARY KEY,
            jira_key TEXT NOT NULL,
            summary TEXT,
            status TEXT,
            priority TEXT,
            team_id INTEGER REFERENCES teams(id),
            story_points INTEGER,
            created_at TEXT
        )
    """)

    cursor.execute("""
        CREATE TABLE incidents (
            id INTEGER PRIMARY KEY,
            title TEXT NOT NULL,
            severity TEXT,
            resolved_at TEXT
        )
    """)

    cursor.executemany(
        "INSERT INTO teams (id, name) VALUES (?, ?)",
        [(i + 1, name) for i, name in enumerate(TEAMS)],
    )

    tickets = []
    for i in range(1, ticket_count + 1):
        tickets.append((
            i,
            f"NIB-{100 + i}",
            random.choice(SUMMARIES),
            random.choice(STATUSES),
            random.choice(PRIORITIES),
            random.randint(1, len(TEAMS)),
            random.choice([1, 2, 3, 5, 8, None]),
            random_date().strftime("%Y-%m-%d %H:%M:%S"),
        ))
    cursor.executemany("INSERT INTO tickets VALUES (?, ?, ?, ?, ?, ?, ?, ?)", tickets)

    incidents = []
    for i in range(1, 8):
        resolved = random_date(30).strftime("%Y-%m-%d %H:%M:%S") if i % 3 else None
        incidents.append((i, f"Incident {i}: {random.choice(SUMMARIES)}", random.choice(PRIORITIES), resolved))
    cursor.executemany("INSERT INTO incidents VALUES (?, ?, ?, ?)", incidents)

    conn.commit()
    conn.close()
    return db_path


if __name__ == "__main__":
    path = setup_tickets_database()
    print(f"Demo database created at {path}")
