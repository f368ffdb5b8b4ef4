import sqlite3
from datetime import datetime, timezone

from campuslf.match_utils import DATE_FIELDS, KINDS


STATUSES = ["open", "matched", "returned", "closed"]
ITEM_TABLES = {"lost": "lost_items", "found": "found_items"}


def get_db(db_path: str):
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def now_utc():
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat(timespec="seconds")


def ensure_column(conn, table, col_name, col_def_sql):
    cols = [r["name"] for r in conn.execute(f"PRAGMA table_info({table})").fetchall()]
    if col_name not in cols:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {col_name} {col_def_sql}")


def table_for(kind: str) -> str:
    if kind not in ITEM_TABLES:
        raise ValueError(f"unknown item kind: {kind!r}")
    return ITEM_TABLES[kind]


def init_db(db_path: str):
    conn = get_db(db_path)
    try:
        for kind in KINDS:
            table = ITEM_TABLES[kind]
            date_col = DATE_FIELDS[kind]
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    item_name TEXT NOT NULL,
                    description TEXT,
                    category TEXT,
                    {date_col} TEXT,
                    location TEXT,
                    status TEXT NOT NULL DEFAULT 'open',
                    created_at TEXT NOT NULL
                )
                """
            )
            # Added after the initial schema.
            ensure_column(conn, table, "updated_at", "TEXT")
            conn.execute(f"CREATE INDEX IF NOT EXISTS idx_{table}_status ON {table}(status)")
            conn.execute(f"CREATE INDEX IF NOT EXISTS idx_{table}_created ON {table}(created_at)")
        conn.commit()
    finally:
        conn.close()


def insert_item(conn, kind: str, fields: dict) -> int:
    table = table_for(kind)
    date_col = DATE_FIELDS[kind]
    cur = conn.execute(
        f"""
        INSERT INTO {table} (item_name, description, category, {date_col}, location, status, created_at)
        VALUES (?, ?, ?, ?, ?, 'open', ?)
        """,
        (
            fields["item_name"],
            fields.get("description"),
            fields.get("category"),
            fields.get(date_col),
            fields.get("location"),
            now_utc(),
        ),
    )
    return int(cur.lastrowid)


def get_item(conn, kind: str, item_id: int):
    table = table_for(kind)
    return conn.execute(f"SELECT * FROM {table} WHERE id=?", (item_id,)).fetchone()


def fetch_open_items(conn, kind: str):
    table = table_for(kind)
    return conn.execute(
        f"SELECT * FROM {table} WHERE status='open' ORDER BY created_at DESC, id DESC"
    ).fetchall()


def update_item_status(conn, kind: str, item_id: int, status: str) -> bool:
    if status not in STATUSES:
        raise ValueError(f"unknown status: {status!r}")
    table = table_for(kind)
    cur = conn.execute(
        f"UPDATE {table} SET status=?, updated_at=? WHERE id=?",
        (status, now_utc(), item_id),
    )
    return cur.rowcount > 0


def count_items_by_status(conn, kind: str) -> dict:
    table = table_for(kind)
    rows = conn.execute(
        f"""
        SELECT status, COUNT(*) AS c
        FROM {table}
        GROUP BY status
        """
    ).fetchall()
    counts = {s: 0 for s in STATUSES}
    for r in rows:
        counts[r["status"]] = int(r["c"])
    return counts
