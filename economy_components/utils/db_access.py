import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Dict, Any, List, Union

from economy_components import settings

BUSY_TIMEOUT_SECONDS = 5.0

PathLike = Union[str, Path]


def get_db_connection(db_path: Optional[PathLike] = None):
    # autocommit; multi-statement writes go through transaction()
    conn = sqlite3.connect(db_path or settings.DB_PATH, timeout=BUSY_TIMEOUT_SECONDS, isolation_level=None)
    conn.row_factory = sqlite3.Row  # Allows accessing columns by name
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


@contextmanager
def transaction(conn):
    """Run the enclosed statements as one unit: all of them commit or none do.

    BEGIN IMMEDIATE takes the write lock up front, so balance checks made inside
    the block cannot be invalidated by another writer before COMMIT.
    """
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    else:
        conn.execute("COMMIT")


def init_db(db_path: Optional[PathLike] = None):
    """
    Create the three economy tables if missing and upgrade older stores in place.
    """
    db_path = Path(db_path or settings.DB_PATH)
    if not db_path.parent.exists():
        db_path.parent.mkdir(parents=True)

    conn = get_db_connection(db_path)
    try:
        # Users Table
        conn.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY,
            username TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            balance REAL NOT NULL DEFAULT 100.0
        );
        """)

        # Skins Table - the item catalog, written by seeding
        conn.execute("""
        CREATE TABLE IF NOT EXISTS skins (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL UNIQUE,
            rarity TEXT,
            price REAL DEFAULT 0.0,
            collection TEXT,
            weapon_type TEXT,
            image_base64 TEXT
        );
        """)

        # Inventory Table - one row per owned unit, no quantity column
        conn.execute("""
        CREATE TABLE IF NOT EXISTS inventory (
            id INTEGER PRIMARY KEY,
            user_id INTEGER NOT NULL,
            skin_id INTEGER NOT NULL,
            FOREIGN KEY(user_id) REFERENCES users(id),
            FOREIGN KEY(skin_id) REFERENCES skins(id)
        );
        """)
        conn.execute("CREATE INDEX IF NOT EXISTS idx_inventory_user ON inventory(user_id);")

        # Stores created before balances existed get the column with its default
        columns = {row["name"] for row in conn.execute("PRAGMA table_info(users)")}
        if "balance" not in columns:
            conn.execute(
                f"ALTER TABLE users ADD COLUMN balance REAL NOT NULL DEFAULT {settings.STARTING_BALANCE}"
            )
    finally:
        conn.close()
    return db_path


# ---------------------------------------------------------------- accounts

def get_user_by_id(conn, user_id: int) -> Optional[sqlite3.Row]:
    return conn.execute(
        "SELECT id, username, password, balance FROM users WHERE id = ?", (user_id,)
    ).fetchone()


def get_user_by_username(conn, username: str) -> Optional[sqlite3.Row]:
    return conn.execute(
        "SELECT id, username, password, balance FROM users WHERE username = ?", (username,)
    ).fetchone()


def create_user(conn, username: str, password_hash: str, balance: Optional[float] = None) -> int:
    """Insert a user and return its id. Raises sqlite3.IntegrityError on a taken username."""
    if balance is None:
        cursor = conn.execute(
            "INSERT INTO users (username, password) VALUES (?, ?)",
            (username, password_hash),
        )
    else:
        cursor = conn.execute(
            "INSERT INTO users (username, password, balance) VALUES (?, ?, ?)",
            (username, password_hash, balance),
        )
    return cursor.lastrowid


def set_user_password(conn, user_id: int, password_hash: str) -> None:
    conn.execute("UPDATE users SET password = ? WHERE id = ?", (password_hash, user_id))


def change_user_balance(conn, user_id: int, delta: float) -> Optional[float]:
    """Add `delta` (negative to debit) and return the new balance, None if no such user."""
    cursor = conn.execute(
        "UPDATE users SET balance = balance + ? WHERE id = ?", (delta, user_id)
    )
    if cursor.rowcount == 0:
        return None
    row = conn.execute("SELECT balance FROM users WHERE id = ?", (user_id,)).fetchone()
    return float(row["balance"])


def total_balance(conn) -> float:
    row = conn.execute("SELECT COALESCE(SUM(balance), 0.0) AS total FROM users").fetchone()
    return float(row["total"])


# ---------------------------------------------------------------- catalog

SKIN_COLUMNS = "id, name, rarity, price, collection, weapon_type, image_base64"


def insert_skin(conn, definition: Dict[str, Any]) -> sqlite3.Row:
    """Insert a catalog skin unless its name exists; return the stored row either way."""
    conn.execute("""
        INSERT OR IGNORE INTO skins (name, rarity, price, collection, weapon_type, image_base64)
        VALUES (?, ?, ?, ?, ?, ?)
    """, (
        definition["name"],
        definition.get("rarity"),
        definition.get("price") or 0.0,
        definition.get("collection"),
        definition.get("weapon_type"),
        definition.get("image_base64"),
    ))
    return get_skin_by_name(conn, definition["name"])


def get_skin_by_id(conn, skin_id: int) -> Optional[sqlite3.Row]:
    return conn.execute(f"SELECT {SKIN_COLUMNS} FROM skins WHERE id = ?", (skin_id,)).fetchone()


def get_skin_by_name(conn, name: str) -> Optional[sqlite3.Row]:
    return conn.execute(f"SELECT {SKIN_COLUMNS} FROM skins WHERE name = ?", (name,)).fetchone()


def list_skins(conn) -> List[sqlite3.Row]:
    return conn.execute(f"SELECT {SKIN_COLUMNS} FROM skins ORDER BY name, id").fetchall()


def count_skins(conn) -> int:
    return conn.execute("SELECT COUNT(*) AS count FROM skins").fetchone()["count"]


# ---------------------------------------------------------------- inventory

def add_inventory_item(conn, user_id: int, skin_id: int) -> int:
    cursor = conn.execute(
        "INSERT INTO inventory (user_id, skin_id) VALUES (?, ?)", (user_id, skin_id)
    )
    return cursor.lastrowid


def get_inventory_item(conn, item_id: int) -> Optional[sqlite3.Row]:
    return conn.execute(
        "SELECT id, user_id, skin_id FROM inventory WHERE id = ?", (item_id,)
    ).fetchone()


def get_inventory_for_user(conn, user_id: int) -> List[sqlite3.Row]:
    """
    Every inventory row of a user joined with its skin. Skin columns are NULL
    when the row points at a skin that no longer exists.
    """
    return conn.execute("""
        SELECT inventory.id AS id, inventory.user_id AS user_id, inventory.skin_id AS skin_id,
               skins.id AS skin_row_id, skins.name AS name, skins.rarity AS rarity,
               skins.price AS price, skins.collection AS collection,
               skins.weapon_type AS weapon_type, skins.image_base64 AS image_base64
        FROM inventory
        LEFT JOIN skins ON skins.id = inventory.skin_id
        WHERE inventory.user_id = ?
        ORDER BY inventory.id
    """, (user_id,)).fetchall()


def remove_inventory_item(conn, item_id: int, user_id: int) -> int:
    """Delete one owned row; returns how many rows went (0 or 1)."""
    cursor = conn.execute(
        "DELETE FROM inventory WHERE id = ? AND user_id = ?", (item_id, user_id)
    )
    return cursor.rowcount


def count_inventory(conn, user_id: Optional[int] = None) -> int:
    if user_id is None:
        row = conn.execute("SELECT COUNT(*) AS count FROM inventory").fetchone()
    else:
        row = conn.execute(
            "SELECT COUNT(*) AS count FROM inventory WHERE user_id = ?", (user_id,)
        ).fetchone()
    return row["count"]
