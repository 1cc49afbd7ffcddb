import sqlite3

import pytest

from economy_components.economy import Economy
from economy_components.utils import db_access
from economy_components.utils.credentials import is_hashed


def table_names(db_path):
    conn = db_access.get_db_connection(db_path)
    try:
        return {row["name"] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
    finally:
        conn.close()


def test_init_db_creates_the_three_relations(tmp_path):
    db_path = db_access.init_db(tmp_path / "nested" / "db.sqlite")
    assert db_path.exists()
    assert {"users", "skins", "inventory"} <= table_names(db_path)


def test_init_db_is_repeatable(tmp_path):
    db_path = tmp_path / "db.sqlite"
    db_access.init_db(db_path)
    db_access.init_db(db_path)
    assert {"users", "skins", "inventory"} <= table_names(db_path)


def test_legacy_users_table_gets_default_balance(tmp_path):
    db_path = tmp_path / "old.sqlite"
    conn = sqlite3.connect(db_path)
    conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, username TEXT NOT NULL UNIQUE, password TEXT NOT NULL)")
    conn.execute("INSERT INTO users (username, password) VALUES ('veteran', 'x')")
    conn.commit()
    conn.close()

    db_access.init_db(db_path)

    conn = db_access.get_db_connection(db_path)
    try:
        row = db_access.get_user_by_username(conn, "veteran")
        assert row["balance"] == 100.0
    finally:
        conn.close()

    economy = Economy(db_path).init()
    assert economy.authenticate("veteran", "wrong") is None
    account = economy.authenticate("veteran", "x")
    assert account is not None
    assert account.balance == 100.0

    # the plaintext password is replaced by a hash on first login
    conn = db_access.get_db_connection(db_path)
    try:
        stored = db_access.get_user_by_username(conn, "veteran")["password"]
    finally:
        conn.close()
    assert is_hashed(stored)
    assert economy.authenticate("veteran", "x").id == account.id


def test_account_created_without_balance_defaults_to_100(tmp_path):
    db_path = db_access.init_db(tmp_path / "db.sqlite")
    conn = db_access.get_db_connection(db_path)
    try:
        user_id = db_access.create_user(conn, "new", "hash")
        assert db_access.get_user_by_id(conn, user_id)["balance"] == 100.0
    finally:
        conn.close()


def test_transaction_rolls_back_on_error(tmp_path):
    db_path = db_access.init_db(tmp_path / "db.sqlite")
    conn = db_access.get_db_connection(db_path)
    try:
        user_id = db_access.create_user(conn, "u", "hash")
        with pytest.raises(RuntimeError):
            with db_access.transaction(conn):
                db_access.change_user_balance(conn, user_id, -40)
                raise RuntimeError("boom")
        assert db_access.get_user_by_id(conn, user_id)["balance"] == 100.0
    finally:
        conn.close()


def test_ownership_requires_existing_account_and_skin(tmp_path):
    db_path = db_access.init_db(tmp_path / "db.sqlite")
    conn = db_access.get_db_connection(db_path)
    try:
        with pytest.raises(sqlite3.IntegrityError):
            db_access.add_inventory_item(conn, 999, 999)
    finally:
        conn.close()


def test_remove_inventory_item_is_filtered_by_owner(tmp_path):
    db_path = db_access.init_db(tmp_path / "db.sqlite")
    conn = db_access.get_db_connection(db_path)
    try:
        owner = db_access.create_user(conn, "owner", "hash")
        other = db_access.create_user(conn, "other", "hash")
        skin = db_access.insert_skin(conn, {"name": "Glock-18 | Candy Apple", "rarity": "Industrial Grade"})
        item_id = db_access.add_inventory_item(conn, owner, skin["id"])

        assert db_access.remove_inventory_item(conn, item_id, other) == 0
        assert db_access.remove_inventory_item(conn, item_id, owner) == 1
        assert db_access.remove_inventory_item(conn, item_id, owner) == 0
    finally:
        conn.close()


def test_insert_skin_keeps_first_definition(tmp_path):
    db_path = db_access.init_db(tmp_path / "db.sqlite")
    conn = db_access.get_db_connection(db_path)
    try:
        first = db_access.insert_skin(conn, {"name": "X", "price": 5})
        second = db_access.insert_skin(conn, {"name": "X", "price": 9, "rarity": "Covert"})
        assert first["id"] == second["id"]
        assert second["price"] == 5
        assert second["rarity"] is None
        assert db_access.count_skins(conn) == 1
    finally:
        conn.close()
