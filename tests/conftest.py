import os
import random
import tempfile

# keep log files out of the working tree; must run before the loggers import
os.environ.setdefault("TRADEUP_LOG_DIR", tempfile.mkdtemp(prefix="tradeup-logs-"))

import pytest

from economy_components.economy import Economy
from economy_components.utils import db_access


SKINS = [
    {"name": "P250 | Sand Dune", "rarity": "Consumer Grade", "price": 0.05, "collection": "Dust"},
    {"name": "MP9 | Storm", "rarity": "Consumer Grade", "price": 0.10, "collection": "Lake"},
    {"name": "Nova | Polar Mesh", "rarity": "Industrial Grade", "price": 0.20},
    {"name": "UMP-45 | Urban DDPAT", "rarity": "Industrial Grade", "price": 0.25},
    {"name": "AK-47 | Elite Build", "rarity": "Mil-Spec Grade", "price": 1.50, "weapon_type": "Rifle"},
    {"name": "M4A4 | Evil Daimyo", "rarity": "Restricted", "price": 4.00, "weapon_type": "Rifle"},
    {"name": "AWP | Hyper Beast", "rarity": "Classified", "price": 20.00, "weapon_type": "Sniper Rifle"},
    {"name": "AK-47 | Asiimov", "rarity": "Covert", "price": 60.00, "weapon_type": "Rifle"},
    {"name": "★ Bayonet | Doppler", "rarity": "Covert", "price": 400.00, "weapon_type": "Knife"},
    {"name": "★ Karambit | Fade", "rarity": "Rare Special", "price": 1200.00, "weapon_type": "Knife"},
    {"name": "Sticker | Mystery", "rarity": None, "price": 0.50},
]


@pytest.fixture
def economy(tmp_path):
    return Economy(tmp_path / "db.sqlite", rng=random.Random(1234)).init()


@pytest.fixture
def catalog(economy):
    """The SKINS catalog, keyed by name."""
    return {item.name: item for item in (economy.add_catalog_item(skin) for skin in SKINS)}


@pytest.fixture
def alice(economy):
    return economy.register_account("alice", "hunter2")


@pytest.fixture
def bob(economy):
    return economy.register_account("bob", "correct horse")


@pytest.fixture
def grant(economy):
    """Put `count` units of a skin straight into an inventory, returning their ids."""
    def _grant(account_id, item_id, count=1):
        conn = db_access.get_db_connection(economy.db_path)
        try:
            return [db_access.add_inventory_item(conn, account_id, item_id) for _ in range(count)]
        finally:
            conn.close()
    return _grant


@pytest.fixture
def drop_skin(economy):
    """Delete a catalog row while inventory still points at it."""
    def _drop(skin_id):
        conn = db_access.get_db_connection(economy.db_path)
        try:
            conn.execute("PRAGMA foreign_keys = OFF;")
            conn.execute("DELETE FROM skins WHERE id = ?", (skin_id,))
        finally:
            conn.close()
    return _drop


def inventory_ids(economy, account_id):
    return sorted(record.id for record, _ in economy.list_ownership(account_id))
