import pytest

from conftest import SKINS
from economy_components.errors import HandleTaken, InvalidCredentials, InvalidInput, InvalidPrice
from economy_components.utils import db_access


class TestAccounts:

    def test_register_starts_with_default_balance(self, economy):
        account = economy.register_account("carol", "pw")
        assert account.username == "carol"
        assert account.balance == 100.0
        assert economy.get_account(account.id) == account

    def test_register_with_explicit_balance(self, economy):
        assert economy.register_account("rich", "pw", balance=2500).balance == 2500.0

    def test_register_rejects_negative_balance(self, economy):
        with pytest.raises(InvalidPrice):
            economy.register_account("debtor", "pw", balance=-1)

    def test_handle_must_be_unique(self, economy, alice):
        with pytest.raises(HandleTaken) as excinfo:
            economy.register_account("alice", "other")
        assert excinfo.value.status_code == 409

    @pytest.mark.parametrize("handle, secret", [("", "pw"), ("dave", "")])
    def test_register_requires_credentials(self, economy, handle, secret):
        with pytest.raises(InvalidCredentials):
            economy.register_account(handle, secret)

    def test_secret_is_not_stored_in_plain_text(self, economy, alice):
        conn = db_access.get_db_connection(economy.db_path)
        try:
            stored = db_access.get_user_by_username(conn, "alice")["password"]
        finally:
            conn.close()
        assert stored != "hunter2"
        assert stored.startswith("pbkdf2_sha256$")

    def test_authenticate(self, economy, alice):
        assert economy.authenticate("alice", "hunter2") == alice
        assert economy.authenticate("alice", "wrong") is None
        assert economy.authenticate("nobody", "hunter2") is None

    def test_get_unknown_account(self, economy):
        assert economy.get_account(12345) is None


class TestCatalog:

    def test_add_catalog_item_is_idempotent(self, economy):
        first = economy.add_catalog_item({"name": "X", "price": 5})
        second = economy.add_catalog_item({"name": "X", "price": 5})
        assert first.id == second.id
        assert len(economy.list_catalog()) == 1

    def test_first_insert_wins(self, economy):
        economy.add_catalog_item({"name": "X", "price": 5, "rarity": "Restricted"})
        again = economy.add_catalog_item({"name": "X", "price": 50, "rarity": "Covert"})
        assert again.price == 5
        assert again.rarity == "Restricted"

    def test_invalid_definition_is_rejected(self, economy):
        with pytest.raises(InvalidInput):
            economy.add_catalog_item({"name": "Bad", "price": -3})
        with pytest.raises(InvalidInput):
            economy.add_catalog_item({"price": 3})

    @pytest.mark.parametrize("price", [float("inf"), float("nan")])
    def test_non_finite_price_never_reaches_the_catalog(self, economy, price):
        with pytest.raises(InvalidInput):
            economy.add_catalog_item({"name": "Inf", "rarity": "Covert", "price": price})
        assert economy.get_catalog_item_by_name("Inf") is None

    def test_list_catalog_is_ordered_by_name(self, economy, catalog):
        names = [item.name for item in economy.list_catalog()]
        assert names == sorted(skin["name"] for skin in SKINS)

    def test_lookup_by_name(self, economy, catalog):
        item = economy.get_catalog_item_by_name("AWP | Hyper Beast")
        assert item == catalog["AWP | Hyper Beast"]
        assert item.price == 20.0
        assert economy.get_catalog_item_by_name("AWP | Dragon Lore") is None

    def test_knife_markers(self, catalog):
        assert catalog["★ Bayonet | Doppler"].is_knife
        assert catalog["★ Karambit | Fade"].is_knife
        assert not catalog["AK-47 | Asiimov"].is_knife


class TestOwnership:

    def test_list_ownership_pairs_records_with_skins(self, economy, catalog, alice, grant):
        awp = catalog["AWP | Hyper Beast"]
        ids = grant(alice.id, awp.id, 2)

        entries = economy.list_ownership(alice.id)
        assert [record.id for record, _ in entries] == ids
        assert all(item == awp for _, item in entries)
        assert economy.inventory_value(alice.id) == 40.0

    def test_dangling_reference_is_tolerated(self, economy, catalog, alice, grant, drop_skin):
        sticker = catalog["Sticker | Mystery"]
        [dangling_id] = grant(alice.id, sticker.id)
        grant(alice.id, catalog["MP9 | Storm"].id)
        drop_skin(sticker.id)

        entries = dict((record.id, item) for record, item in economy.list_ownership(alice.id))
        assert entries[dangling_id] is None
        assert len(entries) == 2
        assert economy.inventory_value(alice.id) == pytest.approx(0.10)

    def test_inventories_are_per_account(self, economy, catalog, alice, bob, grant):
        grant(alice.id, catalog["MP9 | Storm"].id, 3)
        assert economy.list_ownership(bob.id) == []
