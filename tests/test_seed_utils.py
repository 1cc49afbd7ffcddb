import json

from economy_components.skin_utils.seed_utils import register_skins_from_file


def write_seed(path, data):
    path.write_text(json.dumps(data))
    return path


def test_registers_new_skins(economy, tmp_path):
    seed = write_seed(tmp_path / "skins.json", [
        {"name": "Glock-18 | Fade", "rarity": "Restricted", "price": 300, "weapon_type": "Pistol"},
        {"name": "USP-S | Kill Confirmed", "rarity": "Covert", "price": 45},
    ])

    results = register_skins_from_file(economy, seed)

    assert sorted(results["added"]) == ["Glock-18 | Fade", "USP-S | Kill Confirmed"]
    assert results["skipped"] == []
    assert results["errors"] == []
    assert economy.get_catalog_item_by_name("Glock-18 | Fade").weapon_type == "Pistol"


def test_rerun_skips_existing(economy, tmp_path):
    seed = write_seed(tmp_path / "skins.json", [{"name": "A"}, {"name": "B"}, {"name": "A"}])

    first = register_skins_from_file(economy, seed)
    second = register_skins_from_file(economy, seed)

    assert first["added"] == ["A", "B"]
    assert first["skipped"] == ["A"]
    assert sorted(second["skipped"]) == ["A", "A", "B"]
    assert len(economy.list_catalog()) == 2


def test_bad_entries_are_reported(economy, tmp_path):
    seed = write_seed(tmp_path / "skins.json", [{"name": "Good"}, {"price": 2}, "oops", {"name": "Neg", "price": -1}])

    results = register_skins_from_file(economy, seed)

    assert results["added"] == ["Good"]
    assert len(results["errors"]) == 3


def test_non_string_names_are_reported_per_entry(economy, tmp_path):
    seed = write_seed(tmp_path / "skins.json", [{"name": ["bad"]}, {"name": 7}, {"name": "Good"}])

    results = register_skins_from_file(economy, seed)

    assert results["added"] == ["Good"]
    assert len(results["errors"]) == 2
    assert [item.name for item in economy.list_catalog()] == ["Good"]


def test_unreadable_files(economy, tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    assert len(register_skins_from_file(economy, broken)["errors"]) == 1

    not_a_list = write_seed(tmp_path / "object.json", {"name": "X"})
    assert len(register_skins_from_file(economy, not_a_list)["errors"]) == 1

    assert len(register_skins_from_file(economy, tmp_path / "missing.json")["errors"]) == 1
    assert economy.list_catalog() == []
