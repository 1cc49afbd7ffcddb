import json
from pathlib import Path
from typing import Any, Dict, List, TYPE_CHECKING

from economy_components.errors import EconomyError

if TYPE_CHECKING:
    from economy_components.economy import Economy


def load_skin_definitions(path: Path) -> List[Dict[str, Any]]:
    """
    Read a seed file: a JSON list of objects with at least a `name`, optionally
    rarity, price, collection, weapon_type and image_base64.
    """
    with open(path, 'r') as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"{Path(path).name}: expected a JSON list of skins")
    return data


def register_skins_from_file(economy: "Economy", path: Path) -> Dict[str, Any]:
    """
    Add every skin in the seed file to the catalog, best effort.
    Returns dict with the names added and skipped (already present) and per-entry errors.
    """
    results = {
        "added": [],
        "skipped": [],
        "errors": []
    }

    try:
        definitions = load_skin_definitions(path)
    except (OSError, ValueError) as e:
        # json.JSONDecodeError is a ValueError
        results["errors"].append(f"{Path(path).name}: {e}")
        return results

    existing = {item.name for item in economy.list_catalog()}

    for index, definition in enumerate(definitions):
        if not isinstance(definition, dict):
            results["errors"].append(f"entry {index}: not an object")
            continue
        name = definition.get("name")
        if not isinstance(name, str):
            results["errors"].append(f"entry {index}: name must be a string")
            continue
        if name in existing:
            results["skipped"].append(name)
            continue
        try:
            item = economy.add_catalog_item(definition)
        except EconomyError as e:
            results["errors"].append(f"entry {index}: {e.message}")
            continue
        existing.add(item.name)
        results["added"].append(item.name)

    return results
