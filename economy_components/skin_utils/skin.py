# Plain record types handed out by the stores and the economy engine.
# Rows come back from sqlite as sqlite3.Row; `from_row` maps them by column name.
from dataclasses import dataclass, asdict
from typing import Optional

KNIFE_MARKERS = ("knife", "★")


@dataclass(frozen=True)
class Account:
    id: int
    username: str
    balance: float

    @classmethod
    def from_row(cls, row) -> "Account":
        return cls(id=row["id"], username=row["username"], balance=float(row["balance"]))

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CatalogItem:
    id: int
    name: str
    rarity: Optional[str] = None
    price: float = 0.0
    collection: Optional[str] = None
    weapon_type: Optional[str] = None
    image_base64: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "CatalogItem":
        return cls(
            id=row["id"],
            name=row["name"],
            rarity=row["rarity"],
            price=float(row["price"] or 0.0),
            collection=row["collection"],
            weapon_type=row["weapon_type"],
            image_base64=row["image_base64"],
        )

    @property
    def is_knife(self) -> bool:
        """Knives and other starred items never come out of a trade-up."""
        name = self.name.lower()
        weapon = (self.weapon_type or "").lower()
        return "knife" in weapon or any(marker in name for marker in KNIFE_MARKERS)

    def to_dict(self, include_image: bool = False) -> dict:
        data = asdict(self)
        if not include_image:
            data.pop("image_base64")
        return data


@dataclass(frozen=True)
class OwnershipRecord:
    id: int
    user_id: int
    skin_id: int

    @classmethod
    def from_row(cls, row) -> "OwnershipRecord":
        return cls(id=row["id"], user_id=row["user_id"], skin_id=row["skin_id"])

    def to_dict(self) -> dict:
        return asdict(self)
