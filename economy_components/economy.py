"""Economy transaction engine.

Every operation that touches a balance or an inventory goes through `Economy`.
An `Economy` is the explicit handle on one store: it owns the database path,
the random source used for drops and the per-account locks. Each call opens
its own connection and closes it before returning.

Mutations run inside a single `BEGIN IMMEDIATE` transaction, so an operation
either commits completely or leaves the store untouched. Failures are raised
as `EconomyError` subclasses (see `errors.py`).
"""
import math
import random
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

from pydantic import ValidationError

from economy_components import settings
from economy_components.errors import (
    AccountNotFound,
    CatalogItemNotFound,
    ConsumptionFailed,
    DuplicateRecords,
    EconomyError,
    EmptyCatalog,
    HandleTaken,
    InsufficientFunds,
    InvalidCredentials,
    InvalidInput,
    InvalidInputCount,
    InvalidPrice,
    MixedTiers,
    NoCandidates,
    NotOwned,
    PriceMismatch,
    RecordNotFound,
)
from economy_components.server_classes import SkinDefinition
from economy_components.skin_utils import selector
from economy_components.skin_utils.rarity import Tier, classify, next_tier
from economy_components.skin_utils.skin import Account, CatalogItem, OwnershipRecord
from economy_components.utils import db_access
from economy_components.utils.credentials import hash_password, is_hashed, verify_password
from economy_logs.base import Logger
from economy_logs.loggers import economy_logger, transaction_logger


class CaseOpening(NamedTuple):
    item: CatalogItem
    record_id: int


def _check_amount(amount: float, what: str) -> float:
    amount = float(amount)
    if not math.isfinite(amount) or amount < 0:
        raise InvalidPrice(f"{what} must be a non-negative number")
    return amount


def _item_from_inventory_row(row) -> Optional[CatalogItem]:
    # skin columns are NULL when the inventory row dangles
    if row["skin_row_id"] is None:
        return None
    return CatalogItem(
        id=row["skin_row_id"],
        name=row["name"],
        rarity=row["rarity"],
        price=float(row["price"] or 0.0),
        collection=row["collection"],
        weapon_type=row["weapon_type"],
        image_base64=row["image_base64"],
    )


def _eligible_outputs(catalog: Iterable[CatalogItem], tier: Tier) -> List[CatalogItem]:
    return [item for item in catalog if classify(item.rarity) is tier and not item.is_knife]


class Economy:

    def __init__(
        self,
        db_path: Optional[Union[str, Path]] = None,
        rng: Optional[random.Random] = None,
        case_cost: Optional[float] = None,
        logger: Optional[Logger] = None,
    ):
        self.db_path = Path(db_path or settings.DB_PATH)
        self.rng = rng or random.Random()
        self.case_cost = _check_amount(settings.CASE_COST if case_cost is None else case_cost, "Case cost")
        self.logger = logger or economy_logger
        self._locks: Dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def init(self) -> "Economy":
        db_access.init_db(self.db_path)
        return self

    # ------------------------------------------------------------ plumbing

    @contextmanager
    def _connection(self):
        conn = db_access.get_db_connection(self.db_path)
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _locked_account(self, conn, account_id: int):
        # unknown ids never get a lock; accounts are never deleted
        if db_access.get_user_by_id(conn, account_id) is None:
            raise AccountNotFound("User not found", account_id=account_id)
        with self._locks_guard:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = self._locks[account_id] = threading.Lock()
        with lock:
            yield

    @contextmanager
    def _logged(self, op: str, **context):
        log = self.logger.bind(op=op, **context)
        log.debug(f"{op}_attempt")
        try:
            yield log
        except EconomyError as e:
            log.warning(f"{op}_rejected", code=e.code, error=e.message)
            raise

    # ------------------------------------------------------------ accounts

    def register_account(self, handle: str, secret: str, balance: Optional[float] = None) -> Account:
        with self._logged("register", username=handle):
            if not handle or not secret:
                raise InvalidCredentials("Missing username or password")
            if balance is not None:
                balance = _check_amount(balance, "Starting balance")

            with self._connection() as conn:
                if db_access.get_user_by_username(conn, handle):
                    raise HandleTaken("username taken", username=handle)
                try:
                    user_id = db_access.create_user(conn, handle, hash_password(secret), balance)
                except sqlite3.IntegrityError:
                    raise HandleTaken("username taken", username=handle)
                account = Account.from_row(db_access.get_user_by_id(conn, user_id))

        transaction_logger.info("account_registered", account_id=account.id, balance=account.balance)
        return account

    def authenticate(self, handle: str, secret: str) -> Optional[Account]:
        with self._connection() as conn:
            row = db_access.get_user_by_username(conn, handle)
            if row is None or not verify_password(secret, row["password"]):
                return None
            if not is_hashed(row["password"]):
                db_access.set_user_password(conn, row["id"], hash_password(secret))
                self.logger.info("password_rehashed", account_id=row["id"])
        return Account.from_row(row)

    def get_account(self, account_id: int) -> Optional[Account]:
        with self._connection() as conn:
            row = db_access.get_user_by_id(conn, account_id)
        return Account.from_row(row) if row else None

    # ------------------------------------------------------------ catalog

    def list_catalog(self) -> List[CatalogItem]:
        with self._connection() as conn:
            return [CatalogItem.from_row(row) for row in db_access.list_skins(conn)]

    def get_catalog_item_by_name(self, name: str) -> Optional[CatalogItem]:
        with self._connection() as conn:
            row = db_access.get_skin_by_name(conn, name)
        return CatalogItem.from_row(row) if row else None

    def get_catalog_item(self, item_id: int) -> Optional[CatalogItem]:
        with self._connection() as conn:
            row = db_access.get_skin_by_id(conn, item_id)
        return CatalogItem.from_row(row) if row else None

    def add_catalog_item(self, definition: Union[SkinDefinition, dict]) -> CatalogItem:
        """Add a skin to the catalog. An existing name returns the stored skin unchanged."""
        if not isinstance(definition, SkinDefinition):
            try:
                definition = SkinDefinition.model_validate(definition)
            except ValidationError as e:
                raise InvalidInput(f"Invalid skin definition: {e.errors()[0]['msg']}")

        with self._connection() as conn:
            row = db_access.insert_skin(conn, definition.model_dump())
        return CatalogItem.from_row(row)

    def tradeup_candidates(self, tier: Tier) -> List[CatalogItem]:
        """Catalog skins a trade-up into `tier` may produce (knives excluded)."""
        return _eligible_outputs(self.list_catalog(), tier)

    # ------------------------------------------------------------ inventory

    def list_ownership(self, account_id: int) -> List[Tuple[OwnershipRecord, Optional[CatalogItem]]]:
        with self._connection() as conn:
            rows = db_access.get_inventory_for_user(conn, account_id)
        return [(OwnershipRecord.from_row(row), _item_from_inventory_row(row)) for row in rows]

    def inventory_value(self, account_id: int) -> float:
        return sum(item.price for _, item in self.list_ownership(account_id) if item is not None)

    # ------------------------------------------------------------ trading

    def buy(self, account_id: int, item_id: int, expected_price: Optional[float] = None) -> OwnershipRecord:
        """Debit the catalog price and add one unit of the skin to the inventory."""
        with self._logged("buy", account_id=account_id, skin_id=item_id):
            if expected_price is not None:
                expected_price = _check_amount(expected_price, "Expected price")

            with self._connection() as conn, self._locked_account(conn, account_id):
                with db_access.transaction(conn):
                    user = db_access.get_user_by_id(conn, account_id)
                    skin_row = db_access.get_skin_by_id(conn, item_id)
                    if skin_row is None:
                        raise CatalogItemNotFound("Skin not found", skin_id=item_id)
                    skin = CatalogItem.from_row(skin_row)

                    if expected_price is not None and not math.isclose(expected_price, skin.price):
                        raise PriceMismatch(
                            "Price changed since it was shown",
                            expected_price=expected_price, price=skin.price,
                        )
                    if user["balance"] < skin.price:
                        raise InsufficientFunds(
                            "Not enough funds to buy this skin",
                            balance=user["balance"], price=skin.price,
                        )

                    new_balance = db_access.change_user_balance(conn, account_id, -skin.price)
                    record_id = db_access.add_inventory_item(conn, account_id, skin.id)

        transaction_logger.info(
            "buy", account_id=account_id, skin_id=skin.id, inventory_id=record_id,
            price=skin.price, balance=new_balance,
        )
        return OwnershipRecord(id=record_id, user_id=account_id, skin_id=skin.id)

    def sell(self, account_id: int, record_id: int, price: Optional[float] = None) -> float:
        """Credit `price` (default: the skin's catalog price), drop the unit, return the new balance."""
        with self._logged("sell", account_id=account_id, inventory_id=record_id):
            if price is not None:
                price = _check_amount(price, "Sell price")

            with self._connection() as conn, self._locked_account(conn, account_id):
                with db_access.transaction(conn):
                    record = db_access.get_inventory_item(conn, record_id)
                    if record is None:
                        raise RecordNotFound("Inventory item not found", inventory_id=record_id)
                    if record["user_id"] != account_id:
                        raise NotOwned(f"You do not own inventory item {record_id}", inventory_id=record_id)

                    if price is None:
                        skin_row = db_access.get_skin_by_id(conn, record["skin_id"])
                        price = float(skin_row["price"] or 0.0) if skin_row else 0.0

                    # credit first; the delete is re-checked against the owner
                    new_balance = db_access.change_user_balance(conn, account_id, price)
                    if db_access.remove_inventory_item(conn, record_id, account_id) == 0:
                        raise ConsumptionFailed(
                            f"Failed to remove inventory item {record_id}", inventory_id=record_id
                        )

        transaction_logger.info(
            "sell", account_id=account_id, inventory_id=record_id,
            skin_id=record["skin_id"], price=price, balance=new_balance,
        )
        return new_balance

    def open_case(self, account_id: int, cost: Optional[float] = None) -> CaseOpening:
        """Pay `cost` and receive one skin drawn by rarity weight from the whole catalog."""
        cost = self.case_cost if cost is None else cost
        with self._logged("open_case", account_id=account_id, cost=cost):
            cost = _check_amount(cost, "Case cost")

            with self._connection() as conn, self._locked_account(conn, account_id):
                with db_access.transaction(conn):
                    user = db_access.get_user_by_id(conn, account_id)
                    if user["balance"] < cost:
                        raise InsufficientFunds(
                            "Not enough funds to open a case", balance=user["balance"], price=cost
                        )
                    catalog = [CatalogItem.from_row(row) for row in db_access.list_skins(conn)]
                    if not catalog:
                        raise EmptyCatalog("No skins in catalog")

                    selected = selector.select(catalog, rng=self.rng)
                    new_balance = db_access.change_user_balance(conn, account_id, -cost)
                    record_id = db_access.add_inventory_item(conn, account_id, selected.id)

        transaction_logger.info(
            "open_case", account_id=account_id, skin_id=selected.id, skin_name=selected.name,
            rarity=selected.rarity, inventory_id=record_id, cost=cost, balance=new_balance,
        )
        return CaseOpening(item=selected, record_id=record_id)

    def trade_up(self, account_id: int, record_ids: Iterable[int]) -> int:
        """Consume ten same-tier units and grant one random skin of the next tier.

        Returns the new inventory id. Validation and selection only read; the
        insert and the ten deletes commit together or not at all.
        """
        record_ids = list(record_ids)
        with self._logged("trade_up", account_id=account_id, inventory_ids=record_ids) as log:
            if len(record_ids) != settings.TRADEUP_INPUT_COUNT:
                raise InvalidInputCount(
                    f"Tradeup requires exactly {settings.TRADEUP_INPUT_COUNT} items", count=len(record_ids)
                )
            if len(set(record_ids)) != len(record_ids):
                raise DuplicateRecords("Each inventory item may only be used once")

            with self._connection() as conn, self._locked_account(conn, account_id):
                owned = {row["id"]: row for row in db_access.get_inventory_for_user(conn, account_id)}
                tiers = []
                for record_id in record_ids:
                    row = owned.get(record_id)
                    if row is None:
                        raise NotOwned(f"You do not own inventory item {record_id}", inventory_id=record_id)
                    item = _item_from_inventory_row(row)
                    if item is None:
                        raise CatalogItemNotFound(
                            f"Inventory item {record_id} has no skin metadata", inventory_id=record_id
                        )
                    tiers.append(classify(item.rarity))

                tier = tiers[0]
                if any(t is not tier for t in tiers):
                    raise MixedTiers(
                        "All items must be the same rarity to trade up",
                        tiers=sorted({t.value for t in tiers}),
                    )
                target = next_tier(tier)

                catalog = [CatalogItem.from_row(row) for row in db_access.list_skins(conn)]
                candidates = _eligible_outputs(catalog, target)
                if not candidates:
                    raise NoCandidates(
                        f"No candidate skins found for target rarity '{target.value}'", tier=target.value
                    )
                selected = selector.choose_uniform(candidates, self.rng)

                try:
                    with db_access.transaction(conn):
                        new_id = db_access.add_inventory_item(conn, account_id, selected.id)
                        for record_id in record_ids:
                            if db_access.remove_inventory_item(conn, record_id, account_id) == 0:
                                raise ConsumptionFailed(
                                    f"Failed to consume inventory item {record_id}", inventory_id=record_id
                                )
                except ConsumptionFailed as e:
                    log.error("trade_up_rolled_back", inventory_id=e.details.get("inventory_id"))
                    raise

        transaction_logger.info(
            "trade_up", account_id=account_id, consumed=record_ids, from_tier=tier.value,
            to_tier=target.value, skin_id=selected.id, skin_name=selected.name, inventory_id=new_id,
        )
        return new_id
