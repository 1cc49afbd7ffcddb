from contextlib import asynccontextmanager
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pathlib import Path
from typing import Optional

from economy_components import settings
from economy_components.economy import Economy
from economy_components.errors import AccountNotFound, CatalogItemNotFound, EconomyError
from economy_components.server_classes import (
    BuyRequest,
    CreateUser,
    LoginUser,
    OpenCaseRequest,
    SellRequest,
    SkinDefinition,
    TradeUpRequest,
)
from economy_components.skin_utils.rarity import classify
from economy_components.skin_utils.seed_utils import register_skins_from_file

#logging stuff
from economy_logs.endpoints import router as logs_router
from economy_logs.loggers import auth_logger, server_logger
from economy_logs.middleware import RequestLoggingMiddleware

router = APIRouter()


def get_economy(request: Request) -> Economy:
    return request.app.state.economy


def skin_payload(item) -> Optional[dict]:
    if item is None:
        return None
    data = item.to_dict()
    data["tier"] = classify(item.rarity).value
    return data


def seed_catalog(economy: Economy, seed_path) -> dict:
    results = register_skins_from_file(economy, seed_path)
    if results["added"]:
        server_logger.info(
            "catalog_skins_registered",
            count=len(results["added"]),
        )
    if results["errors"]:
        server_logger.warning(
            "catalog_registration_errors",
            errors=results["errors"]
        )
    return results


@router.get("/")
def read_root(request: Request):
    return {"service": "tradeup-economy", "case_cost": get_economy(request).case_cost}


@router.post("/signup")
def signup_user(user: CreateUser, request: Request):
    auth_logger.info("signup_attempt", username=user.username)

    account = get_economy(request).register_account(user.username, user.password)

    auth_logger.info("signup_success", account_id=account.id, username=account.username)
    return JSONResponse(status_code=201, content={
        "message": "User created successfully",
        **account.to_dict(),
    })


@router.post("/login")
def login_user(user: LoginUser, request: Request):
    auth_logger.info("login_attempt", username=user.username)

    account = get_economy(request).authenticate(user.username, user.password)
    if account is None:
        auth_logger.warning("login_failed", username=user.username)
        return JSONResponse(status_code=401, content={"error": "Invalid username or password"})

    auth_logger.info("login_success", account_id=account.id, username=account.username)
    return JSONResponse(status_code=200, content={
        "message": "Login successful",
        **account.to_dict(),
    })


@router.get("/accounts/{account_id}")
def get_account(account_id: int, request: Request):
    account = get_economy(request).get_account(account_id)
    if account is None:
        raise AccountNotFound("User not found", account_id=account_id)
    return account.to_dict()


@router.get("/catalog")
def list_catalog(request: Request):
    """All skins, ordered by name."""
    skins = [skin_payload(item) for item in get_economy(request).list_catalog()]
    return {"skins": skins, "count": len(skins)}


@router.get("/catalog/{name}")
def get_catalog_item(name: str, request: Request):
    item = get_economy(request).get_catalog_item_by_name(name)
    if item is None:
        raise CatalogItemNotFound(f"No skin named '{name}'", name=name)
    return skin_payload(item)


@router.post("/catalog")
def add_catalog_item(definition: SkinDefinition, request: Request):
    """Add a skin; posting an existing name returns the stored skin."""
    item = get_economy(request).add_catalog_item(definition)
    return JSONResponse(status_code=201, content=skin_payload(item))


@router.post("/admin/register_skins")
def register_skins(request: Request):
    """
    Admin endpoint: load the seed file and register any skins not yet in the catalog.
    Returns stats about skins added, skipped, and errors.
    """
    server_logger.info("admin_register_skins_invoked")

    seed_path = request.app.state.seed_path
    if not seed_path.exists():
        server_logger.error(
            "admin_register_skins_seed_not_found",
            path=str(seed_path)
        )
        return JSONResponse(status_code=500, content={"error": "seed file not found"})

    results = seed_catalog(get_economy(request), seed_path)
    return JSONResponse(status_code=200, content={
        "message": "Skin registration complete",
        **results,
        "summary": {
            "added_count": len(results["added"]),
            "skipped_count": len(results["skipped"]),
            "error_count": len(results["errors"])
        }
    })


@router.get("/inventory/{account_id}")
def get_inventory(account_id: int, request: Request):
    """Every owned unit with its skin; units whose skin is gone come back with skin = null."""
    economy = get_economy(request)
    if economy.get_account(account_id) is None:
        raise AccountNotFound("User not found", account_id=account_id)

    entries = economy.list_ownership(account_id)
    return {
        "items": [
            {"inventory_id": record.id, "skin": skin_payload(item)}
            for record, item in entries
        ],
        "total_items": len(entries),
        "total_value": sum(item.price for _, item in entries if item is not None),
    }


@router.post("/buy")
def buy_skin(req: BuyRequest, request: Request):
    economy = get_economy(request)
    record = economy.buy(req.account_id, req.skin_id, req.expected_price)
    return JSONResponse(status_code=201, content={
        "message": "Purchase successful",
        "inventory_id": record.id,
        "balance": economy.get_account(req.account_id).balance,
    })


@router.post("/sell")
def sell_skin(req: SellRequest, request: Request):
    balance = get_economy(request).sell(req.account_id, req.inventory_id, req.price)
    return {"message": "Sold", "inventory_id": req.inventory_id, "balance": balance}


@router.post("/open_case")
def open_case(req: OpenCaseRequest, request: Request):
    economy = get_economy(request)
    opening = economy.open_case(req.account_id, req.cost)
    return JSONResponse(status_code=201, content={
        "message": "Opened Case Successfully",
        "skin": skin_payload(opening.item),
        "inventory_id": opening.record_id,
        "balance": economy.get_account(req.account_id).balance,
    })


@router.post("/tradeup")
def trade_up(req: TradeUpRequest, request: Request):
    economy = get_economy(request)
    new_id = economy.trade_up(req.account_id, req.inventory_ids)
    produced = {record.id: item for record, item in economy.list_ownership(req.account_id)}
    return JSONResponse(status_code=201, content={
        "message": "Trade-up complete",
        "inventory_id": new_id,
        "skin": skin_payload(produced.get(new_id)),
    })


def economy_error_handler(request: Request, exc: EconomyError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup: make sure the store exists, then top up the catalog from the seed file
    app.state.economy.init()
    server_logger.info("store_ready", path=str(app.state.economy.db_path))

    if app.state.seed_path.exists():
        seed_catalog(app.state.economy, app.state.seed_path)
    yield


def create_app(economy: Optional[Economy] = None, seed_path=None) -> FastAPI:
    app = FastAPI(title="Trade-up economy", lifespan=lifespan)
    app.state.economy = economy or Economy()
    app.state.seed_path = Path(seed_path or settings.SEED_PATH)

    app.include_router(router)
    app.include_router(logs_router)
    app.add_exception_handler(EconomyError, economy_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware, logger=server_logger)

    return app


app = create_app()


def main():
    import uvicorn
    uvicorn.run("economy_components.server:app", host="127.0.0.1", port=8000)


if __name__ == "__main__":
    main()
