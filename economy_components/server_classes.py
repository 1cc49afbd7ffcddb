from pydantic import BaseModel, Field
from typing import List, Optional

class SkinDefinition(BaseModel):
    name: str = Field(..., min_length=1)
    rarity: Optional[str] = None
    price: float = Field(0.0, ge=0, allow_inf_nan=False)
    collection: Optional[str] = None
    weapon_type: Optional[str] = None
    image_base64: Optional[str] = None

class CreateUser(BaseModel):
    username: str
    password: str

class LoginUser(BaseModel):
    username: str
    password: str

class BuyRequest(BaseModel):
    account_id: int
    skin_id: int
    expected_price: Optional[float] = None

class SellRequest(BaseModel):
    account_id: int
    inventory_id: int
    price: Optional[float] = None  # If None, sells at catalog price

class OpenCaseRequest(BaseModel):
    account_id: int
    cost: Optional[float] = None  # If None, uses the configured case cost

class TradeUpRequest(BaseModel):
    account_id: int
    inventory_ids: List[int]
