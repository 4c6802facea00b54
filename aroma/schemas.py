from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# -------------------------
# Public ordering API
# -------------------------

class OrderLine(BaseModel):
    id: Any = Field(default=None, validation_alias=AliasChoices("id", "itemId", "item_id"))
    # Missing or non-positive quantities are coerced to 1 rather than rejected.
    qty: Any = Field(default=None, validation_alias=AliasChoices("qty", "quantity"))


class OrderCreate(BaseModel):
    items: List[OrderLine] = Field(default_factory=list)
    order_type: Optional[str] = Field(default=None, alias="orderType")
    table_token: Optional[str] = Field(default=None, alias="tableToken")
    table_number: Optional[Union[str, int]] = Field(default=None, alias="tableNumber")
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("table_number", mode="after")
    @classmethod
    def table_number_as_text(cls, value):
        return None if value is None else str(value)


class OrderCreated(BaseModel):
    orderId: int
    total: float


class OrderItemRead(BaseModel):
    id: int
    item_id: int
    name: str
    price: float
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    id: int
    table_number: Optional[str] = None
    table_token: Optional[str] = None
    order_type: str
    status: str
    total: float
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None
    created_at: datetime
    items: List[OrderItemRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class OkResponse(BaseModel):
    ok: bool = True


class MenuCategory(BaseModel):
    id: int
    key: str
    name: str
    icon: str


class MenuEntry(BaseModel):
    id: int
    price: float
    image: str
    video: str
    name: str
    description: str
    nutrition: str
    ingredients: str
    allergies: str
    prepTime: str


class MenuResponse(BaseModel):
    categories: List[MenuCategory]
    menu: dict[str, List[MenuEntry]]


class BrandColors(BaseModel):
    primary: str
    secondary: str


class PublicSettings(BaseModel):
    brandName: str
    logoUrl: str
    colors: BrandColors
    backgroundUrl: str
    fontFamily: str
    currency: str


class TopItem(BaseModel):
    item_id: int
    name: str
    qty: int
    sales: float


class PaymentIntentRequest(BaseModel):
    amount: float
    currency: Optional[str] = None


class PaymentIntentResponse(BaseModel):
    clientSecret: str


# -------------------------
# Admin API
# -------------------------

class Dashboard(BaseModel):
    pending: int
    confirmed: int
    totalSales: float


class CategoryCreate(BaseModel):
    name: str
    key: Optional[str] = None
    icon: str = "🍔"
    sort_order: int = 0
    hidden: bool = False


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    key: Optional[str] = None
    icon: Optional[str] = None
    sort_order: Optional[int] = None
    hidden: Optional[bool] = None


class CategoryRead(BaseModel):
    id: int
    key: str
    name: str
    icon: str
    sort_order: int
    hidden: bool

    model_config = ConfigDict(from_attributes=True)


class ItemBase(BaseModel):
    category_id: int
    name: str
    description: str = ""
    price: float = Field(ge=0)
    image_url: str = ""
    video_url: str = ""
    nutrition: str = ""
    ingredients: str = ""
    allergies: str = ""
    prep_time: str = ""
    hidden: bool = False
    sort_order: int = 0


class ItemCreate(ItemBase):
    pass


class ItemUpdate(BaseModel):
    category_id: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    nutrition: Optional[str] = None
    ingredients: Optional[str] = None
    allergies: Optional[str] = None
    prep_time: Optional[str] = None
    hidden: Optional[bool] = None
    sort_order: Optional[int] = None


class ItemRead(ItemBase):
    id: int
    category_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SettingsUpdate(BaseModel):
    brand_name: Optional[str] = None
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    background_url: Optional[str] = None
    font_family: Optional[str] = None
    currency: Optional[str] = None


class SettingsRead(BaseModel):
    brand_name: str
    logo_url: str
    primary_color: str
    secondary_color: str
    background_url: str
    font_family: str
    currency: str

    model_config = ConfigDict(from_attributes=True)


class TableCreate(BaseModel):
    number: Union[str, int]


class TableRead(BaseModel):
    id: int
    number: str
    token: str
    url: str
    qr: str


class StatusUpdate(BaseModel):
    status: str
