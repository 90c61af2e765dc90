# foodhub/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Literal
from decimal import Decimal
from datetime import datetime

from foodhub.domain.status import OrderStatus


class CatalogItem(BaseModel):
    """Fakty katalogowe o produkcie w chwili odczytu."""

    menu_item_id: int
    name: str
    price: Decimal
    discount_price: Decimal | None = None
    is_available: bool
    partner_id: int
    partner_name: str
    partner_active: bool
    stock_quantity: int | None = None

    @property
    def effective_price(self) -> Decimal:
        if self.discount_price is not None and self.discount_price < self.price:
            return self.discount_price
        return self.price


class Principal(BaseModel):
    """Uwierzytelniony aktor przekazany przez zewnetrzny dostawce tozsamosci."""

    principal_id: str
    role: Literal["customer", "partner", "courier", "admin", "system"]


SYSTEM_PRINCIPAL = Principal(principal_id="system", role="system")


# ---------- cart ----------

class CartItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    menu_item_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)
    notes: str | None = Field(None, max_length=200)


class CartItemUpdateIn(BaseModel):
    quantity: int = Field(..., gt=0)
    notes: str | None = Field(None, max_length=200)


class DeliveryQuoteIn(BaseModel):
    postal_code: str = Field(..., min_length=2, max_length=16)


class CartLineOut(BaseModel):
    line_item_id: int
    menu_item_id: int
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    notes: str | None = None


class PartnerCartOut(BaseModel):
    partner_id: int
    items: List[CartLineOut]
    subtotal: Decimal


class DeliveryQuoteOut(BaseModel):
    postal_code: str
    zone_number: int
    zone_name: str
    base_fee: Decimal
    additional_partner_fee: Decimal
    peak_surcharge: Decimal
    total_fee: Decimal


class CartTotalsOut(BaseModel):
    items_total: Decimal
    delivery_fee: Decimal
    grand_total: Decimal


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    session_id: str
    partners: List[PartnerCartOut]
    delivery_quote: DeliveryQuoteOut | None = None
    totals: CartTotalsOut
    items_count: int
    partners_count: int
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CartValidationOut(BaseModel):
    is_valid: bool
    errors: List[str]
    unavailable_items: List[dict]


# ---------- order ----------

class CustomerInfo(BaseModel):
    name: str = Field(..., min_length=1, max_length=160)
    phone: str = Field(..., min_length=3, max_length=40)
    email: str | None = None


class DeliveryAddressIn(BaseModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=2, max_length=16)
    lat: float | None = Field(None, ge=-90, le=90)
    lng: float | None = Field(None, ge=-180, le=180)
    apartment: str | None = None
    delivery_notes: str | None = Field(None, max_length=300)


class OrderCreate(BaseModel):
    """Schema dla tworzenia zamowienia z koszyka."""

    session_id: str = Field(..., min_length=1)
    customer: CustomerInfo
    delivery_address: DeliveryAddressIn
    payment_method: Literal["card", "cash"] = "card"
    notes: str | None = Field(None, max_length=500)


class StatusUpdateIn(BaseModel):
    partner_id: int = Field(..., gt=0)
    status: OrderStatus
    note: str | None = Field(None, max_length=300)
    estimated_prep_time: int | None = Field(None, gt=0, le=240)


class CancelIn(BaseModel):
    reason: str = Field(..., min_length=1, max_length=200)
    detail: str | None = Field(None, max_length=300)


class DiscountIn(BaseModel):
    amount: Decimal = Field(..., gt=0)
    reason: str = Field(..., min_length=1, max_length=200)


class RefundIn(BaseModel):
    amount: Decimal | None = Field(None, gt=0)


class OrderItemOut(BaseModel):
    menu_item_id: int
    name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal
    notes: str | None = None


class SubOrderOut(BaseModel):
    partner_id: int
    sub_order_number: str
    status: OrderStatus
    subtotal: Decimal
    estimated_prep_minutes: int | None = None
    courier_id: str | None = None
    items: List[OrderItemOut]


class StatusHistoryOut(BaseModel):
    status: OrderStatus
    partner_id: int | None = None
    actor_id: str | None = None
    actor_role: str
    note: str | None = None
    timestamp: datetime


class CancellationOut(BaseModel):
    reason: str
    cancelled_by: str | None = None
    cancelled_by_role: str | None = None
    detail: str | None = None


class OrderOut(BaseModel):
    """Schema dla zamowienia (response)."""

    id: int
    order_number: str
    customer_id: str
    delivery_address: dict
    payment_method: str
    payment_status: str
    overall_status: OrderStatus

    subtotal: Decimal
    delivery_fee: Decimal
    service_fee: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    platform_commission: Decimal
    courier_earnings: Decimal
    total_price: Decimal
    refunded_amount: Decimal

    delivery_zone: int | None = None
    delivery_distance_km: float | None = None
    estimated_delivery_at: datetime | None = None

    sub_orders: List[SubOrderOut]
    status_history: List[StatusHistoryOut]
    cancellation: CancellationOut | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
