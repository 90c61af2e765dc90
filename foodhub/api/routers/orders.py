# foodhub/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from foodhub.api.deps import get_principal
from foodhub.data.database import get_db
from foodhub.domain.schemas import (
    CancelIn,
    DiscountIn,
    OrderCreate,
    OrderOut,
    Principal,
    RefundIn,
    StatusUpdateIn,
)
from foodhub.domain.status import OrderStatus
from foodhub.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session = Depends(get_db)) -> OrderService:
    return OrderService(db)


@router.post("/", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_service),
):
    """
    Tworzy zamowienie z koszyka sesji.
    Powiadomienia wysylane asynchronicznie.
    """
    return svc.create_order(
        session_id=payload.session_id,
        customer=principal,
        customer_info=payload.customer.model_dump(),
        delivery_address=payload.delivery_address.model_dump(),
        payment_method=payload.payment_method,
        notes=payload.notes,
    )


@router.get("/", response_model=List[OrderOut])
def list_orders(
    status: OrderStatus | None = Query(None),
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_service),
):
    return svc.list_orders(principal, status.value if status else None)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_service),
):
    return svc.get_order(order_id, principal)


@router.post("/{order_id}/status", response_model=OrderOut)
def update_status(
    order_id: int,
    payload: StatusUpdateIn,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_service),
):
    return svc.update_sub_order_status(
        order_id=order_id,
        partner_id=payload.partner_id,
        new_status=payload.status,
        actor=principal,
        note=payload.note,
        estimated_prep_time=payload.estimated_prep_time,
    )


@router.post("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    payload: CancelIn,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_service),
):
    return svc.cancel_order(order_id, principal, payload.reason, payload.detail)


@router.post("/{order_id}/payment", response_model=OrderOut)
def mark_paid(
    order_id: int,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_service),
):
    return svc.mark_paid(order_id, principal)


@router.post("/{order_id}/discount", response_model=OrderOut)
def apply_discount(
    order_id: int,
    payload: DiscountIn,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_service),
):
    return svc.apply_discount(order_id, principal, payload.amount, payload.reason)


@router.post("/{order_id}/refund", response_model=OrderOut)
def refund_order(
    order_id: int,
    payload: RefundIn,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_service),
):
    return svc.refund_order(order_id, principal, payload.amount)
