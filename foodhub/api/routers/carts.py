#foodhub/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from foodhub.data.database import get_db
from foodhub.domain.schemas import (
    CartItemIn,
    CartItemUpdateIn,
    CartOut,
    CartValidationOut,
    DeliveryQuoteIn,
)
from foodhub.services.cart_service import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


def get_service(db: Session = Depends(get_db)) -> CartService:
    return CartService(db=db)


@router.get("/{session_id}", response_model=CartOut)
def get_cart(session_id: str, svc: CartService = Depends(get_service)):
    cart = svc.get_cart(session_id)
    if not cart:
        raise HTTPException(status_code=404, detail="Cart not found")
    return cart


@router.post("/{session_id}/items", response_model=CartOut)
def add_item(session_id: str, payload: CartItemIn, svc: CartService = Depends(get_service)):
    return svc.add_item(
        session_id=session_id,
        menu_item_id=payload.menu_item_id,
        quantity=payload.quantity,
        notes=payload.notes,
    )


@router.patch("/{session_id}/items/{line_item_id}", response_model=CartOut)
def update_item(
    session_id: str,
    line_item_id: int,
    payload: CartItemUpdateIn,
    svc: CartService = Depends(get_service),
):
    return svc.update_item(session_id, line_item_id, payload.quantity, payload.notes)


@router.delete("/{session_id}/items/{line_item_id}", response_model=CartOut)
def remove_item(session_id: str, line_item_id: int, svc: CartService = Depends(get_service)):
    return svc.remove_item(session_id, line_item_id)


@router.delete("/{session_id}", status_code=204)
def clear_cart(session_id: str, svc: CartService = Depends(get_service)):
    svc.clear(session_id)
    return Response(status_code=204)


@router.post("/{session_id}/delivery", response_model=CartOut)
def quote_delivery(session_id: str, payload: DeliveryQuoteIn, svc: CartService = Depends(get_service)):
    return svc.quote_delivery(session_id, payload.postal_code)


@router.get("/{session_id}/validation", response_model=CartValidationOut)
def validate_cart(session_id: str, svc: CartService = Depends(get_service)):
    return svc.validate(session_id)
