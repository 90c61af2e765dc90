# foodhub/repos/cart_repo.py
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from foodhub.data.models.cart import CartModel
from foodhub.data.models.cart_item import CartItemModel, CartPartnerModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_session(self, session_id: str) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.session_id == session_id)
        ).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.flush()
        return cart

    def find_line(self, cart: CartModel, line_item_id: int) -> CartItemModel | None:
        for partner_cart in cart.partners:
            for item in partner_cart.items:
                if item.id == line_item_id:
                    return item
        return None

    def find_partner_cart(self, cart: CartModel, partner_id: int) -> CartPartnerModel | None:
        for partner_cart in cart.partners:
            if partner_cart.partner_id == partner_id:
                return partner_cart
        return None

    def update_cart_version(self, cart_id: int, old_version: int, new_data: Dict[str, Any]) -> int:
        # update ... set version = v+1 where id = ? and version = v
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**new_data)
        )
        return result.rowcount

    def delete_cart(self, cart: CartModel) -> None:
        self.db.delete(cart)
        self.db.flush()

    def find_expired(self, cutoff: datetime) -> List[CartModel]:
        return list(
            self.db.execute(
                select(CartModel).where(CartModel.updated_at < cutoff)
            ).scalars()
        )

    def count_all(self) -> int:
        return self.db.execute(select(func.count(CartModel.id))).scalar_one()

    def count_expired(self, cutoff: datetime) -> int:
        return self.db.execute(
            select(func.count(CartModel.id)).where(CartModel.updated_at < cutoff)
        ).scalar_one()

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
