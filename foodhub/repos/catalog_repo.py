# foodhub/repos/catalog_repo.py
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from foodhub.data.models.catalog import MenuItemModel, PartnerModel, ReservationHistoryModel


class CatalogRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_item(self, menu_item_id: int) -> MenuItemModel | None:
        return self.db.get(MenuItemModel, menu_item_id)

    def get_partner(self, partner_id: int) -> PartnerModel | None:
        return self.db.get(PartnerModel, partner_id)

    def current_stock(self, menu_item_id: int) -> int | None:
        return self.db.execute(
            select(MenuItemModel.stock_quantity).where(MenuItemModel.id == menu_item_id)
        ).scalar_one_or_none()

    def decrement_stock(self, menu_item_id: int, quantity: int) -> int:
        # atomowo: warunek na stan w tym samym UPDATE, bez read-then-write
        result = self.db.execute(
            update(MenuItemModel)
            .where(
                MenuItemModel.id == menu_item_id,
                MenuItemModel.stock_quantity.is_not(None),
                MenuItemModel.stock_quantity >= quantity,
            )
            .values(stock_quantity=MenuItemModel.stock_quantity - quantity)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    def increment_stock(self, menu_item_id: int, quantity: int) -> int:
        result = self.db.execute(
            update(MenuItemModel)
            .where(MenuItemModel.id == menu_item_id, MenuItemModel.stock_quantity.is_not(None))
            .values(stock_quantity=MenuItemModel.stock_quantity + quantity)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    def add_history(self, entry: ReservationHistoryModel) -> ReservationHistoryModel:
        self.db.add(entry)
        self.db.flush()
        return entry

    def has_reserve(self, order_id: int, menu_item_id: int) -> bool:
        return self.db.execute(
            select(ReservationHistoryModel.id).where(
                ReservationHistoryModel.order_id == order_id,
                ReservationHistoryModel.menu_item_id == menu_item_id,
                ReservationHistoryModel.kind == "reserve",
            )
        ).first() is not None

    def has_release(self, order_id: int, menu_item_id: int) -> bool:
        return self.db.execute(
            select(ReservationHistoryModel.id).where(
                ReservationHistoryModel.order_id == order_id,
                ReservationHistoryModel.menu_item_id == menu_item_id,
                ReservationHistoryModel.kind == "release",
            )
        ).first() is not None

    def delete_history_before(self, cutoff: datetime) -> int:
        result = self.db.execute(
            delete(ReservationHistoryModel)
            .where(ReservationHistoryModel.created_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def count_items_with_history(self) -> int:
        return self.db.execute(
            select(func.count(func.distinct(ReservationHistoryModel.menu_item_id)))
        ).scalar_one()
