# foodhub/repos/order_repo.py
from datetime import datetime
from typing import List

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from foodhub.data.models.order import OrderModel, OrderSequenceModel, SubOrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int, for_update: bool = False) -> OrderModel | None:
        stmt = select(OrderModel).where(OrderModel.id == order_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def next_sequence(self, day: str) -> int:
        # UPDATE blokuje wiersz licznika do konca transakcji
        bumped = self.db.execute(
            update(OrderSequenceModel)
            .where(OrderSequenceModel.day == day)
            .values(last_value=OrderSequenceModel.last_value + 1)
            .execution_options(synchronize_session=False)
        ).rowcount

        if bumped == 0:
            # pierwszy numer dnia, rownolegly insert skonczy sie IntegrityError
            self.db.add(OrderSequenceModel(day=day, last_value=1))
            self.db.flush()
            return 1

        return self.db.execute(
            select(OrderSequenceModel.last_value).where(OrderSequenceModel.day == day)
        ).scalar_one()

    def find_stale_pending(self, cutoff: datetime) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.overall_status == "pending", OrderModel.created_at < cutoff)
                .order_by(OrderModel.created_at)
            ).scalars()
        )

    def count_by_status(self, status: str, created_before: datetime | None = None) -> int:
        stmt = select(func.count(OrderModel.id)).where(OrderModel.overall_status == status)
        if created_before is not None:
            stmt = stmt.where(OrderModel.created_at < created_before)
        return self.db.execute(stmt).scalar_one()

    def list_for_customer(self, customer_id: str, status: str | None = None) -> List[OrderModel]:
        stmt = select(OrderModel).where(OrderModel.customer_id == customer_id)
        if status:
            stmt = stmt.where(OrderModel.overall_status == status)
        return list(self.db.execute(stmt.order_by(OrderModel.created_at.desc())).scalars())

    def list_for_partner(self, partner_id: int, status: str | None = None) -> List[OrderModel]:
        stmt = (
            select(OrderModel)
            .join(SubOrderModel, SubOrderModel.order_id == OrderModel.id)
            .where(SubOrderModel.partner_id == partner_id)
        )
        if status:
            stmt = stmt.where(SubOrderModel.status == status)
        return list(self.db.execute(stmt.order_by(OrderModel.created_at.desc())).scalars().unique())

    def list_for_courier(self, courier_id: str, status: str | None = None) -> List[OrderModel]:
        stmt = (
            select(OrderModel)
            .join(SubOrderModel, SubOrderModel.order_id == OrderModel.id)
            .where(SubOrderModel.courier_id == courier_id)
        )
        if status:
            stmt = stmt.where(SubOrderModel.status == status)
        return list(self.db.execute(stmt.order_by(OrderModel.created_at.desc())).scalars().unique())

    def list_all(self, status: str | None = None) -> List[OrderModel]:
        stmt = select(OrderModel)
        if status:
            stmt = stmt.where(OrderModel.overall_status == status)
        return list(self.db.execute(stmt.order_by(OrderModel.created_at.desc())).scalars())
