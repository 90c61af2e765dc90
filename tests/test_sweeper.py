from datetime import timedelta

import pytest
from sqlalchemy import update
from sqlalchemy.orm import sessionmaker

from foodhub.data.models import CartModel, MenuItemModel, OrderModel, ReservationHistoryModel
from foodhub.services.sweeper_service import EXPIRED_ORDER_REASON, SweeperService
from foodhub.tasks import sweep

from conftest import PARTNER_1


@pytest.fixture
def sweeper(db, orders, clock):
    return SweeperService(db, orders=orders, clock=clock)


def age_cart(db, session_id, age):
    db.execute(update(CartModel).where(CartModel.session_id == session_id).values(updated_at=age))
    db.commit()


def test_stale_pending_order_is_cancelled_and_stock_returned(placed_order, sweeper, db, clock):
    clock.advance(minutes=31)

    summary = sweeper.run()

    assert summary["expired_orders_cancelled"] == 1
    assert summary["stock_returned_items"] == 2
    assert summary["errors"] == {}
    assert summary["end_time"] >= summary["start_time"]

    db.expire_all()
    order = db.get(OrderModel, placed_order["id"])
    assert order.overall_status == "cancelled"
    assert {s.status for s in order.sub_orders} == {"cancelled"}
    assert order.cancellation_reason == EXPIRED_ORDER_REASON
    assert order.cancelled_by_role == "system"

    assert db.get(MenuItemModel, 1).stock_quantity == 10
    assert db.get(MenuItemModel, 3).stock_quantity == 5
    released = db.query(ReservationHistoryModel).filter_by(order_id=order.id, kind="release").all()
    assert sorted((r.menu_item_id, r.quantity_delta) for r in released) == [(1, 2), (3, 1)]


def test_fresh_and_accepted_orders_are_left_alone(placed_order, sweeper, orders, db, clock):
    clock.advance(minutes=10)
    assert sweeper.run_phase("orders")["expired_orders_cancelled"] == 0

    orders.update_sub_order_status(placed_order["id"], 1, "accepted", PARTNER_1)
    clock.advance(hours=2)
    assert sweeper.run_phase("orders")["expired_orders_cancelled"] == 0
    assert db.get(OrderModel, placed_order["id"]).overall_status == "accepted"


def test_sweeping_twice_is_harmless(placed_order, sweeper, db, clock):
    clock.advance(minutes=31)
    sweeper.run()
    second = sweeper.run()

    assert second["expired_orders_cancelled"] == 0
    assert db.get(MenuItemModel, 1).stock_quantity == 10


def test_expired_carts_are_removed(carts, sweeper, db, clock):
    carts.add_item("old", 1, 1)
    carts.add_item("fresh", 1, 1)
    age_cart(db, "old", clock() - timedelta(hours=25))

    summary = sweeper.run_phase("carts")

    assert summary["expired_carts_cleaned"] == 1
    assert summary["expired_orders_cancelled"] == 0
    assert [c.session_id for c in db.query(CartModel).all()] == ["fresh"]


def test_old_reservation_history_is_pruned(placed_order, sweeper, db, clock):
    db.execute(update(ReservationHistoryModel).values(created_at=clock() - timedelta(days=31)))
    db.commit()

    assert sweeper.run_phase("reservations")["old_reservations_cleaned"] == 2
    assert db.query(ReservationHistoryModel).count() == 0


class BrokenOrders:
    def cancel_stale(self, order_id, reason, detail):
        raise RuntimeError("database hiccup")


def test_failing_phase_does_not_stop_the_others(placed_order, carts, db, clock):
    carts.add_item("old", 1, 1)
    age_cart(db, "old", clock() - timedelta(days=2))
    clock.advance(minutes=31)

    summary = SweeperService(db, orders=BrokenOrders(), clock=clock).run()

    assert summary["errors"] == {"orders": "database hiccup"}
    assert summary["expired_carts_cleaned"] == 1
    assert summary["old_reservations_cleaned"] == 0
    assert db.get(OrderModel, placed_order["id"]).overall_status == "pending"


def test_unknown_phase(sweeper):
    with pytest.raises(ValueError):
        sweeper.run_phase("everything")


def test_health_check(placed_order, carts, sweeper, clock):
    check = sweeper.health_check()
    assert check["pending_orders"] == 1
    assert check["expired_pending_orders"] == 0
    assert check["needs_cleanup"] is False

    carts.add_item("s", 1, 1)
    clock.advance(minutes=31)
    check = sweeper.health_check()
    assert check["expired_pending_orders"] == 1
    assert check["active_carts"] == 1
    assert check["items_with_reservations"] == 2
    assert check["needs_cleanup"] is True


def test_sweep_task_returns_serializable_summary(engine, monkeypatch):
    monkeypatch.setattr(sweep, "SessionLocal", sessionmaker(bind=engine))

    result = sweep.sweep_task("carts")

    assert result["expired_carts_cleaned"] == 0
    assert result["errors"] == {}
    assert isinstance(result["start_time"], str)
