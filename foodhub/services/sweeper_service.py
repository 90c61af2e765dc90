# foodhub/services/sweeper_service.py
from datetime import datetime, timedelta
from typing import Any, Callable, Dict

from sqlalchemy.orm import Session

from foodhub.data.database import utcnow
from foodhub.repos.cart_repo import CartRepo
from foodhub.repos.order_repo import OrderRepo
from foodhub.services.order_service import OrderService
from foodhub.services.stock_service import StockService
from foodhub.utils.settings import (
    CART_TTL_SECONDS,
    PENDING_ORDER_TIMEOUT_SECONDS,
    RESERVATION_RETENTION_DAYS,
)
from foodhub.utils.logging import get_logger

logger = get_logger(__name__)

EXPIRED_ORDER_REASON = "expired - not confirmed in time"

PHASES = ("carts", "orders", "reservations")


class SweeperService:
    """
    Okresowe sprzatanie, trzy niezalezne fazy:
    1. usuniecie porzuconych koszykow (brak zmian dluzej niz TTL)
    2. anulowanie zamowien wiszacych w pending (ze zwrotem stanow)
    3. przyciecie starej historii rezerwacji

    Kazda faza ma wlasna granice bledu - blad jednej nie zatrzymuje pozostalych,
    trafia do podsumowania zamiast wyjatku.
    """

    def __init__(
        self,
        db: Session,
        orders: OrderService,
        stock: StockService | None = None,
        clock: Callable[[], datetime] = utcnow,
        cart_ttl: timedelta = timedelta(seconds=CART_TTL_SECONDS),
        pending_timeout: timedelta = timedelta(seconds=PENDING_ORDER_TIMEOUT_SECONDS),
        retention: timedelta = timedelta(days=RESERVATION_RETENTION_DAYS),
    ):
        self.db = db
        self.carts = CartRepo(db)
        self.order_repo = OrderRepo(db)
        self.orders = orders
        self.stock = stock or StockService(db)
        self.clock = clock
        self.cart_ttl = cart_ttl
        self.pending_timeout = pending_timeout
        self.retention = retention

    def run(self) -> Dict[str, Any]:
        return self.run_phase("all")

    def run_phase(self, phase: str) -> Dict[str, Any]:
        if phase != "all" and phase not in PHASES:
            raise ValueError(f"Unknown cleanup phase '{phase}', expected one of: {', '.join(PHASES)}, all")

        selected = PHASES if phase == "all" else (phase,)
        started = self.clock()
        logger.info(f"Sweep started ({phase})")

        summary: Dict[str, Any] = {
            "expired_carts_cleaned": 0,
            "expired_orders_cancelled": 0,
            "stock_returned_items": 0,
            "old_reservations_cleaned": 0,
            "errors": {},
            "start_time": started,
        }

        for name in selected:
            try:
                if name == "carts":
                    summary["expired_carts_cleaned"] = self.expire_carts()
                elif name == "orders":
                    cancelled, returned = self.cancel_stale_orders()
                    summary["expired_orders_cancelled"] = cancelled
                    summary["stock_returned_items"] = returned
                else:
                    summary["old_reservations_cleaned"] = self.prune_reservations()
            except Exception as e:
                self.db.rollback()
                logger.exception(f"Sweep phase '{name}' failed")
                summary["errors"][name] = str(e)

        summary["end_time"] = self.clock()
        summary["duration_ms"] = int((summary["end_time"] - started).total_seconds() * 1000)

        logger.info(f"Sweep finished: {summary}")
        return summary

    def expire_carts(self) -> int:
        cutoff = self.clock() - self.cart_ttl
        carts = self.carts.find_expired(cutoff)
        logger.info(f"Found {len(carts)} expired carts")

        for cart in carts:
            self.carts.delete_cart(cart)
        self.db.commit()

        logger.info(f"Cleaned {len(carts)} expired carts")
        return len(carts)

    def cancel_stale_orders(self) -> tuple[int, int]:
        cutoff = self.clock() - self.pending_timeout
        stale_ids = [o.id for o in self.order_repo.find_stale_pending(cutoff)]
        logger.info(f"Found {len(stale_ids)} expired pending orders")

        cancelled = 0
        returned = 0
        minutes = int(self.pending_timeout.total_seconds() // 60)
        for order_id in stale_ids:
            items = self.orders.cancel_stale(
                order_id,
                reason=EXPIRED_ORDER_REASON,
                detail=f"Order was not confirmed within {minutes} minutes",
            )
            cancelled += 1
            returned += items

        logger.info(f"Auto-cancelled {cancelled} expired orders, returned {returned} items to stock")
        return cancelled, returned

    def prune_reservations(self) -> int:
        cutoff = self.clock() - self.retention
        removed = self.stock.prune_history(cutoff)
        self.db.commit()

        logger.info(f"Removed {removed} reservation history entries older than {cutoff.isoformat()}")
        return removed

    def health_check(self) -> Dict[str, Any]:
        now = self.clock()
        check = {
            "timestamp": now,
            "pending_orders": self.order_repo.count_by_status("pending"),
            "expired_pending_orders": self.order_repo.count_by_status("pending", now - self.pending_timeout),
            "active_carts": self.carts.count_all(),
            "expired_carts": self.carts.count_expired(now - self.cart_ttl),
            "items_with_reservations": self.stock.items_with_history(),
        }
        check["needs_cleanup"] = check["expired_pending_orders"] > 0 or check["expired_carts"] > 0
        return check
