# foodhub/services/stock_service.py
from datetime import datetime

from sqlalchemy.orm import Session

from foodhub.data.models.catalog import ReservationHistoryModel
from foodhub.domain.errors import InsufficientStock, NotFound
from foodhub.repos.catalog_repo import CatalogRepo
from foodhub.utils.logging import get_logger

logger = get_logger(__name__)


class StockService:
    """
    Rezerwacja i zwrot stanow magazynowych.

    Nie robi commit - dziala w transakcji wywolujacego (tworzenie zamowienia,
    anulowanie, sweeper). Kazda zmiana stanu zostawia wpis w reservation_history.
    """

    def __init__(self, db: Session):
        self.repo = CatalogRepo(db)

    def reserve(self, order_id: int, menu_item_id: int, quantity: int) -> bool:
        """
        Zdejmuje `quantity` ze stanu. Zwraca False dla produktow bez sledzonego stanu.
        InsufficientStock gdy stan spadlby ponizej zera.
        """
        item = self.repo.get_item(menu_item_id)
        if not item:
            raise NotFound(f"Menu item {menu_item_id} not found", {"menu_item_id": menu_item_id})

        if item.stock_quantity is None:
            return False

        if self.repo.decrement_stock(menu_item_id, quantity) == 0:
            available = self.repo.current_stock(menu_item_id)
            logger.warning(
                f"Insufficient stock for item {menu_item_id}: requested {quantity}, available {available}"
            )
            raise InsufficientStock(menu_item_id, quantity, available)

        self.repo.add_history(
            ReservationHistoryModel(
                menu_item_id=menu_item_id,
                order_id=order_id,
                kind="reserve",
                quantity_delta=-quantity,
                reason="order_created",
            )
        )
        logger.info(
            f"RESERVED {quantity}x item {menu_item_id} for order {order_id}, "
            f"left: {self.repo.current_stock(menu_item_id)}"
        )
        return True

    def release(self, order_id: int, menu_item_id: int, quantity: int, reason: str) -> bool:
        """
        Oddaje `quantity` na stan. Idempotentne per (order_id, menu_item_id):
        drugi zwrot dla tej samej pary nic nie robi i zwraca False.
        Oddajemy tylko to, co zostalo zarezerwowane dla tego zamowienia.
        """
        if not self.repo.has_reserve(order_id, menu_item_id):
            return False

        if self.repo.has_release(order_id, menu_item_id):
            logger.info(f"Stock for item {menu_item_id} already returned for order {order_id}")
            return False

        if self.repo.increment_stock(menu_item_id, quantity) == 0:
            # produkt bez sledzonego stanu albo usuniety z katalogu
            return False

        self.repo.add_history(
            ReservationHistoryModel(
                menu_item_id=menu_item_id,
                order_id=order_id,
                kind="release",
                quantity_delta=quantity,
                reason=reason,
            )
        )
        logger.info(f"RETURNED {quantity}x item {menu_item_id} from order {order_id} ({reason})")
        return True

    def prune_history(self, cutoff: datetime) -> int:
        return self.repo.delete_history_before(cutoff)

    def items_with_history(self) -> int:
        return self.repo.count_items_with_history()
