# foodhub/tasks/sweep.py
from typing import Any, Dict

from foodhub.celery_worker import celery_app
from foodhub.data.database import SessionLocal
from foodhub.services.order_service import OrderService
from foodhub.services.sweeper_service import SweeperService
from foodhub.utils.logging import get_logger

logger = get_logger(__name__)


def _serializable(summary: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: value.isoformat() if hasattr(value, "isoformat") else value
        for key, value in summary.items()
    }


@celery_app.task(name="foodhub.tasks.sweep.sweep_task")
def sweep_task(phase: str = "all"):
    logger.info(f"Sweep task started ({phase})")

    db = SessionLocal()
    try:
        sweeper = SweeperService(db, orders=OrderService(db))
        return _serializable(sweeper.run_phase(phase))
    finally:
        db.close()
