# foodhub/celery_worker.py
from celery import Celery

from foodhub.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    CELERY_TASK_ALWAYS_EAGER,
    SWEEP_INTERVAL_SECONDS,
)

celery_app = Celery(
    "foodhub",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# WAZNE: Explicite importuj taski, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "foodhub.tasks.sweep",
    "foodhub.services.notification_service",
)

# Konfiguracja beat schedule
celery_app.conf.beat_schedule = {
    "sweep-expired-state": {
        "task": "foodhub.tasks.sweep.sweep_task",
        "schedule": SWEEP_INTERVAL_SECONDS,  # domyslnie co 30 minut
    },
}

celery_app.conf.timezone = "UTC"
celery_app.conf.task_always_eager = CELERY_TASK_ALWAYS_EAGER
