# foodhub/utils/retry.py
import logging

import redis
import requests
from sqlalchemy.exc import IntegrityError
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from foodhub.utils.logging import get_logger

logger = get_logger(__name__)


def http_retry(attempts: int = 3):
    # webhook powiadomien, bledy sieci i 5xx przez raise_for_status
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(requests.RequestException),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )


def redis_retry(attempts: int = 3):
    # lock sesji przy tworzeniu zamowienia
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )


def db_retry(attempts: int = 3):
    # konflikt unique przy rownoleglym zakladaniu licznika numerow zamowien
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=0.5),
        retry=retry_if_exception_type(IntegrityError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
