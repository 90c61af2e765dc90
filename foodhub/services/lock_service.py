# foodhub/services/lock_service.py
import uuid
from contextlib import contextmanager
from typing import Iterator

import redis

from foodhub.domain.errors import ConcurrencyConflict
from foodhub.utils.retry import redis_retry
from foodhub.utils.settings import REDIS_URL, ORDER_LOCK_TTL_SECONDS
from foodhub.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje skrypt lua atomowo, nikt nie wcisnie sie miedzy GET a DEL
#wiec zwalniamy tylko wlasny lock (token), nigdy cudzy po wygasnieciu TTL


class LockService:
    """
    -lock pojedynczego pisarza na sesje koszyka (tworzenie zamowienia)
    -zwalnianie locka tylko przez wlasciciela tokenu
    -atomowosc przy pomocy lua
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def session_key(session_id: str) -> str:
        return f"cart-session:{session_id}:order-lock"

    @redis_retry()
    def acquire(self, key: str, token: str, ttl: int) -> bool:
        logger.info(f"Acquire lock {key}")
        #SET key token NX EX ttl
        return bool(self.redis.set(name=key, value=token, nx=True, ex=ttl))

    @redis_retry()
    def release(self, key: str, token: str) -> bool:
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    @contextmanager
    def session_lock(self, session_id: str, ttl: int = ORDER_LOCK_TTL_SECONDS) -> Iterator[str]:
        key = self.session_key(session_id)
        token = uuid.uuid4().hex

        if not self.acquire(key, token, ttl):
            raise ConcurrencyConflict(
                "Another order is already being created for this cart",
                {"session_id": session_id},
            )
        try:
            yield token
        finally:
            try:
                self.release(key, token)
            except redis.RedisError as e:
                # lock i tak wygasnie po TTL
                logger.warning(f"Failed to release lock {key}: {e}")
