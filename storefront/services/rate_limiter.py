import redis
from redis.exceptions import RedisError
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from storefront.utils.settings import AUTH_RATE_LIMIT, AUTH_RATE_WINDOW_SECONDS, REDIS_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


#tenacity retry
def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(RedisError),
    )


class RateLimiter:
    """
    Fixed window counter per key:
    -SET key 0 NX EX window opens the window (only if it does not exist)
    -INCR key counts the hit, TTL of the window is kept
    both in one MULTI so a window never lives without its TTL
    """

    def __init__(
        self,
        client: redis.Redis | None = None,
        limit: int = AUTH_RATE_LIMIT,
        window_seconds: int = AUTH_RATE_WINDOW_SECONDS,
    ):
        self.redis = client or redis.Redis.from_url(REDIS_URL, decode_responses=True)
        self.limit = limit
        self.window_seconds = window_seconds

    @redis_retry()
    def _hit(self, key: str) -> int:
        pipe = self.redis.pipeline(transaction=True)
        pipe.set(key, 0, nx=True, ex=self.window_seconds)
        pipe.incr(key)
        _, count = pipe.execute()
        return int(count)

    def allow(self, scope: str, client_id: str) -> bool:
        key = f"ratelimit:{scope}:{client_id}"
        try:
            count = self._hit(key)
        except RedisError as e:
            #throttle store down: let the request through rather than lock everyone out
            logger.warning(f"Rate limiter unavailable for {key}: {e}")
            return True

        if count > self.limit:
            logger.warning(f"Rate limit exceeded for {key}: {count}/{self.limit}")
            return False
        return True
