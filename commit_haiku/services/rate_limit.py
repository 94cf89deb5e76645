import time
import logging
from typing import Optional

from redis.asyncio import Redis

log = logging.getLogger("rate_limit")

_redis: dict[str, Redis] = {}
# In-process counters for the current minute only
_mem_ip: dict[str, int] = {}
_mem_bucket: Optional[int] = None


def _redis_client(url: Optional[str]) -> Optional[Redis]:
    if not url:
        return None
    r = _redis.get(url)
    if r is None:
        r = Redis.from_url(url, encoding="utf-8", decode_responses=True)
        _redis[url] = r
    return r


def _minute_bucket(ts: Optional[float] = None) -> int:
    return int((ts or time.time()) // 60)


def reset() -> None:
    """Drop in-process counters."""
    global _mem_bucket
    _mem_ip.clear()
    _mem_bucket = None


def _allow_in_memory(ip: str, limit: int, bucket: int) -> bool:
    global _mem_bucket
    if bucket != _mem_bucket:
        # New window: earlier minutes are never read again
        _mem_ip.clear()
        _mem_bucket = bucket
    count = _mem_ip.get(ip, 0) + 1
    _mem_ip[ip] = count
    return count <= limit


async def allow_ip(ip: Optional[str], limit: int, redis_url: Optional[str] = None) -> bool:
    """Count one request for ``ip`` in the current minute; False once over ``limit``.

    A limit of 0 disables limiting. Requests without a client address are let
    through. Any Redis failure, including a malformed ``redis_url``, falls back
    to the per-process counter.
    """
    if not ip or limit <= 0:
        return True
    bucket = _minute_bucket()
    key = f"haiku:rl:ip:{ip}:{bucket}"
    if redis_url:
        try:
            r = _redis_client(redis_url)
            val = await r.incr(key)
            if val == 1:
                await r.expire(key, 120)
            return val <= limit
        except Exception as e:
            log.warning("rate_limit_redis_unavailable error=%s", e)
    return _allow_in_memory(ip, limit, bucket)
