import redis

from company_service.core.config import Settings


def create_redis_pool(settings: Settings) -> redis.ConnectionPool:
    """
    Redis 연결 풀 생성 (timeout 포함)
    """
    return redis.ConnectionPool.from_url(
        settings.event_bus_url,
        decode_responses=True,
        socket_timeout=5,
        socket_connect_timeout=3,
    )


def get_redis_conn(pool: redis.ConnectionPool) -> redis.Redis:
    """
    Redis 연결 객체 반환
    """
    return redis.Redis(connection_pool=pool)
