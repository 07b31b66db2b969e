"""
Dramatiq broker configuration.

Redis-based message broker for distribution jobs.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import CurrentMessage, Retries, ShutdownNotifications
from loguru import logger

from payout.config.settings import settings
from payout.utils.exceptions import is_retryable

redis_broker = RedisBroker(
    host=settings.redis_host,
    port=settings.redis_port,
    password=settings.redis_password if settings.redis_password else None,
    db=settings.redis_db,
)

# ShutdownNotifications: lets a running distribution stop between users
# CurrentMessage: exposes retry count to actors
# Retries: only lost races and a busy lock are worth another attempt
redis_broker.add_middleware(ShutdownNotifications())
redis_broker.add_middleware(CurrentMessage())
redis_broker.add_middleware(
    Retries(
        max_retries=5,
        min_backoff=5000,  # 5 seconds
        max_backoff=300000,  # 5 minutes
        retry_when=lambda retries_so_far, exception: (
            retries_so_far < 5 and is_retryable(exception)
        ),
    )
)

dramatiq.set_broker(redis_broker)

broker = redis_broker

logger.info(
    f"Dramatiq broker initialized: "
    f"redis://{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"
)
