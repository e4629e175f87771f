"""Exceptions shared by the store adapters."""

from pymongo.errors import ConnectionFailure
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

# Client errors meaning a store is down rather than a single request failing.
# pymongo's ServerSelectionTimeoutError and AutoReconnect are ConnectionFailures.
STORE_OUTAGE_ERRORS: tuple[type[Exception], ...] = (ConnectionFailure, RedisConnectionError, RedisTimeoutError)


class StoreUnavailableError(RuntimeError):
    """A backing store could not be reached at startup."""
