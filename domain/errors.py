# domain/errors.py


class PoolError(Exception):
    """Base class for every error raised by an object pool."""


class InvalidResource(PoolError, ValueError):
    """Raised when a resource is released to a pool that does not hold it checked out."""


class PoolTimeout(PoolError, TimeoutError):
    """Raised when a bounded-wait acquire gives up."""


class PoolClosed(PoolError, RuntimeError):
    """Raised when a closed pool is asked for a resource."""
