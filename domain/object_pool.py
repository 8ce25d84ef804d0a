# domain/object_pool.py
import logging
import threading
import time
from collections import deque
from contextlib import contextmanager

from .errors import InvalidResource, PoolClosed, PoolTimeout

logger = logging.getLogger(__name__)


class PooledObjectMixin:
    """
    A mixin for resources that are managed by an ObjectPool.

    Subclasses implement `reset()`, which must erase every bit of state a
    caller could observe. The mixin provides a `release()` method to hand the
    object back to its pool. The pool is responsible for setting the `pool`
    attribute on the object.
    """

    def __init__(self, *args, **kwargs):
        # This allows the mixin to be safely used with classes that have their own __init__
        super().__init__(*args, **kwargs)
        self.pool = None

    def reset(self):
        raise NotImplementedError

    def release(self):
        """Returns this object to the pool it originated from."""
        if not self.pool:
            raise RuntimeError("This object does not belong to a pool.")
        self.pool.release(self)


def close_resource(obj):
    """Calls `obj.close()` if the resource has one, logging instead of raising."""
    close = getattr(obj, "close", None)
    if close is None:
        return
    try:
        close()
    except Exception:
        logger.warning("Failed to close pooled resource %r", obj, exc_info=True)


def prefill(factory, count, owner):
    """
    Creates `count` resources up front.

    If the factory raises part-way through, the resources created so far are
    closed and the exception propagates, so no half-built pool survives.
    """
    if not isinstance(count, int) or isinstance(count, bool) or count < 1:
        raise ValueError(f"Pool size must be a positive integer, got {count!r}")

    created = []
    try:
        for _ in range(count):
            obj = factory()
            if isinstance(obj, PooledObjectMixin):
                obj.pool = owner
            created.append(obj)
    except BaseException:
        for obj in created:
            close_resource(obj)
        raise
    logger.debug("Pre-filled pool with %d resources", count)
    return created


class ObjectPool:
    """
    A bounded, thread-safe pool of reusable resources.

    All resources are created eagerly when the pool is built. `acquire()`
    blocks until one is idle, `release()` resets a resource and returns it to
    the idle set. The pool never grows; it only shrinks when a resource fails
    to reset and is dropped.
    """

    def __init__(self, factory, count):
        """
        Initializes the pool.

        Args:
            factory (callable): A no-argument function that returns a new resource.
                                The resource must have a `reset()` method and may
                                inherit from PooledObjectMixin.
            count (int): How many resources to create. This is the capacity.
        """
        self._factory = factory
        self._cond = threading.Condition(threading.Lock())
        self._idle = deque(prefill(factory, count, self))
        self._capacity = count
        # id(obj) -> obj for everything a caller currently holds
        self._checked_out = {}
        self._releasing = set()
        self._dropped = 0
        self._closed = False

    # --- Introspection ---

    @property
    def capacity(self) -> int:
        with self._cond:
            return self._capacity

    @property
    def idle_count(self) -> int:
        with self._cond:
            return len(self._idle)

    @property
    def in_use_count(self) -> int:
        with self._cond:
            return len(self._checked_out)

    @property
    def dropped_count(self) -> int:
        with self._cond:
            return self._dropped

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def stats(self) -> dict:
        with self._cond:
            return {
                "capacity": self._capacity,
                "idle": len(self._idle),
                "in_use": len(self._checked_out),
                "dropped": self._dropped,
                "closed": self._closed,
            }

    # --- Core operations ---

    def acquire(self, timeout=None):
        """
        Takes an idle resource out of the pool.

        Args:
            timeout (float | None): None waits forever. Otherwise the number of
                                    seconds to wait before raising PoolTimeout;
                                    0 means "only if one is idle right now".

        Returns:
            A resource that is now checked out to the caller.
        """
        deadline = None if timeout is None else time.monotonic() + max(0.0, timeout)
        with self._cond:
            while True:
                if self._closed:
                    raise PoolClosed("Cannot acquire from a closed pool.")
                if self._capacity == 0:
                    raise PoolClosed("Every resource in this pool has been dropped.")
                if self._idle:
                    obj = self._idle.popleft()
                    self._checked_out[id(obj)] = obj
                    logger.debug("Acquired %r (%d idle)", obj, len(self._idle))
                    return obj
                if deadline is None:
                    self._cond.wait()
                else:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise PoolTimeout(
                            f"No resource became available within {timeout} seconds."
                        )
                    self._cond.wait(remaining)

    def release(self, obj):
        """
        Resets a resource and returns it to the idle set.

        The reset runs outside the pool lock. A resource whose reset raises is
        dropped instead of being returned, and the pool's capacity shrinks.

        Raises:
            InvalidResource: If `obj` is not currently checked out from this pool.
        """
        key = id(obj)
        with self._cond:
            if self._checked_out.get(key) is not obj or key in self._releasing:
                raise InvalidResource(
                    f"{obj!r} is not checked out from this pool."
                )
            self._releasing.add(key)

        try:
            obj.reset()
        except Exception:
            logger.warning(
                "Dropping %r from pool: reset failed", obj, exc_info=True
            )
            self._drop(obj)
            return
        except BaseException:
            # Interrupted mid-reset: the state is unknown, so it cannot be reused.
            self._drop(obj)
            raise

        with self._cond:
            self._releasing.discard(key)
            del self._checked_out[key]
            closing = self._closed
            if not closing:
                self._idle.append(obj)
                self._cond.notify()
        if closing:
            close_resource(obj)
        logger.debug("Released %r", obj)

    def _drop(self, obj):
        key = id(obj)
        with self._cond:
            self._releasing.discard(key)
            del self._checked_out[key]
            self._capacity -= 1
            self._dropped += 1
            # Waiters must re-check: an empty pool may now never refill.
            self._cond.notify_all()
        close_resource(obj)

    @contextmanager
    def lease(self, timeout=None):
        """Acquires a resource for the duration of a `with` block."""
        obj = self.acquire(timeout=timeout)
        try:
            yield obj
        finally:
            self.release(obj)

    def close(self):
        """
        Tears the pool down.

        Idle resources are closed immediately; checked-out ones are closed when
        they come back. Threads blocked in `acquire()` wake up with PoolClosed.
        """
        with self._cond:
            if self._closed:
                return
            self._closed = True
            idle = list(self._idle)
            self._idle.clear()
            self._cond.notify_all()
        for obj in idle:
            close_resource(obj)
        logger.info("Pool closed (%d idle resources closed)", len(idle))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __len__(self):
        return self.capacity

    def __repr__(self):
        s = self.stats()
        return (
            f"ObjectPool(capacity={s['capacity']}, idle={s['idle']}, "
            f"in_use={s['in_use']}, dropped={s['dropped']})"
        )
