# domain/async_object_pool.py
import asyncio
import logging
from collections import deque
from contextlib import asynccontextmanager

from .errors import InvalidResource, PoolClosed, PoolTimeout
from .object_pool import close_resource, prefill

logger = logging.getLogger(__name__)


class AsyncObjectPool:
    """
    The asyncio flavour of ObjectPool.

    Waiting tasks park on futures instead of a lock, so `release()` stays a
    plain synchronous call. Everything runs on one event loop; no locking.
    """

    def __init__(self, factory, count):
        self._factory = factory
        self._idle = deque(prefill(factory, count, self))
        self._capacity = count
        self._checked_out = {}
        self._waiters = deque()
        self._dropped = 0
        self._closed = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def idle_count(self) -> int:
        return len(self._idle)

    @property
    def in_use_count(self) -> int:
        return len(self._checked_out)

    @property
    def dropped_count(self) -> int:
        return self._dropped

    @property
    def closed(self) -> bool:
        return self._closed

    def stats(self) -> dict:
        return {
            "capacity": self._capacity,
            "idle": len(self._idle),
            "in_use": len(self._checked_out),
            "dropped": self._dropped,
            "closed": self._closed,
            "waiting": len(self._waiters),
        }

    def _wake_next(self):
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return

    def _wake_all(self):
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)

    async def acquire(self, timeout=None):
        """
        Waits for an idle resource and checks it out.

        A task cancelled while waiting gives up its place in line and hands any
        wake-up it already received to the next waiter.
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + max(0.0, timeout)
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

            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                raise PoolTimeout(
                    f"No resource became available within {timeout} seconds."
                )

            waiter = loop.create_future()
            self._waiters.append(waiter)
            try:
                if remaining is None:
                    await waiter
                else:
                    await asyncio.wait_for(waiter, remaining)
            except BaseException as e:
                # Woken but never got to take the resource (cancelled, or the
                # deadline fired in the same loop pass): pass the turn on.
                if waiter.done() and not waiter.cancelled() and self._idle:
                    self._wake_next()
                if isinstance(e, asyncio.TimeoutError):
                    raise PoolTimeout(
                        f"No resource became available within {timeout} seconds."
                    ) from None
                raise
            finally:
                try:
                    self._waiters.remove(waiter)
                except ValueError:
                    pass

    def release(self, obj):
        """Resets `obj` and hands it back; drops it if the reset fails."""
        key = id(obj)
        if self._checked_out.get(key) is not obj:
            raise InvalidResource(f"{obj!r} is not checked out from this pool.")
        del self._checked_out[key]

        try:
            obj.reset()
        except Exception:
            logger.warning("Dropping %r from pool: reset failed", obj, exc_info=True)
            self._drop(obj)
            return
        except BaseException:
            self._drop(obj)
            raise

        if self._closed:
            close_resource(obj)
            return
        self._idle.append(obj)
        self._wake_next()
        logger.debug("Released %r", obj)

    def _drop(self, obj):
        self._capacity -= 1
        self._dropped += 1
        close_resource(obj)
        self._wake_all()

    @asynccontextmanager
    async def lease(self, timeout=None):
        obj = await self.acquire(timeout=timeout)
        try:
            yield obj
        finally:
            self.release(obj)

    def close(self):
        if self._closed:
            return
        self._closed = True
        idle = list(self._idle)
        self._idle.clear()
        self._wake_all()
        for obj in idle:
            close_resource(obj)
        logger.info("Async pool closed (%d idle resources closed)", len(idle))

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
