# domain/resources.py

import threading

import numpy as np
from .object_pool import PooledObjectMixin


class PooledResource(PooledObjectMixin):
    """
    Base class for the resources the demo hands out.

    Each resource gets a process-unique id that survives reset(). Workers use
    a resource only through `work()` and check it with `is_clean()`.
    """

    _id_lock = threading.Lock()
    id_counter = 0

    def __init__(self):
        super().__init__()
        # Note: self.id and self.pool are NOT reset.
        with PooledResource._id_lock:
            self.id = PooledResource.id_counter
            PooledResource.id_counter += 1

    def work(self, worker_id, job, rng) -> str:
        """Does one job's worth of work and returns a short summary."""
        raise NotImplementedError

    def is_clean(self) -> bool:
        raise NotImplementedError


class TallyCounter(PooledResource):
    """A counter that remembers who touched it. Cheap, but handy for tests."""

    def __init__(self):
        super().__init__()
        self.count = 0
        self.labels = []

    def increment(self, label=None):
        self.count += 1
        if label is not None:
            self.labels.append(label)
        return self.count

    def work(self, worker_id, job, rng) -> str:
        self.increment(label=f"w{worker_id}j{job}")
        return f"count={self.count}"

    def is_clean(self) -> bool:
        return self.count == 0 and not self.labels

    def reset(self):
        self.count = 0
        self.labels = []

    def snapshot(self) -> dict:
        return {"count": self.count, "labels": list(self.labels)}

    def __repr__(self):
        return f"TallyCounter(id={self.id}, count={self.count})"


class ScratchBuffer(PooledResource):
    """
    A preallocated numpy work area.

    Allocation happens once, in __init__. `reset()` zero-fills the same
    memory so a pooled buffer never reallocates.
    """

    def __init__(self, shape=(64, 64), dtype="float64"):
        super().__init__()
        self.data = np.zeros(tuple(shape), dtype=dtype)
        self.owner = None
        self.closed = False

    @property
    def shape(self):
        return self.data.shape

    def write(self, values, owner=None):
        """Copies `values` into the buffer, broadcasting like numpy does."""
        if self.closed:
            raise RuntimeError(f"ScratchBuffer {self.id} has been closed.")
        self.data[...] = values
        if owner is not None:
            self.owner = owner

    def checksum(self) -> float:
        return float(self.data.sum())

    def work(self, worker_id, job, rng) -> str:
        self.write(rng.random(self.shape), owner=worker_id)
        return f"checksum={self.checksum():.2f}"

    def is_clean(self) -> bool:
        return self.owner is None and not self.data.any()

    def reset(self):
        self.data.fill(0)
        self.owner = None

    def close(self):
        self.closed = True

    def __repr__(self):
        return f"ScratchBuffer(id={self.id}, shape={self.data.shape}, owner={self.owner!r})"


RESOURCE_TYPE_MAP = {
    "tally_counter": TallyCounter,
    "scratch_buffer": ScratchBuffer,
}


def build_resource_factory(kind: str, **options):
    """
    Returns a no-argument factory for the named resource kind.

    Args:
        kind: A key of RESOURCE_TYPE_MAP.
        **options: Forwarded to the resource's constructor on every call.
    """
    try:
        resource_class = RESOURCE_TYPE_MAP[kind]
    except KeyError:
        raise ValueError(f"Unknown resource kind: {kind}") from None

    def factory(cls=resource_class, initial_options=options):
        return cls(**initial_options)

    return factory
