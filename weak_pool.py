import logging
import threading
import weakref
from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Optional

from errors import InvalidObjectError
from pooled_object import PooledObject
from reclamation_queue import ReclamationQueue

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_CAPACITY = 1000


class _Slot:
    __slots__ = ("handle", "decoration")

    def __init__(self, handle: weakref.ref, decoration: Any):
        self.handle = handle
        self.decoration = decoration


@dataclass
class _IndexEntry:
    object_id: Hashable
    slots: List[Optional[_Slot]]
    position: int


class WeakPool:
    """thread-safe pool of weakly referenced objects grouped by identifier

    Objects added under the same identifier are kept in add order. The pool
    never keeps an object alive: once it is collected its entry is dropped
    the next time any pool operation runs. Each object may carry a
    decoration, which the pool holds strongly and hands back untouched.
    """

    def __init__(self, initial_capacity: int = DEFAULT_INITIAL_CAPACITY):
        if initial_capacity < 0:
            raise ValueError(f"initial capacity must not be negative, got {initial_capacity}")
        # dicts do not presize, so the capacity is only kept as a hint
        self.initial_capacity = initial_capacity
        self._groups: Dict[Hashable, List[Optional[_Slot]]] = {}
        # keyed by id() of the handle: handles compare by referent, not identity
        self._index: Dict[int, _IndexEntry] = {}
        self._dead = ReclamationQueue()
        self._lock = threading.RLock()

    def add(self, object_id: Hashable, obj: Any, decoration: Any = None) -> None:
        """add a weak reference to obj under object_id

        Adding an object that is already pooled under the same identifier
        does nothing, the first decoration is kept.
        """
        if obj is None:
            raise InvalidObjectError("cannot pool None")

        with self._lock:
            self._reclaim_dead()

            slots = self._groups.get(object_id)
            if slots is None:
                slots = []
            else:
                for slot in slots:
                    if slot is not None and slot.handle() is obj:
                        return

            try:
                handle = self._dead.handle_for(obj)
            except TypeError:
                raise InvalidObjectError(
                    f"cannot weakly reference object of type '{type(obj).__name__}'"
                ) from None

            slots.append(_Slot(handle, decoration))
            self._groups[object_id] = slots
            self._index[id(handle)] = _IndexEntry(object_id, slots, len(slots) - 1)

    def add_pooled(self, object_id: Hashable, pooled: PooledObject) -> None:
        self.add(object_id, pooled.object, pooled.decoration)

    def get(self, object_id: Hashable) -> List[PooledObject]:
        """return the live objects under object_id in the order they were added"""
        with self._lock:
            self._reclaim_dead()

            slots = self._groups.get(object_id)
            if slots is None:
                return []

            pooled = []
            for slot in slots:
                if slot is None:
                    continue
                obj = slot.handle()
                if obj is not None:
                    pooled.append(PooledObject(obj, slot.decoration))
            return pooled

    def objects_only(self, object_id: Hashable) -> List[Any]:
        with self._lock:
            return [p.object for p in self.get(object_id)]

    def first_object(self, object_id: Hashable) -> Optional[Any]:
        with self._lock:
            pooled = self.get(object_id)
            return pooled[0].object if pooled else None

    def group_count(self) -> int:
        """number of identifiers with at least one live object"""
        with self._lock:
            self._reclaim_dead()
            return len(self._groups)

    def live_entry_count(self) -> int:
        """number of live objects across all identifiers"""
        with self._lock:
            self._reclaim_dead()
            # every live slot owns exactly one index entry
            return len(self._index)

    def size(self) -> int:
        return self.live_entry_count()

    def __len__(self) -> int:
        return self.live_entry_count()

    def __contains__(self, object_id: Hashable) -> bool:
        return len(self.get(object_id)) > 0

    def __repr__(self) -> str:
        with self._lock:
            return (
                f"<{type(self).__name__} object id count={self.group_count()}, "
                f"reference count={self.live_entry_count()}>"
            )

    def _reclaim_dead(self) -> None:
        # callers hold self._lock
        processed = 0
        pruned = 0
        for handle in self._dead.drain():
            entry = self._index.pop(id(handle), None)
            if entry is None:
                logger.debug("skipping reclaimed handle with no index entry")
                continue
            slot = entry.slots[entry.position]
            if slot is None or slot.handle is not handle:
                logger.debug("skipping stale index entry for %r", entry.object_id)
                continue

            # tombstone in place, removing would shift the positions of siblings
            entry.slots[entry.position] = None
            processed += 1

            if all(s is None for s in entry.slots):
                if self._groups.get(entry.object_id) is entry.slots:
                    del self._groups[entry.object_id]
                    pruned += 1
                    logger.debug("pruned empty group %r", entry.object_id)

        if processed:
            logger.debug("reclaimed %d dead entries, pruned %d groups", processed, pruned)


_pool = WeakPool()

def add(object_id: Hashable, obj: Any, decoration: Any = None) -> None:
    """add an object to the default pool"""
    return _pool.add(object_id, obj, decoration)

def add_pooled(object_id: Hashable, pooled: PooledObject) -> None:
    """add a pooled object to the default pool"""
    return _pool.add_pooled(object_id, pooled)

def get(object_id: Hashable) -> List[PooledObject]:
    """return live objects and decorations under object_id from the default pool"""
    return _pool.get(object_id)

def objects_only(object_id: Hashable) -> List[Any]:
    """return live objects under object_id from the default pool"""
    return _pool.objects_only(object_id)

def first_object(object_id: Hashable) -> Optional[Any]:
    """return the first live object under object_id, or none"""
    return _pool.first_object(object_id)

def group_count() -> int:
    """return number of identifiers in the default pool"""
    return _pool.group_count()

def live_entry_count() -> int:
    """return number of live objects in the default pool"""
    return _pool.live_entry_count()

def size() -> int:
    """return number of live objects in the default pool"""
    return _pool.size()
