import weakref
from collections import deque
from typing import Any, Iterator, Optional


class ReclamationQueue:
    """collects weak handles whose referents have been reclaimed

    Handles created by `handle_for` report themselves here once their
    object is collected. The callback only appends to a deque, so it never
    blocks and may run on any thread, including one that is in the middle
    of reading the queue's owner.
    """

    def __init__(self):
        self._dead: deque = deque()
        # the callback must not keep the owner alive, only the deque
        self._on_reclaimed = self._dead.append

    def handle_for(self, obj: Any) -> weakref.ref:
        """create a weak handle to obj registered against this queue"""
        return weakref.ref(obj, self._on_reclaimed)

    def poll(self) -> Optional[weakref.ref]:
        """return the oldest reclaimed handle, or none if nothing is queued"""
        try:
            return self._dead.popleft()
        except IndexError:
            return None

    def drain(self) -> Iterator[weakref.ref]:
        handle = self.poll()
        while handle is not None:
            yield handle
            handle = self.poll()

    def __len__(self) -> int:
        return len(self._dead)
