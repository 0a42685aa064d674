import copy
import logging
import threading
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

InspectionRecord = Dict[str, Any]


class InspectionCache:
    """
    Per-container memo of inspection records.

    Records are keyed by container id and live until explicitly invalidated.
    Callers always receive copies, so editing a returned record never changes
    what is cached.
    All access goes through a lock, so one cache may back a driver that is
    shared between threads.
    """

    def __init__(self) -> None:
        self._records: Dict[str, InspectionRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def get(self, container_id: str) -> Optional[InspectionRecord]:
        with self._lock:
            record = self._records.get(container_id)
        return copy.deepcopy(record) if record is not None else None

    def put(self, container_id: str, record: InspectionRecord) -> None:
        with self._lock:
            self._records[container_id] = copy.deepcopy(record)

    def get_or_load(
        self, container_id: str, loader: Callable[[str], InspectionRecord]
    ) -> InspectionRecord:
        """
        Return the cached record, calling ``loader`` on a miss.

        The loader runs outside the lock; if two threads miss at once both
        load and the last one wins, which is harmless for read-only data.
        """
        record = self.get(container_id)
        if record is not None:
            return record
        logger.debug("[cache.inspect] miss for %s", container_id)
        record = loader(container_id)
        self.put(container_id, record)
        return record

    def invalidate(self, container_id: str) -> None:
        with self._lock:
            self._records.pop(container_id, None)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
