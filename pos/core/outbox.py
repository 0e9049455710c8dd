"""Debounced persistence outbox.

Mutations enqueue the latest payload for a (target, key) pair; the entry is
written once the debounce delay has passed without a newer enqueue. Every
entry keeps its last status so callers can tell pending writes from flushed
or failed ones. Failed writes are not retried; the next enqueue for the same
key supersedes them.
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from pos.core.config import SAVE_DELAY
from pos.core.enums import WriteStatus

logger = logging.getLogger(__name__)

Writer = Callable[[str, Any], bool]
Merge = Callable[[Any, Any], Optional[Any]]

@dataclass
class PendingWrite:
    target: str
    key: str
    payload: Any
    due_at: float
    status: WriteStatus = WriteStatus.PENDING
    error: Optional[str] = None
    flushed_at: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'target': self.target,
            'key': self.key,
            'status': self.status.value,
            'error': self.error,
        }

class PersistenceOutbox:
    def __init__(self, writers: Dict[str, Writer], delay: float = SAVE_DELAY,
                 clock: Callable[[], float] = time.monotonic):
        self.writers = writers
        self.delay = delay
        self.clock = clock
        self.entries: Dict[Tuple[str, str], PendingWrite] = {}
        self._lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    def enqueue(self, target: str, key: str, payload: Any,
                merge: Optional[Merge] = None) -> Optional[PendingWrite]:
        """Queue (or replace) the write for target/key and restart its debounce window.

        With ``merge``, an entry that has not been flushed yet is folded into
        the new payload as ``merge(previous, payload)``; a merge returning None
        drops the entry altogether and nothing is written.
        """
        if target not in self.writers:
            raise ValueError(f"Unknown outbox target: {target}")
        with self._lock:
            previous = self.entries.get((target, key))
            if merge is not None and previous is not None and previous.status != WriteStatus.FLUSHED:
                payload = merge(previous.payload, payload)
                if payload is None:
                    del self.entries[(target, key)]
                    logger.debug(f"Dropped {target} write for {key}")
                    return None
            entry = PendingWrite(target=target, key=key, payload=payload,
                                 due_at=self.clock() + self.delay)
            self.entries[(target, key)] = entry
        logger.debug(f"Queued {target} write for {key}")
        return entry

    def pending(self) -> List[PendingWrite]:
        with self._lock:
            return [e for e in self.entries.values() if e.status == WriteStatus.PENDING]

    def failed(self) -> List[PendingWrite]:
        with self._lock:
            return [e for e in self.entries.values() if e.status == WriteStatus.FAILED]

    def status(self, target: str, key: str) -> Optional[WriteStatus]:
        entry = self.entries.get((target, key))
        return entry.status if entry else None

    def flush(self, force: bool = False) -> int:
        """Write every due entry (all pending ones when forced); returns how many succeeded"""
        now = self.clock()
        with self._lock:
            due = [e for e in self.entries.values()
                   if e.status == WriteStatus.PENDING and (force or e.due_at <= now)]

        written = 0
        for entry in due:
            writer = self.writers[entry.target]
            try:
                ok = writer(entry.key, entry.payload)
                error = None if ok else 'writer reported failure'
                if not ok:
                    logger.warning(f"Outbox {entry.target} write for {entry.key} failed")
            except Exception as e:
                logger.error(f"Outbox {entry.target} write for {entry.key} failed: {e}", exc_info=True)
                ok, error = False, str(e)

            with self._lock:
                # A newer enqueue replaced this entry while it was being written
                if self.entries.get((entry.target, entry.key)) is not entry:
                    continue
                entry.status = WriteStatus.FLUSHED if ok else WriteStatus.FAILED
                entry.error = error
                entry.flushed_at = self.clock()
            if ok:
                written += 1
        return written

    def start(self, interval: float = 0.5):
        """Flush due entries on a daemon thread until stop() is called"""
        if self._thread and self._thread.is_alive():
            self.stop()
        self._stop_event = threading.Event()
        stop_event = self._stop_event

        def run():
            while not stop_event.wait(interval):
                self.flush()

        self._thread = threading.Thread(target=run, name='outbox-flusher', daemon=True)
        self._thread.start()
        logger.info("Outbox flusher started")

    def stop(self):
        if self._stop_event:
            self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5)
        self._thread = None
        self._stop_event = None
