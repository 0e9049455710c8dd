import logging
import threading
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from pos.core.enums import DiscountType
from pos.core.models import OrderLine, PaymentRecord, to_decimal
from pos.core.storage import STORAGE_KEYS, LocalStore
from pos.utils.tables import normalize_table_number, normalize_timestamp
from pos.utils.time_helpers import now_ms

logger = logging.getLogger(__name__)

ORDERS_KEY = STORAGE_KEYS['TABLE_ORDERS']
HISTORY_KEY = STORAGE_KEYS['TABLE_HISTORY']
DISCOUNTS_KEY = STORAGE_KEYS['TABLE_DISCOUNTS']
DISCOUNT_KINDS_KEY = STORAGE_KEYS['TABLE_DISCOUNT_KINDS']
TIMESTAMPS_KEY = STORAGE_KEYS['KITCHEN_TIMESTAMPS']
COMPLETED_KEY = STORAGE_KEYS['COMPLETED_KITCHEN_ORDERS']
COMMENTS_KEY = STORAGE_KEYS['KITCHEN_COMMENTS']

ACTIVE_KEYS = (ORDERS_KEY, DISCOUNTS_KEY, DISCOUNT_KINDS_KEY, TIMESTAMPS_KEY, COMPLETED_KEY, COMMENTS_KEY)
STATE_KEYS = ACTIVE_KEYS + (HISTORY_KEY,)

LOCAL_TARGET = 'local'

def _table_map(raw: Any, convert: Callable[[Any], Any]) -> Dict[int, Any]:
    """Rebuild a table-keyed map from JSON, where every key came back as a string"""
    result = {}
    if not isinstance(raw, dict):
        return result
    for key, value in raw.items():
        table = normalize_table_number(key)
        if table is None:
            logger.warning(f"Skipping persisted entry with invalid table key {key!r}")
            continue
        result[table] = convert(value)
    return result

def _timestamp_map(raw: Any, convert: Callable[[Any], Any]) -> Dict[int, Any]:
    result = {}
    for key, value in (raw or {}).items():
        ts = normalize_timestamp(key)
        if ts is not None:
            result[ts] = convert(value)
    return result

class TableOrdersState:
    """Single owner of every per-table map for the running process.

    Handlers (orders, payment, kitchen) receive this object by reference and
    mutate it while holding ``lock``; after a mutation they call ``changed``
    with the touched keys so the outbox can persist a snapshot.
    """

    def __init__(self, outbox=None, clock: Callable[[], int] = now_ms):
        self.table_orders: Dict[int, List[OrderLine]] = {}
        self.table_history: Dict[int, List[PaymentRecord]] = {}
        self.table_discounts: Dict[int, Decimal] = {}
        self.discount_kinds: Dict[int, DiscountType] = {}
        self.kitchen_timestamps: Dict[int, List[int]] = {}
        self.completed_kitchen_orders: Dict[int, Dict[int, bool]] = {}
        self.kitchen_comments: Dict[int, Dict[int, str]] = {}
        self.lock = threading.RLock()
        self.outbox = outbox
        self.clock = clock

    def changed(self, *keys: str):
        """Queue a local write of the current snapshot for each touched key"""
        if self.outbox is None:
            return
        with self.lock:
            for key in keys:
                self.outbox.enqueue(LOCAL_TARGET, key, self.serialize(key))

    def serialize(self, key: str) -> Any:
        with self.lock:
            if key == ORDERS_KEY:
                return {str(t): [line.to_dict() for line in lines] for t, lines in self.table_orders.items()}
            if key == HISTORY_KEY:
                return {str(t): [r.to_dict() for r in records] for t, records in self.table_history.items()}
            if key == DISCOUNTS_KEY:
                return {str(t): amount for t, amount in self.table_discounts.items()}
            if key == DISCOUNT_KINDS_KEY:
                return {str(t): kind.value for t, kind in self.discount_kinds.items()}
            if key == TIMESTAMPS_KEY:
                return {str(t): list(stamps) for t, stamps in self.kitchen_timestamps.items()}
            if key == COMPLETED_KEY:
                return {str(t): {str(ts): flag for ts, flag in flags.items()}
                        for t, flags in self.completed_kitchen_orders.items()}
            if key == COMMENTS_KEY:
                return {str(t): {str(ts): text for ts, text in comments.items()}
                        for t, comments in self.kitchen_comments.items()}
        raise KeyError(key)

    def restore(self, store: LocalStore):
        """Load every map from local storage, normalizing table and timestamp keys to int"""
        with self.lock:
            self.table_orders = _table_map(
                store.load(ORDERS_KEY), lambda lines: [OrderLine.from_dict(l) for l in lines])
            self.table_history = _table_map(
                store.load(HISTORY_KEY), lambda records: [PaymentRecord.from_dict(r) for r in records])
            self.table_discounts = _table_map(store.load(DISCOUNTS_KEY), to_decimal)
            self.discount_kinds = _table_map(store.load(DISCOUNT_KINDS_KEY), DiscountType)
            self.kitchen_timestamps = _table_map(
                store.load(TIMESTAMPS_KEY),
                lambda stamps: [ts for ts in map(normalize_timestamp, stamps) if ts is not None])
            self.completed_kitchen_orders = _table_map(
                store.load(COMPLETED_KEY), lambda flags: _timestamp_map(flags, bool))
            self.kitchen_comments = _table_map(
                store.load(COMMENTS_KEY), lambda comments: _timestamp_map(comments, str))

            # Empty order lists are not occupied tables
            self.table_orders = {t: lines for t, lines in self.table_orders.items() if lines}
        logger.info(f"Restored state: {len(self.table_orders)} occupied tables, "
                    f"{sum(len(r) for r in self.table_history.values())} payment records")

    def wipe_active(self):
        """Drop everything tied to the current service day; payment history survives"""
        with self.lock:
            self.table_orders = {}
            self.table_discounts = {}
            self.discount_kinds = {}
            self.kitchen_timestamps = {}
            self.completed_kitchen_orders = {}
            self.kitchen_comments = {}
            self.changed(*ACTIVE_KEYS)
        logger.info("Daily cleanup: active orders, discounts and kitchen tickets cleared, history kept")

    def get_lines(self, table: int) -> List[OrderLine]:
        return self.table_orders.get(table, [])

    def find_line(self, table: int, order_id: str) -> Optional[OrderLine]:
        for line in self.get_lines(table):
            if line.order_id == order_id:
                return line
        return None
