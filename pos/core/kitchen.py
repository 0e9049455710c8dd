"""Send-to-kitchen timestamps, ready flags and ticket comments"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from pos.core.comanda import filter_kitchen_orders, is_kitchen_line
from pos.core.state import (
    TableOrdersState, ORDERS_KEY, TIMESTAMPS_KEY, COMPLETED_KEY, COMMENTS_KEY,
)
from pos.utils.tables import normalize_table_number, normalize_timestamp
from pos.utils.time_helpers import elapsed_urgency, format_elapsed

logger = logging.getLogger(__name__)

class KitchenTracker:
    def __init__(self, state: TableOrdersState):
        self.state = state

    def set_kitchen_timestamp(self, table_number) -> Optional[int]:
        """Append a new send timestamp for the table; earlier ones are kept"""
        table = normalize_table_number(table_number)
        if table is None:
            return None
        with self.state.lock:
            timestamp = self.state.clock()
            stamps = self.state.kitchen_timestamps.setdefault(table, [])
            # Two sends within the same millisecond still get distinct tickets
            if stamps and timestamp <= stamps[-1]:
                timestamp = stamps[-1] + 1
            stamps.append(timestamp)
            self.state.changed(TIMESTAMPS_KEY)
        return timestamp

    def get_kitchen_timestamp(self, table_number) -> Optional[int]:
        stamps = self.get_all_kitchen_timestamps(table_number)
        return stamps[-1] if stamps else None

    def get_all_kitchen_timestamps(self, table_number) -> List[int]:
        table = normalize_table_number(table_number)
        with self.state.lock:
            return list(self.state.kitchen_timestamps.get(table, []))

    def send_to_kitchen(self, table_number, comment: Optional[str] = None) -> Optional[int]:
        """Stamp the unsent kitchen lines and open a new ticket; None when the table is empty"""
        table = normalize_table_number(table_number)
        if table is None:
            return None
        with self.state.lock:
            lines = self.state.get_lines(table)
            if not lines:
                return None
            timestamp = self.set_kitchen_timestamp(table)
            for line in lines:
                if is_kitchen_line(line) and line.kitchen_sent_at is None:
                    line.kitchen_sent_at = timestamp
            self.state.changed(ORDERS_KEY)
            if comment:
                self.set_kitchen_comment(table, timestamp, comment)
        logger.info(f"Table {table}: sent to kitchen at {timestamp}")
        return timestamp

    def toggle_kitchen_item_ready(self, table_number, order_id: str) -> Optional[bool]:
        """Flip a line's ready flag; returns the new value, None if the line is unknown"""
        table = normalize_table_number(table_number)
        with self.state.lock:
            line = self.state.find_line(table, order_id)
            if line is None:
                return None
            line.kitchen_ready = not line.kitchen_ready
            line.kitchen_ready_at = self.state.clock() if line.kitchen_ready else None
            self.state.changed(ORDERS_KEY)
        logger.info(f"Table {table}: line {order_id} ready={line.kitchen_ready}")
        return line.kitchen_ready

    def mark_kitchen_order_completed(self, table_number, timestamp) -> bool:
        table = normalize_table_number(table_number)
        ts = normalize_timestamp(timestamp)
        if table is None or ts is None:
            return False
        with self.state.lock:
            self.state.completed_kitchen_orders.setdefault(table, {})[ts] = True
            self.state.changed(COMPLETED_KEY)
        logger.info(f"Table {table}: kitchen ticket {ts} completed")
        return True

    def is_kitchen_order_completed(self, table_number, timestamp) -> bool:
        table = normalize_table_number(table_number)
        ts = normalize_timestamp(timestamp)
        with self.state.lock:
            return bool(self.state.completed_kitchen_orders.get(table, {}).get(ts, False))

    def set_kitchen_comment(self, table_number, timestamp, comment: str) -> bool:
        """Attach free text to one ticket; blank text removes it"""
        table = normalize_table_number(table_number)
        ts = normalize_timestamp(timestamp)
        if table is None or ts is None:
            return False
        comment = (comment or '').strip()
        with self.state.lock:
            comments = self.state.kitchen_comments.setdefault(table, {})
            if comment:
                comments[ts] = comment
            else:
                comments.pop(ts, None)
                if not comments:
                    del self.state.kitchen_comments[table]
            self.state.changed(COMMENTS_KEY)
        return True

    def get_kitchen_comment(self, table_number, timestamp) -> str:
        table = normalize_table_number(table_number)
        ts = normalize_timestamp(timestamp)
        with self.state.lock:
            return self.state.kitchen_comments.get(table, {}).get(ts, '')

    def get_kitchen_board(self, tables: Optional[Iterable[int]] = None,
                          pending_only: bool = False) -> List[Dict[str, Any]]:
        """One entry per (occupied table, ticket), oldest first"""
        now = self.state.clock()
        board = []
        with self.state.lock:
            candidates = tables if tables is not None else list(self.state.table_orders)
            for table in candidates:
                kitchen_lines = filter_kitchen_orders(self.state.get_lines(table))
                if not kitchen_lines:
                    continue
                for ts in self.state.kitchen_timestamps.get(table, []):
                    completed = self.is_kitchen_order_completed(table, ts)
                    if pending_only and completed:
                        continue
                    board.append({
                        'ticket_id': f"{table}-{ts}",
                        'table_number': table,
                        'timestamp': ts,
                        'orders': [line.to_dict() for line in kitchen_lines],
                        'completed': completed,
                        'comment': self.get_kitchen_comment(table, ts),
                        'elapsed': format_elapsed(ts, now),
                        'urgency': elapsed_urgency(ts, now),
                    })
        return sorted(board, key=lambda entry: entry['timestamp'])
