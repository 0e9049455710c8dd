from typing import List, Dict, Optional
from decimal import Decimal
import logging
import uuid

from pos.core.config import EXTRA_PRICE, MAIN_DISHES_CATEGORY
from pos.core.enums import DiscountType
from pos.core.models import MenuItem, OrderLine, quantize_money, to_decimal
from pos.core.state import (
    TableOrdersState, ORDERS_KEY, DISCOUNTS_KEY, DISCOUNT_KINDS_KEY,
)
from pos.utils.tables import normalize_table_number

logger = logging.getLogger(__name__)

def generate_order_id(timestamp_ms: int) -> str:
    """Time-based id with a random suffix; unique enough within one session"""
    return f"{timestamp_ms}-{uuid.uuid4().hex[:6]}"

def calculate_item_price(item: MenuItem, extras: List[str]) -> Decimal:
    """Unit price; extras only cost extra on main dishes"""
    if item.category != MAIN_DISHES_CATEGORY:
        return item.price
    return item.price + EXTRA_PRICE * len(extras)

def calculate_subtotal(lines: List[OrderLine]) -> Decimal:
    return sum((line.get_total_price() for line in lines), Decimal('0'))

class OrderManager:
    def __init__(self, state: TableOrdersState):
        self.state = state

    def add_item_to_table(self, table_number, item: MenuItem, extras: List[str] = None,
                          drink: Optional[str] = None) -> Optional[OrderLine]:
        """Add one unit of item to a table, merging with an identical line if present"""
        table = normalize_table_number(table_number)
        if table is None:
            logger.warning(f"Rejected add of {item.name_es}: invalid table {table_number!r}")
            return None

        extras = list(extras or [])
        drink = drink or None
        price = calculate_item_price(item, extras)

        with self.state.lock:
            lines = self.state.table_orders.setdefault(table, [])
            for line in lines:
                # Lines already sent to the kitchen stay as sent; new units get their own line
                if line.matches(item.id, extras, drink) and line.kitchen_sent_at is None:
                    line.quantity += 1
                    logger.info(f"Table {table}: {item.name_es} now has quantity {line.quantity}")
                    break
            else:
                line = OrderLine(
                    id=item.id,
                    order_id=generate_order_id(self.state.clock()),
                    item=item,
                    price=price,
                    quantity=1,
                    extras=extras,
                    drink=drink,
                )
                lines.append(line)
                logger.info(f"Table {table}: added {item.name_es} extras={extras} drink={drink}")
            self.state.changed(ORDERS_KEY)
        return line

    def remove_item_from_table(self, table_number, order_id: str) -> bool:
        table = normalize_table_number(table_number)
        if table is None:
            return False
        with self.state.lock:
            lines = self.state.get_lines(table)
            remaining = [line for line in lines if line.order_id != order_id]
            if len(remaining) == len(lines):
                return False
            if remaining:
                self.state.table_orders[table] = remaining
            else:
                self.state.table_orders.pop(table, None)
            self.state.changed(ORDERS_KEY)
        logger.info(f"Table {table}: removed line {order_id}")
        return True

    def update_item_quantity(self, table_number, order_id: str, new_quantity: int) -> bool:
        """Set a line's quantity; zero or less removes the line"""
        if new_quantity <= 0:
            return self.remove_item_from_table(table_number, order_id)
        table = normalize_table_number(table_number)
        if table is None:
            return False
        with self.state.lock:
            line = self.state.find_line(table, order_id)
            if line is None:
                return False
            line.quantity = int(new_quantity)
            self.state.changed(ORDERS_KEY)
        logger.info(f"Table {table}: line {order_id} quantity set to {new_quantity}")
        return True

    def clear_table(self, table_number) -> bool:
        """Drop every active line of a table together with its discount"""
        table = normalize_table_number(table_number)
        if table is None:
            return False
        with self.state.lock:
            self.state.table_orders.pop(table, None)
            self.state.table_discounts.pop(table, None)
            self.state.discount_kinds.pop(table, None)
            self.state.changed(ORDERS_KEY, DISCOUNTS_KEY, DISCOUNT_KINDS_KEY)
        logger.info(f"Table {table} cleared")
        return True

    def move_table_orders(self, from_table, to_table) -> bool:
        """Append every line of from_table to to_table; discounts add up"""
        source = normalize_table_number(from_table)
        target = normalize_table_number(to_table)
        if source is None or target is None or source == target:
            return False

        with self.state.lock:
            lines = self.state.get_lines(source)
            if not lines:
                return False
            self.state.table_orders[target] = self.state.get_lines(target) + lines
            del self.state.table_orders[source]

            moved_discount = self.state.table_discounts.pop(source, None)
            moved_kind = self.state.discount_kinds.pop(source, None)
            if moved_discount:
                existing = self.state.table_discounts.get(target, Decimal('0'))
                self.state.table_discounts[target] = existing + moved_discount
                if moved_kind and target not in self.state.discount_kinds:
                    self.state.discount_kinds[target] = moved_kind
            self.state.changed(ORDERS_KEY, DISCOUNTS_KEY, DISCOUNT_KINDS_KEY)
        logger.info(f"Moved {len(lines)} lines from table {source} to table {target}")
        return True

    def get_table_orders(self, table_number) -> List[OrderLine]:
        table = normalize_table_number(table_number)
        if table is None:
            return []
        with self.state.lock:
            return list(self.state.get_lines(table))

    def is_table_occupied(self, table_number) -> bool:
        return len(self.get_table_orders(table_number)) > 0

    def get_occupied_tables(self) -> List[int]:
        with self.state.lock:
            return sorted(t for t, lines in self.state.table_orders.items() if lines)

    def get_table_total(self, table_number) -> Decimal:
        return calculate_subtotal(self.get_table_orders(table_number))

    def set_table_discount(self, table_number, amount, kind: Optional[DiscountType] = None) -> bool:
        """Store an absolute discount; zero removes it"""
        table = normalize_table_number(table_number)
        amount = to_decimal(amount)
        if table is None or amount < 0:
            logger.warning(f"Rejected discount {amount} for table {table_number!r}")
            return False
        with self.state.lock:
            if amount == 0:
                self.state.table_discounts.pop(table, None)
                self.state.discount_kinds.pop(table, None)
            else:
                self.state.table_discounts[table] = quantize_money(amount)
                if kind is not None:
                    self.state.discount_kinds[table] = kind
                else:
                    self.state.discount_kinds.pop(table, None)
            self.state.changed(DISCOUNTS_KEY, DISCOUNT_KINDS_KEY)
        logger.info(f"Table {table}: discount set to {amount}")
        return True

    def get_table_discount(self, table_number) -> Decimal:
        table = normalize_table_number(table_number)
        with self.state.lock:
            return self.state.table_discounts.get(table, Decimal('0'))

    def get_table_discount_kind(self, table_number) -> Optional[DiscountType]:
        table = normalize_table_number(table_number)
        with self.state.lock:
            return self.state.discount_kinds.get(table)

    def get_table_total_with_discount(self, table_number) -> Decimal:
        total = self.get_table_total(table_number)
        return max(Decimal('0'), total - self.get_table_discount(table_number))

    def get_summary(self, table_number) -> Dict:
        """Snapshot of a table for display"""
        return {
            'table': normalize_table_number(table_number),
            'orders': [line.to_dict() for line in self.get_table_orders(table_number)],
            'subtotal': self.get_table_total(table_number),
            'discount': self.get_table_discount(table_number),
            'discount_kind': getattr(self.get_table_discount_kind(table_number), 'value', None),
            'total': self.get_table_total_with_discount(table_number),
            'occupied': self.is_table_occupied(table_number),
        }
