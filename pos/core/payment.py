from decimal import Decimal
from typing import Iterable, List, Optional
import logging

from pos.core.config import EMPLOYEE_DISCOUNT_RATE
from pos.core.enums import DiscountType
from pos.core.models import PaymentRecord, quantize_money, to_decimal
from pos.core.orders import calculate_subtotal, generate_order_id
from pos.core.state import (
    TableOrdersState, ORDERS_KEY, HISTORY_KEY, DISCOUNTS_KEY, DISCOUNT_KINDS_KEY,
)
from pos.utils.tables import normalize_table_number
from pos.utils.time_helpers import utc_now_iso

logger = logging.getLogger(__name__)

def proportional_discount(table_total: Decimal, table_discount: Decimal, items_subtotal: Decimal) -> Decimal:
    """Share of the table discount that belongs to a partial payment"""
    if table_total <= 0:
        return Decimal('0')
    return quantize_money(table_discount * items_subtotal / table_total)

def percentage_discount(total, percentage) -> Decimal:
    total = to_decimal(total)
    percentage = max(Decimal('0'), min(to_decimal(percentage), Decimal('100')))
    return quantize_money(total * percentage / Decimal('100'))

def calculate_discount(total, kind: DiscountType, value=None) -> Decimal:
    """Discount amount for the calculator: employees get half off, clients a fixed amount"""
    total = to_decimal(total)
    if kind == DiscountType.EMPLOYEE:
        amount = total * EMPLOYEE_DISCOUNT_RATE
    else:
        amount = to_decimal(value)
    return quantize_money(max(Decimal('0'), min(amount, total)))

class PaymentHandler:
    def __init__(self, state: TableOrdersState):
        self.state = state

    def pay_table_items(self, table_number, order_ids: Optional[Iterable[str]] = None) -> Optional[PaymentRecord]:
        """Pay the whole table (order_ids=None) or only the named lines.

        A partial payment carries the share of the table discount proportional
        to its subtotal. Nothing is recorded when the selection is empty.
        """
        table = normalize_table_number(table_number)
        if table is None:
            logger.warning(f"Rejected payment: invalid table {table_number!r}")
            return None

        with self.state.lock:
            lines = self.state.get_lines(table)
            discount = self.state.table_discounts.get(table, Decimal('0'))
            table_total = calculate_subtotal(lines)

            if order_ids is None:
                to_pay, remaining = list(lines), []
            else:
                selected = set(order_ids)
                to_pay = [line for line in lines if line.order_id in selected]
                remaining = [line for line in lines if line.order_id not in selected]

            if not to_pay:
                return None

            subtotal = calculate_subtotal(to_pay)
            if order_ids is None:
                discount_amount = discount
            else:
                discount_amount = proportional_discount(table_total, discount, subtotal)
            total_paid = max(Decimal('0'), subtotal - discount_amount)

            record = PaymentRecord(
                id=generate_order_id(self.state.clock()),
                table_number=table,
                items=[line.copy() for line in to_pay],
                subtotal=quantize_money(subtotal),
                discount=quantize_money(discount_amount),
                total=quantize_money(total_paid),
                timestamp=utc_now_iso(),
            )
            self.state.table_history.setdefault(table, []).append(record)

            if remaining:
                self.state.table_orders[table] = remaining
            else:
                self.state.table_orders.pop(table, None)
                self.state.table_discounts.pop(table, None)
                self.state.discount_kinds.pop(table, None)
            self.state.changed(ORDERS_KEY, HISTORY_KEY, DISCOUNTS_KEY, DISCOUNT_KINDS_KEY)

        logger.info(f"Table {table}: paid {len(to_pay)} lines, subtotal {subtotal}, "
                    f"discount {discount_amount}, total {total_paid}")
        return record

    def get_table_history(self, table_number) -> List[PaymentRecord]:
        table = normalize_table_number(table_number)
        with self.state.lock:
            return list(self.state.table_history.get(table, []))

    def get_table_history_total(self, table_number) -> Decimal:
        return sum((record.total for record in self.get_table_history(table_number)), Decimal('0'))
