"""Comanda (kitchen/waiter ticket) helpers"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pos.core.config import DRINKS_CATEGORY, STARTERS_CATEGORY
from pos.core.enums import PrintType
from pos.core.models import MenuItem, OrderLine
from pos.utils.time_helpers import utc_now_iso

TICKET_WIDTH = 35

def is_salad(item: Optional[MenuItem]) -> bool:
    if item is None:
        return False
    return item.category == STARTERS_CATEGORY and 'ensalada' in item.name_es.lower()

def is_edamame(item: Optional[MenuItem]) -> bool:
    return item is not None and 'edamame' in item.name_es.lower()

def is_drink(item: Optional[MenuItem]) -> bool:
    return item is not None and item.category == DRINKS_CATEGORY

def is_kitchen_item(item: Optional[MenuItem]) -> bool:
    if item is None:
        return False
    return not is_salad(item) and not is_edamame(item) and not is_drink(item)

def is_kitchen_line(line: OrderLine) -> bool:
    return is_kitchen_item(line.item) and not line.drink

def should_auto_print(item: Optional[MenuItem], drink: Optional[str] = None) -> bool:
    """Drinks, salads and edamame skip the kitchen and print for the waiter straight away"""
    if item is None:
        return False
    if drink:
        return True
    return is_drink(item) or is_salad(item) or is_edamame(item)

def filter_kitchen_orders(lines: List[OrderLine]) -> List[OrderLine]:
    return [line for line in lines if is_kitchen_line(line)]

def filter_salads_and_drinks(lines: List[OrderLine]) -> List[OrderLine]:
    return [line for line in lines if not is_kitchen_line(line)]

def generate_print_data(table_number: int, lines: List[OrderLine],
                        print_type: PrintType = PrintType.ALL) -> Dict[str, Any]:
    if print_type == PrintType.KITCHEN:
        lines = filter_kitchen_orders(lines)
    elif print_type == PrintType.SALADS_DRINKS:
        lines = filter_salads_and_drinks(lines)

    return {
        'table_number': table_number,
        'timestamp': utc_now_iso(),
        'orders': lines,
        'total_items': sum(line.quantity for line in lines),
        'type': print_type,
    }

def format_print_text(print_data: Dict[str, Any], comment: Optional[str] = None) -> str:
    """Plain-text ticket for the thermal printer"""
    stamp = datetime.fromisoformat(print_data['timestamp'])
    border = '=' * TICKET_WIDTH
    rows = [
        border,
        'COMANDA'.center(TICKET_WIDTH),
        border,
        f"Mesa: {print_data['table_number']}",
        f"Fecha: {stamp.strftime('%d/%m/%Y')}  Hora: {stamp.strftime('%H:%M')}",
        '-' * TICKET_WIDTH,
    ]
    for line in print_data['orders']:
        label = f"{line.item.number} {line.item.name_es}".strip()
        rows.append(f"{line.quantity}x {label}")
        if line.extras:
            rows.append(f"   + {', '.join(line.extras)}")
        if line.drink:
            rows.append(f"   > {line.drink}")
    rows.append('-' * TICKET_WIDTH)
    if comment:
        rows.append(f"Nota: {comment}")
    rows.append(f"Total items: {print_data['total_items']}")
    rows.append(border)
    return '\n'.join(rows)
