from dataclasses import dataclass, field, replace
from typing import List, Dict, Optional, Any
from decimal import Decimal, ROUND_HALF_UP
import copy

CENTS = Decimal('0.01')

def to_decimal(value) -> Decimal:
    """Parse a price coming from JSON (float, int or str) without float noise"""
    if isinstance(value, Decimal):
        return value
    if value is None or value == '':
        return Decimal('0')
    return Decimal(str(value))

def quantize_money(value) -> Decimal:
    """Round an amount to cents"""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)

@dataclass(frozen=True)
class MenuItem:
    id: int
    name_es: str
    category: str
    price: Decimal
    number: str = ''
    name_en: str = ''
    name_zh: str = ''
    description_es: str = ''
    description_en: str = ''
    drink_options: Optional[List[str]] = None
    enabled: bool = True

    def display_name(self, language: str = 'es') -> str:
        names = {'es': self.name_es, 'en': self.name_en, 'zh': self.name_zh}
        return names.get(language) or self.name_es

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'number': self.number,
            'name_es': self.name_es,
            'name_en': self.name_en,
            'name_zh': self.name_zh,
            'description_es': self.description_es,
            'description_en': self.description_en,
            'category': self.category,
            'price': self.price,
            'drink_options': list(self.drink_options) if self.drink_options is not None else None,
            'enabled': self.enabled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MenuItem':
        drink_options = data.get('drink_options')
        return cls(
            id=int(data['id']),
            number=str(data.get('number') or ''),
            name_es=data.get('name_es') or '',
            name_en=data.get('name_en') or '',
            name_zh=data.get('name_zh') or '',
            description_es=data.get('description_es') or '',
            description_en=data.get('description_en') or '',
            category=data.get('category') or '',
            price=to_decimal(data.get('price')),
            drink_options=list(drink_options) if drink_options is not None else None,
            enabled=data.get('enabled', True) is not False,
        )

    def updated(self, **changes) -> 'MenuItem':
        if 'price' in changes:
            changes['price'] = to_decimal(changes['price'])
        return replace(self, **changes)

@dataclass
class OrderLine:
    id: int
    order_id: str
    item: MenuItem
    price: Decimal
    quantity: int = 1
    extras: List[str] = field(default_factory=list)
    drink: Optional[str] = None
    kitchen_sent_at: Optional[int] = None
    kitchen_ready: bool = False
    kitchen_ready_at: Optional[int] = None

    def get_total_price(self) -> Decimal:
        return self.price * self.quantity

    def matches(self, item_id: int, extras: List[str], drink: Optional[str]) -> bool:
        """Same item, same extras regardless of order, same drink"""
        return (self.id == item_id and
                sorted(self.extras) == sorted(extras) and
                (self.drink or None) == (drink or None))

    def copy(self) -> 'OrderLine':
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'order_id': self.order_id,
            'item': self.item.to_dict(),
            'quantity': self.quantity,
            'extras': list(self.extras),
            'drink': self.drink,
            'price': self.price,
            'kitchen_sent_at': self.kitchen_sent_at,
            'kitchen_ready': self.kitchen_ready,
            'kitchen_ready_at': self.kitchen_ready_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OrderLine':
        return cls(
            id=int(data['id']),
            order_id=str(data['order_id']),
            item=MenuItem.from_dict(data['item']),
            quantity=int(data.get('quantity', 1)),
            extras=list(data.get('extras') or []),
            drink=data.get('drink') or None,
            price=to_decimal(data.get('price')),
            kitchen_sent_at=data.get('kitchen_sent_at'),
            kitchen_ready=bool(data.get('kitchen_ready', False)),
            kitchen_ready_at=data.get('kitchen_ready_at'),
        )

@dataclass(frozen=True)
class PaymentRecord:
    id: str
    table_number: int
    items: List[OrderLine]
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'table_number': self.table_number,
            'items': [line.to_dict() for line in self.items],
            'subtotal': self.subtotal,
            'discount': self.discount,
            'total': self.total,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PaymentRecord':
        return cls(
            id=str(data['id']),
            table_number=int(data['table_number']),
            items=[OrderLine.from_dict(line) for line in data.get('items') or []],
            subtotal=to_decimal(data.get('subtotal')),
            discount=to_decimal(data.get('discount')),
            total=to_decimal(data.get('total')),
            timestamp=data.get('timestamp') or '',
        )
