import os

# Background threads (cleanup monitor, outbox flusher) stay off under test
os.environ['POS_BACKGROUND'] = '0'
os.environ['POS_API_URL'] = ''

from decimal import Decimal

import pytest

from pos.core.kitchen import KitchenTracker
from pos.core.menu import MenuCatalog
from pos.core.models import MenuItem
from pos.core.orders import OrderManager
from pos.core.outbox import PersistenceOutbox
from pos.core.payment import PaymentHandler
from pos.core.state import TableOrdersState
from pos.core.storage import LocalStore

START_MS = 1_700_000_000_000

class FakeClock:
    """Manually advanced clock; call it like time.monotonic or now_ms"""

    def __init__(self, value):
        self.value = value

    def __call__(self):
        return self.value

    def advance(self, amount):
        self.value += amount

@pytest.fixture
def clock():
    return FakeClock(START_MS)

@pytest.fixture
def state(clock):
    return TableOrdersState(clock=clock)

@pytest.fixture
def orders(state):
    return OrderManager(state)

@pytest.fixture
def payments(state):
    return PaymentHandler(state)

@pytest.fixture
def kitchen(state):
    return KitchenTracker(state)

@pytest.fixture
def menu():
    return MenuCatalog.load()

@pytest.fixture
def store(tmp_path):
    return LocalStore(str(tmp_path / 'data'))

@pytest.fixture
def outbox_clock():
    return FakeClock(0.0)

@pytest.fixture
def outbox(store, outbox_clock):
    return PersistenceOutbox({'local': store.save}, delay=1.5, clock=outbox_clock)

@pytest.fixture
def noodles(menu):
    return menu.get_item(61)

@pytest.fixture
def salad(menu):
    return menu.get_item(1)

@pytest.fixture
def soft_drink(menu):
    return menu.get_item(93)

@pytest.fixture
def set_menu():
    return MenuItem(id=500, number='75', name_es='Menú del día', category='COMBOS', price=Decimal('10'))
