from decimal import Decimal

from pos.core.enums import DiscountType, WriteStatus
from pos.core.orders import OrderManager
from pos.core.kitchen import KitchenTracker
from pos.core.payment import PaymentHandler
from pos.core.state import ORDERS_KEY, DISCOUNTS_KEY, TableOrdersState
from pos.core.storage import STORAGE_KEYS, LocalStore

def test_save_and_load(store):
    assert store.save('app_settings', {'language': 'es', 'price': Decimal('4.50')})
    assert store.load('app_settings') == {'language': 'es', 'price': '4.50'}
    assert store.load('missing') is None

def test_corrupt_file_loads_as_none(store, tmp_path):
    store.save('table_orders', {})
    (tmp_path / 'data' / 'table_orders.json').write_text('{not json', encoding='utf-8')

    assert store.load('table_orders') is None

def test_clear_all(store):
    store.save(STORAGE_KEYS['TABLE_ORDERS'], {'5': []})
    store.save(STORAGE_KEYS['LAST_CLEANUP_DATE'], '2024-03-14')

    assert store.clear_all()
    assert store.load(STORAGE_KEYS['TABLE_ORDERS']) is None
    assert store.load(STORAGE_KEYS['LAST_CLEANUP_DATE']) is None

def test_unwritable_directory_returns_false(tmp_path):
    blocker = tmp_path / 'blocker'
    blocker.write_text('', encoding='utf-8')

    assert not LocalStore(str(blocker / 'data')).save('table_orders', {})

def test_state_survives_restart(store, outbox, clock, noodles, set_menu):
    state = TableOrdersState(outbox=outbox, clock=clock)
    orders, payments, kitchen = OrderManager(state), PaymentHandler(state), KitchenTracker(state)

    orders.add_item_to_table(5, set_menu)
    payments.pay_table_items(5)
    line = orders.add_item_to_table(12, noodles, ['pollo'])
    orders.set_table_discount(12, '1.50', DiscountType.EMPLOYEE)
    ts = kitchen.send_to_kitchen(12, 'sin cebolla')
    kitchen.mark_kitchen_order_completed(12, ts)
    outbox.flush(force=True)

    restored = TableOrdersState()
    restored.restore(store)

    assert list(restored.table_orders) == [12]
    restored_line = restored.find_line(12, line.order_id)
    assert restored_line.extras == ['pollo']
    assert restored_line.price == Decimal('9.00')
    assert restored_line.kitchen_sent_at == ts
    assert restored.table_discounts == {12: Decimal('1.50')}
    assert restored.discount_kinds == {12: DiscountType.EMPLOYEE}
    assert restored.kitchen_timestamps == {12: [ts]}
    assert restored.completed_kitchen_orders == {12: {ts: True}}
    assert restored.kitchen_comments == {12: {ts: 'sin cebolla'}}
    assert restored.table_history[5][0].total == Decimal('10')

def test_restore_normalizes_keys_and_drops_empty_tables(store):
    store.save('table_orders', {'5': [], 'abc': [], '7': []})
    store.save('table_discounts', {'5': '2.5', '-1': '3'})
    store.save('kitchen_timestamps', {'5': ['1700000000000', 1700000000001.0, 'x']})

    state = TableOrdersState()
    state.restore(store)

    assert state.table_orders == {}
    assert state.table_discounts == {5: Decimal('2.5')}
    assert state.kitchen_timestamps == {5: [1700000000000, 1700000000001]}

def test_mutations_are_queued_not_written(store, outbox, clock, noodles):
    state = TableOrdersState(outbox=outbox, clock=clock)
    OrderManager(state).add_item_to_table(5, noodles)

    assert outbox.status('local', ORDERS_KEY) == WriteStatus.PENDING
    assert outbox.status('local', DISCOUNTS_KEY) is None
    assert store.load(ORDERS_KEY) is None
