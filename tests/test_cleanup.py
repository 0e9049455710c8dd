from datetime import date, timedelta
from decimal import Decimal

import pytest

from pos.core.cleanup import DailyCleanupService, LAST_CLEANUP_KEY
from pos.core.enums import CleanupState

class FakeCalendar:
    def __init__(self, day):
        self.day = day

    def __call__(self):
        return self.day

    def next_day(self):
        self.day += timedelta(days=1)

@pytest.fixture
def calendar():
    return FakeCalendar(date(2024, 3, 14))

def test_initialize_records_today(store, calendar):
    service = DailyCleanupService(store, today=calendar)
    service.initialize()

    assert service.last_cleanup_date == '2024-03-14'
    assert store.load(LAST_CLEANUP_KEY) == '2024-03-14'

def test_initialize_keeps_stored_date(store, calendar):
    store.save(LAST_CLEANUP_KEY, '2024-03-13')
    service = DailyCleanupService(store, today=calendar)
    service.initialize()

    assert service.last_cleanup_date == '2024-03-13'
    assert service.has_day_changed()

def test_check_runs_callback_once_per_day(store, calendar):
    calls = []
    service = DailyCleanupService(store, today=calendar)
    service.initialize()

    assert not service.check(lambda: calls.append(1))
    calendar.next_day()
    assert service.check(lambda: calls.append(1))
    assert not service.check(lambda: calls.append(1))

    assert calls == [1]
    assert service.state == CleanupState.IDLE
    assert store.load(LAST_CLEANUP_KEY) == '2024-03-15'

def test_failed_callback_still_advances_date(calendar):
    service = DailyCleanupService(today=calendar)
    service.initialize()
    calendar.next_day()

    def boom():
        raise RuntimeError('disk full')

    with pytest.raises(RuntimeError):
        service.check(boom)
    assert service.last_cleanup_date == '2024-03-15'
    assert service.state == CleanupState.IDLE

def test_rollover_wipes_orders_but_keeps_history(orders, payments, kitchen, state, set_menu, noodles, calendar):
    orders.add_item_to_table(5, set_menu)
    orders.set_table_discount(5, 2)
    record = payments.pay_table_items(5)
    orders.add_item_to_table(5, noodles)
    orders.set_table_discount(5, 1)
    ts = kitchen.send_to_kitchen(5, 'sin picante')
    kitchen.mark_kitchen_order_completed(5, ts)

    service = DailyCleanupService(today=calendar)
    service.initialize()
    calendar.next_day()
    assert service.check(state.wipe_active)

    assert orders.get_table_orders(5) == []
    assert orders.get_table_discount(5) == Decimal('0')
    assert kitchen.get_all_kitchen_timestamps(5) == []
    assert not kitchen.is_kitchen_order_completed(5, ts)
    assert kitchen.get_kitchen_comment(5, ts) == ''
    assert payments.get_table_history(5) == [record]

def test_monitoring_checks_immediately(calendar):
    calls = []
    service = DailyCleanupService(today=calendar)
    service.last_cleanup_date = '2024-03-01'

    service.start_monitoring(lambda: calls.append(1), interval=3600)
    try:
        assert calls == [1]
    finally:
        service.stop_monitoring()
    assert service.last_cleanup_date == '2024-03-14'

def test_failing_first_check_does_not_stop_monitoring(calendar):
    service = DailyCleanupService(today=calendar)
    service.last_cleanup_date = '2024-03-01'

    def boom():
        raise RuntimeError('disk full')

    service.start_monitoring(boom, interval=3600)
    try:
        assert service._thread.is_alive()
    finally:
        service.stop_monitoring()
    assert service.last_cleanup_date == '2024-03-14'
    assert service.state == CleanupState.IDLE
