import pytest
from decimal import Decimal

from pos.core.enums import DiscountType
from pos.core.orders import calculate_item_price

def test_same_item_twice_merges_into_one_line(orders, noodles):
    first = orders.add_item_to_table(5, noodles)
    second = orders.add_item_to_table(5, noodles)

    lines = orders.get_table_orders(5)
    assert len(lines) == 1
    assert first is second
    assert lines[0].quantity == 2

def test_extras_order_does_not_matter(orders, noodles):
    orders.add_item_to_table(5, noodles, ['gambas', 'pollo'])
    orders.add_item_to_table(5, noodles, ['pollo', 'gambas'])

    lines = orders.get_table_orders(5)
    assert len(lines) == 1
    assert lines[0].quantity == 2

def test_different_drink_makes_a_new_line(orders, soft_drink):
    orders.add_item_to_table(3, soft_drink, drink='Coca Cola')
    orders.add_item_to_table(3, soft_drink, drink='Fanta Naranja')
    orders.add_item_to_table(3, soft_drink, drink='Coca Cola')

    lines = orders.get_table_orders(3)
    assert [(l.drink, l.quantity) for l in lines] == [('Coca Cola', 2), ('Fanta Naranja', 1)]

def test_extras_surcharge_only_on_main_dishes(noodles, salad):
    assert calculate_item_price(noodles, ['gambas', 'pollo']) == Decimal('10.00')
    assert calculate_item_price(salad, ['gambas']) == Decimal('4.50')

def test_line_price_includes_extras(orders, noodles):
    line = orders.add_item_to_table(5, noodles, ['gambas'])
    orders.add_item_to_table(5, noodles, ['gambas'])

    assert line.price == Decimal('9.00')
    assert orders.get_table_total(5) == Decimal('18.00')

@pytest.mark.parametrize('table', [0, -1, 'abc', '', None, True, 2.5])
def test_invalid_table_is_rejected(orders, state, noodles, table):
    assert orders.add_item_to_table(table, noodles) is None
    assert state.table_orders == {}

def test_table_keys_are_normalized_to_int(orders, state, noodles):
    orders.add_item_to_table('5', noodles)
    orders.add_item_to_table(5.0, noodles)

    assert list(state.table_orders) == [5]
    assert orders.get_table_orders(5)[0].quantity == 2
    assert orders.is_table_occupied('5')

def test_removing_last_line_frees_the_table(orders, state, noodles):
    line = orders.add_item_to_table(7, noodles)

    assert orders.remove_item_from_table(7, line.order_id)
    assert not orders.is_table_occupied(7)
    assert 7 not in state.table_orders
    assert not orders.remove_item_from_table(7, line.order_id)

def test_update_quantity(orders, noodles, salad):
    line = orders.add_item_to_table(2, noodles)
    orders.add_item_to_table(2, salad)

    assert orders.update_item_quantity(2, line.order_id, 4)
    assert orders.get_table_total(2) == Decimal('36.50')

    assert orders.update_item_quantity(2, line.order_id, 0)
    assert [l.id for l in orders.get_table_orders(2)] == [1]
    assert not orders.update_item_quantity(2, 'missing', 3)

def test_occupied_tables_are_sorted(orders, noodles):
    orders.add_item_to_table(12, noodles)
    orders.add_item_to_table(3, noodles)
    orders.add_item_to_table(200, noodles)

    assert orders.get_occupied_tables() == [3, 12, 200]

def test_discount_and_total_with_discount(orders, set_menu):
    orders.add_item_to_table(5, set_menu)
    orders.add_item_to_table(5, set_menu)
    orders.set_table_discount(5, 5)

    assert orders.get_table_total(5) == Decimal('20')
    assert orders.get_table_total_with_discount(5) == Decimal('15')

def test_total_with_discount_never_negative(orders, salad):
    orders.add_item_to_table(5, salad)
    orders.set_table_discount(5, 50)

    assert orders.get_table_total_with_discount(5) == Decimal('0')

def test_negative_discount_is_rejected(orders, salad):
    orders.add_item_to_table(5, salad)

    assert not orders.set_table_discount(5, -1)
    assert orders.get_table_discount(5) == Decimal('0')

def test_zero_discount_clears_kind(orders, salad):
    orders.add_item_to_table(5, salad)
    orders.set_table_discount(5, 2, DiscountType.EMPLOYEE)
    assert orders.get_table_discount_kind(5) == DiscountType.EMPLOYEE

    orders.set_table_discount(5, 0)
    assert orders.get_table_discount(5) == Decimal('0')
    assert orders.get_table_discount_kind(5) is None

def test_clear_table_drops_lines_and_discount(orders, noodles):
    orders.add_item_to_table(4, noodles)
    orders.set_table_discount(4, 3)

    orders.clear_table(4)
    assert orders.get_table_orders(4) == []
    assert orders.get_table_discount(4) == Decimal('0')

def test_move_concatenates_in_call_order(orders, noodles, salad, soft_drink):
    a = orders.add_item_to_table(1, noodles)
    b = orders.add_item_to_table(2, salad)
    c = orders.add_item_to_table(3, soft_drink, drink='Sprite')

    assert orders.move_table_orders(1, 3)
    assert orders.move_table_orders(2, 3)

    assert [l.order_id for l in orders.get_table_orders(3)] == [c.order_id, a.order_id, b.order_id]
    assert not orders.is_table_occupied(1)
    assert not orders.is_table_occupied(2)

def test_move_adds_discounts(orders, noodles, salad):
    orders.add_item_to_table(1, noodles)
    orders.add_item_to_table(2, salad)
    orders.set_table_discount(1, 2)
    orders.set_table_discount(2, 1)

    orders.move_table_orders(1, 2)
    assert orders.get_table_discount(2) == Decimal('3')
    assert orders.get_table_discount(1) == Decimal('0')

def test_move_rejects_same_or_empty_table(orders, noodles):
    orders.add_item_to_table(1, noodles)

    assert not orders.move_table_orders(1, 1)
    assert not orders.move_table_orders(9, 1)
    assert not orders.move_table_orders(1, 'x')
    assert orders.is_table_occupied(1)

def test_summary(orders, noodles):
    orders.add_item_to_table(8, noodles, ['pollo'])
    orders.set_table_discount(8, 1, DiscountType.CLIENT)

    summary = orders.get_summary('8')
    assert summary['table'] == 8
    assert summary['subtotal'] == Decimal('9.00')
    assert summary['total'] == Decimal('8.00')
    assert summary['discount_kind'] == 'client'
    assert summary['occupied']
    assert summary['orders'][0]['extras'] == ['pollo']

def test_item_added_after_send_gets_its_own_line(orders, kitchen, noodles, clock):
    sent = orders.add_item_to_table(5, noodles)
    first = kitchen.send_to_kitchen(5)
    extra = orders.add_item_to_table(5, noodles)

    assert extra is not sent
    assert sent.quantity == 1
    assert extra.kitchen_sent_at is None

    clock.advance(60_000)
    second = kitchen.send_to_kitchen(5)
    assert (sent.kitchen_sent_at, extra.kitchen_sent_at) == (first, second)

    # Both lines are sent now, so another unit opens a third one
    orders.add_item_to_table(5, noodles)
    assert len(orders.get_table_orders(5)) == 3
