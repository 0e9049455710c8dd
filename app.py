# Standard library imports
from datetime import datetime
from decimal import InvalidOperation
import logging
import os
import sys
from typing import Optional

# Third-party imports
from flask import Flask, request, jsonify
from werkzeug.exceptions import HTTPException

# Local/application imports
from pos.core.api_client import ApiClient
from pos.core.cleanup import DailyCleanupService
from pos.core.comanda import format_print_text, generate_print_data
from pos.core.config import BACKGROUND_TASKS, CLEANUP_INTERVAL, DATA_DIR, LOG_DIR
from pos.core.enums import DiscountType, PrintType
from pos.core.kitchen import KitchenTracker
from pos.core.menu import MenuCatalog, remote_menu_writer
from pos.core.models import MenuItem, to_decimal
from pos.core.orders import OrderManager
from pos.core.outbox import PersistenceOutbox
from pos.core.payment import PaymentHandler, calculate_discount, percentage_discount
from pos.core.state import TableOrdersState
from pos.core.storage import LocalStore
from pos.utils.links import parse_client_link
from pos.utils.tables import generate_tables, normalize_table_number, table_zone

# Configuration Constants
PORT = int(os.getenv('PORT', 10000))
HOST = '0.0.0.0'

# Configure logging
os.makedirs(LOG_DIR, exist_ok=True)
log_filename = os.path.join(LOG_DIR, f"pos_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log")
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_filename),
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)

MENU_FIELDS = {'number', 'name_es', 'name_en', 'name_zh', 'description_es', 'description_en',
               'category', 'price', 'drink_options', 'enabled'}

def error_response(message: str, status: int = 400):
    return jsonify({'error': message}), status

def parse_table(raw) -> Optional[int]:
    return normalize_table_number(raw)

def build_services(store: LocalStore, api_client: ApiClient):
    """Restore state and menu from storage and wire them to one persistence outbox"""
    writers = {'local': store.save}
    if api_client.enabled:
        writers['remote'] = remote_menu_writer(api_client)
    outbox = PersistenceOutbox(writers)

    state = TableOrdersState(outbox=outbox)
    state.restore(store)
    menu = MenuCatalog.load(api_client, store, outbox=outbox)
    cleanup = DailyCleanupService(store)
    cleanup.initialize()
    return state, menu, outbox, cleanup

def create_app(state: Optional[TableOrdersState] = None, menu: Optional[MenuCatalog] = None,
               outbox: Optional[PersistenceOutbox] = None, cleanup: Optional[DailyCleanupService] = None,
               start_background: bool = BACKGROUND_TASKS) -> Flask:
    if state is None:
        state, menu, outbox, cleanup = build_services(LocalStore(DATA_DIR), ApiClient())
    menu = menu or MenuCatalog.load(outbox=outbox)
    cleanup = cleanup or DailyCleanupService()

    orders = OrderManager(state)
    payments = PaymentHandler(state)
    kitchen = KitchenTracker(state)

    if start_background:
        cleanup.start_monitoring(state.wipe_active, interval=CLEANUP_INTERVAL)
        if outbox is not None:
            outbox.start()

    app = Flask(__name__)
    app.extensions['pos'] = {
        'state': state, 'menu': menu, 'outbox': outbox, 'cleanup': cleanup,
        'orders': orders, 'payments': payments, 'kitchen': kitchen,
    }

    def table_detail(table: int):
        summary = orders.get_summary(table)
        summary['zone'] = table_zone(table)
        summary['history_total'] = payments.get_table_history_total(table)
        summary['kitchen_timestamps'] = kitchen.get_all_kitchen_timestamps(table)
        return summary

    @app.errorhandler(Exception)
    def handle_error(e):
        if isinstance(e, HTTPException):
            return error_response(e.description, e.code)
        logger.error(f"Error processing request {request.path}: {str(e)}", exc_info=True)
        return error_response('Internal server error', 500)

    @app.route('/health')
    def health_check():
        return 'OK', 200

    # Menu
    @app.route('/api/menu', methods=['GET'])
    def list_menu():
        language = request.args.get('lang', 'es')
        items = menu.filter_by_category(menu.enabled_items(), request.args.get('category'))
        items = menu.search_items(request.args.get('q', ''), language, items=items)
        return jsonify({'items': [item.to_dict() for item in items]})

    @app.route('/api/menu', methods=['POST'])
    def add_menu_item():
        payload = request.get_json(silent=True) or {}
        if not payload.get('name_es') or not payload.get('category'):
            return error_response('name_es and category are required')
        if 'id' not in payload:
            payload['id'] = max((item.id for item in menu.items), default=0) + 1
        if not payload.get('number'):
            payload['number'] = menu.next_number_for_category(payload['category'])
        try:
            item = menu.add_item(MenuItem.from_dict(payload))
        except (ValueError, InvalidOperation) as e:
            return error_response(str(e))
        return jsonify(item.to_dict()), 201

    @app.route('/api/menu/<int:item_id>', methods=['PUT'])
    def update_menu_item(item_id):
        payload = request.get_json(silent=True) or {}
        changes = {key: value for key, value in payload.items() if key in MENU_FIELDS}
        try:
            item = menu.update_item(item_id, **changes)
        except InvalidOperation:
            return error_response('Invalid price')
        if item is None:
            return error_response('Menu item not found', 404)
        return jsonify(item.to_dict())

    @app.route('/api/menu/<int:item_id>', methods=['DELETE'])
    def delete_menu_item(item_id):
        if not menu.delete_item(item_id):
            return error_response('Menu item not found', 404)
        return jsonify({'deleted': True})

    @app.route('/api/drink-options', methods=['GET'])
    def get_drink_options():
        return jsonify(menu.drink_options)

    @app.route('/api/drink-options', methods=['PUT'])
    def update_drink_options():
        payload = request.get_json(silent=True)
        if not isinstance(payload, list):
            return error_response('Expected a list of drink options')
        return jsonify(menu.set_drink_options([str(option) for option in payload]))

    # Tables
    @app.route('/api/tables', methods=['GET'])
    def list_tables():
        return jsonify({
            zone: [{'table': t, 'occupied': orders.is_table_occupied(t)} for t in tables]
            for zone, tables in generate_tables().items()
        })

    @app.route('/api/tables/<table>', methods=['GET'])
    def get_table(table):
        table = parse_table(table)
        if table is None:
            return error_response('Invalid table number')
        return jsonify(table_detail(table))

    @app.route('/api/tables/<table>', methods=['DELETE'])
    def clear_table(table):
        table = parse_table(table)
        if table is None:
            return error_response('Invalid table number')
        orders.clear_table(table)
        return jsonify(table_detail(table))

    @app.route('/api/tables/<table>/items', methods=['POST'])
    def add_item(table):
        table = parse_table(table)
        if table is None:
            return error_response('Please select a valid table first')
        payload = request.get_json(silent=True) or {}
        try:
            item = menu.get_item(int(payload.get('item_id')))
        except (TypeError, ValueError):
            return error_response('item_id is required')
        if item is None:
            return error_response('Menu item not found', 404)
        if not item.enabled:
            return error_response('Menu item is not available')

        drink = payload.get('drink') or None
        if drink and drink not in menu.drink_options_for(item):
            return error_response(f'Unknown drink option: {drink}')
        extras = payload.get('extras') or []
        if not isinstance(extras, list):
            return error_response('extras must be a list')

        line = orders.add_item_to_table(table, item, [str(e) for e in extras], drink)
        return jsonify({'line': line.to_dict(), 'table': table_detail(table)}), 201

    @app.route('/api/tables/<table>/items/<order_id>', methods=['PATCH'])
    def update_quantity(table, order_id):
        table = parse_table(table)
        if table is None:
            return error_response('Invalid table number')
        payload = request.get_json(silent=True) or {}
        try:
            quantity = int(payload.get('quantity'))
        except (TypeError, ValueError):
            return error_response('quantity must be an integer')
        if not orders.update_item_quantity(table, order_id, quantity):
            return error_response('Order line not found', 404)
        return jsonify(table_detail(table))

    @app.route('/api/tables/<table>/items/<order_id>', methods=['DELETE'])
    def remove_item(table, order_id):
        table = parse_table(table)
        if table is None:
            return error_response('Invalid table number')
        if not orders.remove_item_from_table(table, order_id):
            return error_response('Order line not found', 404)
        return jsonify(table_detail(table))

    @app.route('/api/tables/<table>/items/<order_id>/ready', methods=['POST'])
    def toggle_ready(table, order_id):
        ready = kitchen.toggle_kitchen_item_ready(parse_table(table), order_id)
        if ready is None:
            return error_response('Order line not found', 404)
        return jsonify({'order_id': order_id, 'kitchen_ready': ready})

    @app.route('/api/tables/<table>/move', methods=['POST'])
    def move_orders(table):
        payload = request.get_json(silent=True) or {}
        source, target = parse_table(table), parse_table(payload.get('to'))
        if not orders.move_table_orders(source, target):
            return error_response('Cannot move orders: source table is empty or the same as destination')
        return jsonify({'from': table_detail(source), 'to': table_detail(target)})

    @app.route('/api/tables/<table>/discount', methods=['PUT'])
    def set_discount(table):
        table = parse_table(table)
        if table is None:
            return error_response('Invalid table number')
        payload = request.get_json(silent=True) or {}
        subtotal = orders.get_table_total(table)
        try:
            kind = DiscountType(payload.get('kind', DiscountType.CLIENT.value))
            if 'percentage' in payload:
                amount = percentage_discount(subtotal, payload['percentage'])
            elif 'amount' in payload:
                amount = to_decimal(payload['amount'])
            else:
                amount = calculate_discount(subtotal, kind, payload.get('value'))
        except (ValueError, InvalidOperation):
            return error_response('Invalid discount')
        if not orders.set_table_discount(table, amount, kind):
            return error_response('Invalid discount')
        return jsonify(table_detail(table))

    @app.route('/api/tables/<table>/pay', methods=['POST'])
    def pay(table):
        table = parse_table(table)
        if table is None:
            return error_response('Invalid table number')
        payload = request.get_json(silent=True) or {}
        order_ids = payload.get('order_ids')
        if order_ids is not None and (not isinstance(order_ids, list) or
                                      not all(isinstance(o, str) for o in order_ids)):
            return error_response('order_ids must be a list of order ids')
        record = payments.pay_table_items(table, order_ids)
        return jsonify({
            'record': record.to_dict() if record else None,
            'table': table_detail(table),
        })

    @app.route('/api/tables/<table>/history', methods=['GET'])
    def history(table):
        table = parse_table(table)
        if table is None:
            return error_response('Invalid table number')
        return jsonify({
            'history': [record.to_dict() for record in payments.get_table_history(table)],
            'total': payments.get_table_history_total(table),
        })

    # Kitchen
    @app.route('/api/tables/<table>/kitchen', methods=['POST'])
    def send_to_kitchen(table):
        table = parse_table(table)
        if table is None:
            return error_response('Invalid table number')
        payload = request.get_json(silent=True) or {}
        timestamp = kitchen.send_to_kitchen(table, payload.get('comment'))
        if timestamp is None:
            return error_response('Table has no orders')
        return jsonify({'timestamp': timestamp, 'comment': kitchen.get_kitchen_comment(table, timestamp)}), 201

    @app.route('/api/tables/<table>/kitchen/<timestamp>/complete', methods=['POST'])
    def complete_ticket(table, timestamp):
        if not kitchen.mark_kitchen_order_completed(table, timestamp):
            return error_response('Invalid table or ticket')
        return jsonify({'completed': True})

    @app.route('/api/tables/<table>/kitchen/<timestamp>/comment', methods=['PUT'])
    def comment_ticket(table, timestamp):
        payload = request.get_json(silent=True) or {}
        if not kitchen.set_kitchen_comment(table, timestamp, payload.get('comment', '')):
            return error_response('Invalid table or ticket')
        return jsonify({'comment': kitchen.get_kitchen_comment(table, timestamp)})

    @app.route('/api/tables/<table>/comanda', methods=['GET'])
    def comanda(table):
        table = parse_table(table)
        if table is None:
            return error_response('Invalid table number')
        try:
            print_type = PrintType(request.args.get('type', PrintType.ALL.value))
        except ValueError:
            return error_response('Unknown comanda type')
        data = generate_print_data(table, orders.get_table_orders(table), print_type)
        comment = kitchen.get_kitchen_comment(table, kitchen.get_kitchen_timestamp(table))
        return jsonify({
            'table_number': table,
            'type': print_type.value,
            'timestamp': data['timestamp'],
            'total_items': data['total_items'],
            'orders': [line.to_dict() for line in data['orders']],
            'text': format_print_text(data, comment),
        })

    @app.route('/api/kitchen', methods=['GET'])
    def kitchen_board():
        pending_only = request.args.get('pending', '').lower() in ('1', 'true', 'yes')
        return jsonify({'tickets': kitchen.get_kitchen_board(pending_only=pending_only)})

    # Client view opened from a table QR code
    @app.route('/client', methods=['GET'])
    def client_view():
        link = parse_client_link(request.query_string.decode('utf-8'))
        if link is None:
            return error_response('Invalid table link')
        detail = orders.get_summary(link.table)
        detail['mode'] = link.mode
        return jsonify(detail)

    @app.route('/api/outbox', methods=['GET'])
    def outbox_status():
        entries = list(outbox.entries.values()) if outbox is not None else []
        return jsonify({'writes': [entry.to_dict() for entry in entries]})

    return app

if __name__ == '__main__':
    logger.info("=== Table Orders POS Starting ===")
    app = create_app()
    app.run(host=HOST, port=PORT, debug=False)
