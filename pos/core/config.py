from decimal import Decimal

from decouple import config
from dotenv import load_dotenv

load_dotenv()

# Surcharge per selected extra, only for main dishes
EXTRA_PRICE = Decimal('1.00')
MAIN_DISHES_CATEGORY = 'PRINCIPALES'
DRINKS_CATEGORY = 'BEBIDAS'
STARTERS_CATEGORY = 'ENTRANTES'

EXTRA_OPTIONS = ['gambas', 'pollo', 'ternera', 'verduras']

DRINK_OPTIONS = [
    'Coca Cola',
    'Coca Zero',
    'Fanta Naranja',
    'Fanta Limón',
    'Nestea Limón',
    'Nestea Maracuyá',
    'Aquarius',
    'Aquarius de Naranja',
    'Sprite',
]

# Legacy option names rewritten when drink options are loaded
DRINK_OPTION_RENAMES = {
    'Acuarius': 'Aquarius',
    'Acuarius de Naranja': 'Aquarius de Naranja',
}

# Menu item that carries a drink choice (refrescos)
SOFT_DRINK_ITEM_ID = 93

EMPLOYEE_DISCOUNT_RATE = Decimal('0.5')

TABLE_CONFIG = {
    'regular': [1, 2, 3, 4, 5, 6, 7, 8, 10, 11, 12, 13, 14, 15],
    'terrace_start': 100,
    'terrace_end': 108,
    'takeaway_start': 200,
    'takeaway_end': 240,
}

CATEGORY_ORDER = {
    'ENTRANTES': 1,
    'GYOZAS A LA PLANCHA': 2,
    'GYOZAS FRITAS': 3,
    'GYOZAS AL VAPOR': 4,
    'DIMSUM': 5,
    'PRINCIPALES': 6,
    'COMBOS': 7,
    'BEBIDAS': 8,
}

CATEGORY_NUMBER_RANGES = {
    'ENTRANTES': (1, 10),
    'MO XIAN': (11, 20),
    'GYOZAS A LA PLANCHA': (21, 30),
    'GYOZAS FRITAS': (31, 40),
    'GYOZAS AL VAPOR': (41, 50),
    'DIMSUM': (51, 60),
    'PRINCIPALES': (61, 80),
    'PARA IR CON TODO': (61, 70),
    'BEBIDAS': (71, 99),
}

SOFT_DRINK_TERMS = [
    'refresco', 'refrescos', 'coca', 'cola', 'fanta', 'sprite', 'pepsi', '7up',
    'naranja', 'limon', 'limón', 'gaseosa', 'soda', 'soft drink', 'drink',
    'bebida', 'bebidas',
]

FUZZY_MATCH_THRESHOLD = 80

# Elapsed minutes at which a kitchen ticket changes urgency band
KITCHEN_WARNING_MINUTES = 5
KITCHEN_LATE_MINUTES = 15

MENU = [
    {'id': 1, 'number': '01', 'name_es': 'Ensalada de algas', 'name_en': 'Seaweed salad',
     'name_zh': '海藻沙拉', 'category': 'ENTRANTES', 'price': Decimal('4.50')},
    {'id': 2, 'number': '02', 'name_es': 'Edamame', 'name_en': 'Edamame',
     'name_zh': '毛豆', 'category': 'ENTRANTES', 'price': Decimal('3.50')},
    {'id': 3, 'number': '03', 'name_es': 'Rollitos de primavera', 'name_en': 'Spring rolls',
     'name_zh': '春卷', 'category': 'ENTRANTES', 'price': Decimal('4.00')},
    {'id': 21, 'number': '21', 'name_es': 'Gyozas de cerdo a la plancha', 'name_en': 'Grilled pork gyozas',
     'name_zh': '煎猪肉饺', 'category': 'GYOZAS A LA PLANCHA', 'price': Decimal('6.50')},
    {'id': 31, 'number': '31', 'name_es': 'Gyozas de pollo fritas', 'name_en': 'Fried chicken gyozas',
     'name_zh': '炸鸡肉饺', 'category': 'GYOZAS FRITAS', 'price': Decimal('6.50')},
    {'id': 41, 'number': '41', 'name_es': 'Gyozas de verduras al vapor', 'name_en': 'Steamed vegetable gyozas',
     'name_zh': '蒸蔬菜饺', 'category': 'GYOZAS AL VAPOR', 'price': Decimal('6.00')},
    {'id': 51, 'number': '51', 'name_es': 'Har gow', 'name_en': 'Har gow',
     'name_zh': '虾饺', 'category': 'DIMSUM', 'price': Decimal('5.50')},
    {'id': 61, 'number': '61', 'name_es': 'Tallarines salteados', 'name_en': 'Stir-fried noodles',
     'name_zh': '炒面', 'category': 'PRINCIPALES', 'price': Decimal('8.00')},
    {'id': 62, 'number': '62', 'name_es': 'Arroz frito', 'name_en': 'Fried rice',
     'name_zh': '炒饭', 'category': 'PRINCIPALES', 'price': Decimal('7.50')},
    {'id': 71, 'number': '71', 'name_es': 'Agua mineral', 'name_en': 'Mineral water',
     'name_zh': '矿泉水', 'category': 'BEBIDAS', 'price': Decimal('2.00')},
    {'id': 93, 'number': '93', 'name_es': 'Refresco 500ml', 'name_en': 'Soft drink 500ml',
     'name_zh': '汽水', 'category': 'BEBIDAS', 'price': Decimal('2.50')},
]

# Deployment settings
API_URL = config('POS_API_URL', default='')
API_TIMEOUT = config('POS_API_TIMEOUT', default=5.0, cast=float)
DATA_DIR = config('POS_DATA_DIR', default='data')
LOG_DIR = config('POS_LOG_DIR', default='logs')
SAVE_DELAY = config('POS_SAVE_DELAY', default=1.5, cast=float)
CLEANUP_INTERVAL = config('POS_CLEANUP_INTERVAL', default=60.0, cast=float)
BACKGROUND_TASKS = config('POS_BACKGROUND', default=True, cast=bool)
