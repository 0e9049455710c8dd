from .state import TableOrdersState
from .orders import OrderManager
from .payment import PaymentHandler
from .kitchen import KitchenTracker
from .cleanup import DailyCleanupService
from .menu import MenuCatalog

__all__ = ['TableOrdersState', 'OrderManager', 'PaymentHandler', 'KitchenTracker',
           'DailyCleanupService', 'MenuCatalog']
