"""Menu catalog: admin edits, search and drink options"""
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from fuzzywuzzy import fuzz

from pos.core.api_client import ApiClient, ApiError
from pos.core.config import (
    CATEGORY_NUMBER_RANGES, CATEGORY_ORDER, DRINK_OPTIONS, DRINK_OPTION_RENAMES,
    DRINKS_CATEGORY, FUZZY_MATCH_THRESHOLD, MAIN_DISHES_CATEGORY, MENU, SOFT_DRINK_TERMS,
)
from pos.core.models import MenuItem
from pos.core.storage import STORAGE_KEYS, LocalStore

logger = logging.getLogger(__name__)

MENU_KEY = STORAGE_KEYS['MENU_DATA']
DRINK_OPTIONS_KEY = STORAGE_KEYS['DRINK_OPTIONS']
REMOTE_TARGET = 'remote'
LOCAL_TARGET = 'local'

def rename_drink_options(options: List[str]) -> List[str]:
    """Rewrite legacy option names and drop the duplicates that produces"""
    renamed = []
    for option in options:
        option = DRINK_OPTION_RENAMES.get(option, option)
        if option not in renamed:
            renamed.append(option)
    return renamed

def merge_product_ops(previous: Dict[str, Any], current: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Fold a product op into an earlier one the remote has not applied yet"""
    if previous['op'] == 'create':
        if current['op'] == 'delete':
            return None
        return {**current, 'op': 'create'}
    if previous['op'] == 'delete' and current['op'] == 'create':
        return {**current, 'op': 'update'}
    return current

def remote_menu_writer(api_client: ApiClient) -> Callable[[str, Any], bool]:
    """Outbox writer that replays queued menu edits against the remote API"""
    def write(key: str, payload: Dict[str, Any]) -> bool:
        op = payload['op']
        if op == 'create':
            api_client.create_product(payload['data'])
        elif op == 'update':
            api_client.update_product(payload['id'], payload['data'])
        elif op == 'delete':
            api_client.delete_product(payload['id'])
        elif op == 'drink_options':
            api_client.update_drink_options(payload['data'])
        else:
            raise ValueError(f"Unknown remote menu operation: {op}")
        return True
    return write

class MenuCatalog:
    def __init__(self, items: List[MenuItem], drink_options: List[str] = None, outbox=None):
        self.items: List[MenuItem] = list(items)
        self.drink_options: List[str] = rename_drink_options(drink_options or DRINK_OPTIONS)
        self.outbox = outbox
        self.lock = threading.RLock()

    @classmethod
    def load(cls, api_client: Optional[ApiClient] = None, store: Optional[LocalStore] = None,
             outbox=None) -> 'MenuCatalog':
        """Remote API first, then the local copy, then the built-in menu"""
        raw_items = None
        raw_drinks = None
        if api_client is not None and api_client.enabled:
            try:
                raw_items = api_client.get_products()
                raw_drinks = api_client.get_drink_options()
                logger.info(f"Loaded {len(raw_items)} products from remote API")
            except ApiError as e:
                logger.warning(f"Remote menu unavailable, using local data: {e}")
                raw_items, raw_drinks = None, None

        if not raw_items and store is not None:
            raw_items = store.load(MENU_KEY)
        if not raw_drinks and store is not None:
            raw_drinks = store.load(DRINK_OPTIONS_KEY)

        items = [MenuItem.from_dict(data) for data in (raw_items or MENU)]
        return cls(items, raw_drinks or DRINK_OPTIONS, outbox=outbox)

    def _queue(self, remote_key: Optional[str] = None, remote_payload: Optional[Dict] = None):
        if self.outbox is None:
            return
        self.outbox.enqueue(LOCAL_TARGET, MENU_KEY, [item.to_dict() for item in self.items])
        if remote_key and REMOTE_TARGET in self.outbox.writers:
            self.outbox.enqueue(REMOTE_TARGET, remote_key, remote_payload, merge=merge_product_ops)

    def get_item(self, item_id: int) -> Optional[MenuItem]:
        with self.lock:
            for item in self.items:
                if item.id == item_id:
                    return item
        return None

    def add_item(self, item: MenuItem) -> MenuItem:
        with self.lock:
            if self.get_item(item.id) is not None:
                raise ValueError(f"Menu item {item.id} already exists")
            self.items.append(item)
            self._queue(f"product:{item.id}", {'op': 'create', 'id': item.id, 'data': item.to_dict()})
        logger.info(f"Menu item added: {item.id} {item.name_es}")
        return item

    def update_item(self, item_id: int, **changes) -> Optional[MenuItem]:
        changes.pop('id', None)
        with self.lock:
            for index, item in enumerate(self.items):
                if item.id == item_id:
                    updated = item.updated(**changes)
                    self.items[index] = updated
                    self._queue(f"product:{item_id}",
                                {'op': 'update', 'id': item_id, 'data': updated.to_dict()})
                    logger.info(f"Menu item updated: {item_id} {sorted(changes)}")
                    return updated
        return None

    def delete_item(self, item_id: int) -> bool:
        with self.lock:
            remaining = [item for item in self.items if item.id != item_id]
            if len(remaining) == len(self.items):
                return False
            self.items = remaining
            self._queue(f"product:{item_id}", {'op': 'delete', 'id': item_id})
        logger.info(f"Menu item deleted: {item_id}")
        return True

    def set_drink_options(self, options: List[str]) -> List[str]:
        with self.lock:
            self.drink_options = rename_drink_options([o.strip() for o in options if o and o.strip()])
            if self.outbox is not None:
                self.outbox.enqueue(LOCAL_TARGET, DRINK_OPTIONS_KEY, list(self.drink_options))
                if REMOTE_TARGET in self.outbox.writers:
                    self.outbox.enqueue(REMOTE_TARGET, 'drink_options',
                                        {'op': 'drink_options', 'data': list(self.drink_options)})
            return list(self.drink_options)

    def drink_options_for(self, item: MenuItem) -> List[str]:
        """Per-item override when the item defines one"""
        if item.drink_options is not None:
            return list(item.drink_options)
        return list(self.drink_options)

    def enabled_items(self) -> List[MenuItem]:
        with self.lock:
            return [item for item in self.items if item.enabled]

    def filter_by_category(self, items: List[MenuItem], category: Optional[str]) -> List[MenuItem]:
        if not category:
            return items
        return [item for item in items if item.category == category]

    def group_by_category(self, items: Optional[List[MenuItem]] = None) -> Dict[str, List[MenuItem]]:
        """Items grouped by category, categories in menu order and unknown ones last"""
        items = items if items is not None else self.enabled_items()
        grouped: Dict[str, List[MenuItem]] = {}
        for item in items:
            grouped.setdefault(item.category or 'OTROS', []).append(item)
        ordered = sorted(grouped, key=lambda category: CATEGORY_ORDER.get(category, 999))
        return {category: grouped[category] for category in ordered}

    def search_items(self, query: str, language: str = 'es',
                     items: Optional[List[MenuItem]] = None) -> List[MenuItem]:
        """Substring search over number, names, descriptions and category.

        Falls back to fuzzy name matching when nothing matches literally, so
        small typos ("gyosas") still find the dish.
        """
        items = items if items is not None else self.enabled_items()
        term = (query or '').lower().strip()
        if not term:
            return items

        soft_drink_search = any(t in term for t in SOFT_DRINK_TERMS)
        found = [item for item in items if self._matches(item, term, language, soft_drink_search)]
        if found:
            return found

        fuzzy = [item for item in items
                 if max((fuzz.partial_ratio(term, name.lower())
                         for name in self._names(item, language) if name), default=0) >= FUZZY_MATCH_THRESHOLD]
        logger.info(f"Fuzzy search for '{term}' matched {len(fuzzy)} items")
        return fuzzy

    def _names(self, item: MenuItem, language: str) -> List[str]:
        if language == 'en':
            return [item.name_en, item.name_es]
        return [item.name_es, item.name_en]

    def _matches(self, item: MenuItem, term: str, language: str, soft_drink_search: bool) -> bool:
        if soft_drink_search and item.category == DRINKS_CATEGORY:
            name = item.name_es.lower()
            if 'refresco' in name or '500ml' in name:
                return True
        if item.number and term in item.number:
            return True
        if any(term in name.lower() for name in self._names(item, language) if name):
            return True

        if language == 'es':
            descriptions = [item.description_es]
        elif language == 'en':
            descriptions = [item.description_en]
        else:
            descriptions = [item.description_es, item.description_en]
        if any(term in d.lower() for d in descriptions if d):
            return True

        return bool(item.category) and term in item.category.lower()

    def next_number_for_category(self, category: str) -> str:
        """First free zero-padded menu number in the category's range"""
        number_range = CATEGORY_NUMBER_RANGES.get(category)
        if not number_range:
            return ''
        start, end = number_range
        shared = [MAIN_DISHES_CATEGORY, 'PARA IR CON TODO'] if category == MAIN_DISHES_CATEGORY else [category]

        used = set()
        with self.lock:
            for item in self.items:
                if item.category in shared and item.number.isdigit():
                    used.add(int(item.number))

        for number in range(start, end + 1):
            if number not in used:
                return f"{number:02d}"
        return f"{end + 1:02d}"
