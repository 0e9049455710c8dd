"""JSON file persistence, one blob per fixed key"""
import json
import logging
import os
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pos.core.config import DATA_DIR

logger = logging.getLogger(__name__)

STORAGE_KEYS = {
    'TABLE_ORDERS': 'table_orders',
    'TABLE_HISTORY': 'table_history',
    'TABLE_DISCOUNTS': 'table_discounts',
    'TABLE_DISCOUNT_KINDS': 'table_discount_kinds',
    'KITCHEN_TIMESTAMPS': 'kitchen_timestamps',
    'COMPLETED_KITCHEN_ORDERS': 'completed_kitchen_orders',
    'KITCHEN_COMMENTS': 'kitchen_comments',
    'MENU_DATA': 'menu_data',
    'DRINK_OPTIONS': 'drink_options',
    'APP_SETTINGS': 'app_settings',
    'LAST_CLEANUP_DATE': 'last_cleanup_date',
}

def _json_default(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")

def dumps(data: Any) -> str:
    return json.dumps(data, default=_json_default, ensure_ascii=False)

class LocalStore:
    def __init__(self, data_dir: str = DATA_DIR):
        self.data_dir = Path(data_dir)

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def save(self, key: str, data: Any) -> bool:
        """Write a blob atomically; failures are logged, never raised"""
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            path = self._path(key)
            tmp_path = path.with_suffix('.json.tmp')
            tmp_path.write_text(dumps(data), encoding='utf-8')
            os.replace(tmp_path, path)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error saving {key}: {e}")
            return False

    def load(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.error(f"Error loading {key}: {e}")
            return None

    def remove(self, key: str) -> bool:
        try:
            self._path(key).unlink(missing_ok=True)
            return True
        except OSError as e:
            logger.error(f"Error removing {key}: {e}")
            return False

    def clear_all(self) -> bool:
        """Remove every known key"""
        return all([self.remove(key) for key in STORAGE_KEYS.values()])
