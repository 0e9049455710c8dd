from typing import Dict, List, Optional

from pos.core.config import TABLE_CONFIG

def normalize_table_number(value) -> Optional[int]:
    """Canonical int table number, or None for anything that is not a positive integer"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        table = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        table = int(value)
    else:
        text = str(value).strip()
        if not text.isdigit():
            return None
        table = int(text)
    return table if table > 0 else None

def normalize_timestamp(value) -> Optional[int]:
    """Kitchen ticket timestamps arrive as int, float or numeric str"""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None

def generate_tables() -> Dict[str, List[int]]:
    return {
        'regular': list(TABLE_CONFIG['regular']),
        'terrace': list(range(TABLE_CONFIG['terrace_start'], TABLE_CONFIG['terrace_end'] + 1)),
        'takeaway': list(range(TABLE_CONFIG['takeaway_start'], TABLE_CONFIG['takeaway_end'] + 1)),
    }

def all_tables() -> List[int]:
    tables = generate_tables()
    return tables['regular'] + tables['terrace'] + tables['takeaway']

def table_zone(table: int) -> str:
    if TABLE_CONFIG['takeaway_start'] <= table <= TABLE_CONFIG['takeaway_end']:
        return 'takeaway'
    if TABLE_CONFIG['terrace_start'] <= table <= TABLE_CONFIG['terrace_end']:
        return 'terrace'
    return 'regular'
