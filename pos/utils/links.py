"""QR deep links that open the client view for a table"""
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlsplit

CLIENT_MODE = 'client'

@dataclass(frozen=True)
class ClientLink:
    table: int
    mode: str

def build_client_link(base_url: str, table: int) -> str:
    query = urlencode({'table': table, 'mode': CLIENT_MODE})
    return f"{base_url.rstrip('/')}/?{query}"

def parse_client_link(link: str) -> Optional[ClientLink]:
    """Parse a full URL or bare query string; None when the table is missing or invalid"""
    if '?' in link or '://' in link:
        query = urlsplit(link).query
    else:
        query = link.lstrip('?')
    params = parse_qs(query)

    raw_table = params.get('table', [''])[0].strip()
    if not raw_table.isdigit() or int(raw_table) <= 0:
        return None
    mode = params.get('mode', [''])[0] or CLIENT_MODE
    return ClientLink(table=int(raw_table), mode=mode)
