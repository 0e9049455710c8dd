"""Client for the remote products / drink-options API"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from pos.core.config import API_URL, API_TIMEOUT
from pos.core.storage import dumps

logger = logging.getLogger(__name__)

class ApiError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

class ApiClient:
    def __init__(self, base_url: Optional[str] = API_URL, timeout: float = API_TIMEOUT,
                 transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip('/') if base_url else None
        self.timeout = timeout
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    def _headers(self) -> Dict[str, str]:
        return {'Content-Type': 'application/json'}

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, transport=self.transport)

    def request(self, method: str, endpoint: str, payload: Any = None) -> Any:
        """Send one request to <base_url>/api<endpoint> and return the decoded JSON body"""
        if not self.base_url:
            raise ApiError("API URL not configured, running offline")

        url = f"{self.base_url}/api{endpoint}"
        content = dumps(payload) if payload is not None else None
        try:
            with self._client() as c:
                r = c.request(method, url, headers=self._headers(), content=content)
        except httpx.HTTPError as e:
            logger.error(f"API {method} {endpoint} failed: {e}")
            raise ApiError(f"{method} {endpoint} failed: {e}") from e

        if r.is_error:
            try:
                message = r.json().get('error')
            except (ValueError, AttributeError):
                message = None
            message = message or f"HTTP error! status: {r.status_code}"
            logger.error(f"API {method} {endpoint} returned {r.status_code}: {message}")
            raise ApiError(message, status_code=r.status_code)
        return r.json() if r.content else None

    def check_health(self) -> bool:
        if not self.base_url:
            return False
        try:
            with self._client() as c:
                r = c.get(f"{self.base_url}/api/health", headers=self._headers())
            return r.is_success
        except httpx.HTTPError:
            return False

    def get_products(self) -> List[Dict[str, Any]]:
        data = self.request('GET', '/products')
        return data if isinstance(data, list) else []

    def get_product(self, product_id: int) -> Dict[str, Any]:
        return self.request('GET', f'/products/{product_id}')

    def create_product(self, product: Dict[str, Any]) -> Dict[str, Any]:
        return self.request('POST', '/products', product)

    def update_product(self, product_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        return self.request('PUT', f'/products/{product_id}', updates)

    def delete_product(self, product_id: int):
        return self.request('DELETE', f'/products/{product_id}')

    def get_drink_options(self) -> List[str]:
        data = self.request('GET', '/drink-options')
        return data if isinstance(data, list) else []

    def update_drink_options(self, options: List[str]) -> List[str]:
        return self.request('PUT', '/drink-options', list(options))
