import logging
from typing import Any, Optional
import httpx

logger = logging.getLogger(__name__)

class QueueHttpClient:
    """Thin client for the queue HTTP API."""
    def __init__(self, base_url: str = "http://127.0.0.1:8000", timeout: float = 5.0,
                 transport: Optional[httpx.BaseTransport] = None):
        self.http_client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def _make_request(self, method: str, endpoint: str, json_data: dict = None, params: dict = None):
        resp = self.http_client.request(method, endpoint, json=json_data, params=params)
        if resp.is_error:
            logger.warning(f"{method} {endpoint} failed with {resp.status_code}: {resp.text}")
        resp.raise_for_status()
        return resp.json()

    # --- Queue API ---
    def push(self, job: str, data: Any = "", queue: str = None):
        return self._make_request("POST", "/push", {"job": job, "data": data, "queue": queue})

    def push_raw(self, payload: str, queue: str = None):
        return self._make_request("POST", "/push_raw", {"payload": payload, "queue": queue})

    def later(self, delay: float, job: str, data: Any = "", queue: str = None):
        return self._make_request("POST", "/later", {"delay": delay, "job": job, "data": data, "queue": queue})

    def size(self, queue: str = None) -> int:
        params = {"queue": queue} if queue else None
        return self._make_request("GET", "/size", params=params)["size"]

    def close(self):
        self.http_client.close()
