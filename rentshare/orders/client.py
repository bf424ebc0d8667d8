"""
Backend API Client.
Read-only order queries against the hosted database (PostgREST), plus the
two write paths the action controls need.
"""

import requests
import logging
import threading
from typing import Callable, List, Dict, Optional, Any

logger = logging.getLogger(__name__)

# Returns a fresh access token, or None if the session cannot be renewed
TokenRefresher = Callable[[], Optional[str]]


class BackendClient:
    """
    Client for the Supabase REST and edge-function endpoints.

    Loaders call this from worker threads, so every thread gets its own
    requests.Session and the access token is read under a lock per request.
    A 401 triggers one token refresh (shared by all threads that saw the same
    stale token) and a single retry.
    """

    def __init__(
        self,
        url: str,
        anon_key: str,
        access_token: Optional[str] = None,
        timeout: int = 30,
        token_refresher: Optional[TokenRefresher] = None
    ):
        self.base_url = url.rstrip('/')
        self.timeout = timeout
        self.headers = {
            'apikey': anon_key,
            'Accept': 'application/json',
        }
        self.token_refresher = token_refresher
        self._access_token = access_token or anon_key
        self._lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._local = threading.local()

    @property
    def access_token(self) -> str:
        with self._lock:
            return self._access_token

    def _new_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(self.headers)
        return session

    def _get_session(self) -> requests.Session:
        """Session owned by the calling thread."""
        session = getattr(self._local, 'session', None)
        if session is None:
            session = self._new_session()
            self._local.session = session
        return session

    def _renew_token(self, stale_token: str) -> Optional[str]:
        """Refresh the token once, unless another thread already did."""
        with self._refresh_lock:
            current = self.access_token
            if current != stale_token:
                return current

            new_token = self.token_refresher() if self.token_refresher else None
            if not new_token:
                return None

            with self._lock:
                self._access_token = new_token
            logger.info("Access token renewed after 401")
            return new_token

    def _send(self, method: str, url: str, token: str, params, json, headers) -> requests.Response:
        request_headers = {'Authorization': f"Bearer {token}"}
        if headers:
            request_headers.update(headers)
        return self._get_session().request(
            method,
            url,
            params=params,
            json=json,
            headers=request_headers,
            timeout=self.timeout
        )

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """Make a request; returns decoded JSON or None on failure."""
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            token = self.access_token
            response = self._send(method, url, token, params, json, headers)
            if response.status_code == 401 and self.token_refresher:
                new_token = self._renew_token(token)
                if new_token:
                    response = self._send(method, url, new_token, params, json, headers)
            response.raise_for_status()
            if not response.content:
                return {}
            return response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Backend API error ({method} {path}): {e}")
            return None
        except ValueError as e:
            logger.error(f"Backend returned invalid JSON ({method} {path}): {e}")
            return None

    def select_orders(
        self,
        table: str,
        select: str,
        role_column: str,
        user_id: str
    ) -> Optional[List[Dict[str, Any]]]:
        """
        Fetch order rows where `role_column` equals the user, newest first.

        Args:
            table: 'orders' or 'service_orders'
            select: PostgREST select expression including embedded relations
            role_column: buyer_id, seller_id or provider_id
            user_id: Current user's id

        Returns:
            List of row dicts, or None if the query failed
        """
        params = {
            'select': select,
            role_column: f"eq.{user_id}",
            'order': 'created_at.desc',
        }

        rows = self._request('GET', f"rest/v1/{table}", params=params)
        if rows is None:
            return None
        if not isinstance(rows, list):
            logger.error(f"Unexpected payload from {table}: {type(rows).__name__}")
            return None

        logger.debug(f"Retrieved {len(rows)} rows from {table} ({role_column})")
        return rows

    def update_status(self, table: str, order_id: str, status: str) -> Optional[Dict[str, Any]]:
        """Set the status of a single order row. Returns the updated row."""
        rows = self._request(
            'PATCH',
            f"rest/v1/{table}",
            params={'id': f"eq.{order_id}"},
            json={'status': status},
            headers={'Prefer': 'return=representation'}
        )
        if not rows:
            return None
        return rows[0] if isinstance(rows, list) else rows

    def invoke_function(self, name: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Call an edge function."""
        return self._request('POST', f"functions/v1/{name}", json=payload)


def create_backend_client_from_config(
    access_token: Optional[str] = None,
    token_refresher: Optional[TokenRefresher] = None
) -> BackendClient:
    """Create a BackendClient acting as the signed-in user."""
    from ..core.config import get_config

    config = get_config()
    return BackendClient(
        url=config.get('backend', 'url'),
        anon_key=config.get('backend', 'anon_key', default=''),
        access_token=access_token,
        timeout=config.get_int('backend', 'timeout', default=30),
        token_refresher=token_refresher
    )
