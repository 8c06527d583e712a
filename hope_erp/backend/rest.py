"""REST backend for the hosted database service.

Talks to the service's PostgREST endpoints (``/rest/v1``) for tables, views
and remote procedures, and to its auth endpoint (``/auth/v1``) for password
sign-in.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import certifi
import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .base import BackendError, BaseBackend, Filter

logger = logging.getLogger(__name__)

USER_AGENT = "hope-erp/1.0"


def _format_value(value: Any) -> str:
    """Render a filter value the way PostgREST expects it in a query string."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, set)):
        return "(" + ",".join(_format_value(v) for v in value) + ")"
    return str(value)


def build_query_params(
    columns: str = "*",
    filters: Optional[Sequence[Filter]] = None,
    order: Optional[str] = None,
    ascending: bool = True,
    limit: Optional[int] = None,
) -> List[Tuple[str, str]]:
    """Build the query parameters for a table/view read.

    Returned as a list of pairs so repeated columns (range filters) survive.
    """
    params: List[Tuple[str, str]] = [("select", columns)]
    for flt in filters or ():
        params.append((flt.column, f"{flt.op}.{_format_value(flt.value)}"))
    if order:
        params.append(("order", f"{order}.{'asc' if ascending else 'desc'}"))
    if limit is not None:
        params.append(("limit", str(int(limit))))
    return params


class RestBackend(BaseBackend):
    """Backend that reaches the hosted service over HTTPS.

    One pooled ``requests`` session is reused for every call. Idempotent reads
    are retried on throttling and server errors; remote procedure calls are not.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        timeout: int = 20,
        retries: int = 3,
        verify: bool = True,
        ca_bundle: Optional[str] = None,
    ):
        self.url = (url or "").rstrip("/")
        self.api_key = api_key or ""
        self.timeout = timeout
        self.retries = retries
        self._verify = self._determine_verify(verify, ca_bundle)
        self._access_token: Optional[str] = None
        self._session: Optional[requests.Session] = None

        if self._verify is False:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    @property
    def name(self) -> str:
        return "rest"

    def is_available(self) -> bool:
        """Configured when both the service URL and the API key are set."""
        return bool(self.url) and bool(self.api_key)

    def _determine_verify(self, verify: bool, ca_bundle: Optional[str]):
        if not verify:
            return False
        if ca_bundle:
            return ca_bundle
        return certifi.where()

    def _get_session(self) -> requests.Session:
        """Get or create a requests session with retry configuration."""
        if self._session is None:
            session = requests.Session()
            retry = Retry(
                total=self.retries,
                connect=self.retries,
                read=self.retries,
                backoff_factor=0.5,
                status_forcelist=(429, 500, 502, 503, 504),
                allowed_methods=("GET", "HEAD"),
                raise_on_status=False,
            )
            adapter = HTTPAdapter(
                max_retries=retry,
                pool_connections=5,
                pool_maxsize=10,
            )
            session.mount("https://", adapter)
            session.mount("http://", adapter)
            session.verify = self._verify
            session.headers.update({
                "User-Agent": USER_AGENT,
                "Accept": "application/json",
            })
            self._session = session
        return self._session

    def close(self) -> None:
        """Sign out, close the session and release resources."""
        self.sign_out()
        if self._session is not None:
            self._session.close()
            self._session = None

    def _headers(self) -> Dict[str, str]:
        token = self._access_token or self.api_key
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token}",
        }

    # --- Authentication ---

    @property
    def signed_in(self) -> bool:
        return self._access_token is not None

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        """Sign in with email and password; later calls use the user's token."""
        body = self._request(
            "auth",
            "POST",
            f"{self.url}/auth/v1/token",
            params=[("grant_type", "password")],
            json={"email": email, "password": password},
        )
        token = body.get("access_token") if isinstance(body, dict) else None
        if not token:
            raise BackendError("auth", "Sign-in response did not include an access token")
        self._access_token = token
        logger.info("[rest] Signed in as %s", email)
        return body

    def sign_out(self) -> None:
        """Forget the user token; later calls fall back to the API key."""
        self._access_token = None

    # --- Data access ---

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Sequence[Filter]] = None,
        order: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params = build_query_params(columns, filters, order, ascending, limit)
        body = self._request(table, "GET", f"{self.url}/rest/v1/{table}", params=params)
        if body is None:
            return []
        if not isinstance(body, list):
            raise BackendError(table, f"Expected a list of rows, got {type(body).__name__}")
        return body

    def rpc(self, function: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request(
            function,
            "POST",
            f"{self.url}/rest/v1/rpc/{function}",
            json=params or {},
        )

    def _request(
        self,
        resource: str,
        method: str,
        url: str,
        params: Optional[List[Tuple[str, str]]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        if not self.is_available():
            raise BackendError(resource, "Backend URL or API key is not configured")

        session = self._get_session()
        try:
            resp = session.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.SSLError as e:
            raise BackendError(resource, "TLS/SSL error: certificate verify failed", cause=e)
        except requests.exceptions.RequestException as e:
            raise BackendError(resource, f"Request failed: {e}", cause=e)

        if resp.status_code >= 400:
            code, message = self._parse_error(resp)
            raise BackendError(
                resource,
                f"HTTP {resp.status_code}: {message}",
                status_code=resp.status_code,
                code=code,
            )

        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise BackendError(resource, "Response body is not valid JSON", cause=e)

    @staticmethod
    def _parse_error(resp: requests.Response) -> Tuple[Optional[str], str]:
        """Pull the service's error code and message out of an error response."""
        try:
            body = resp.json()
        except ValueError:
            return None, (resp.text or resp.reason or "").strip()[:200]
        if isinstance(body, dict):
            message = body.get("message") or body.get("error_description") or body.get("error") or ""
            return body.get("code"), str(message)
        return None, str(body)[:200]
