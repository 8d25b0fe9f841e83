import logging
import os
from http.cookiejar import DefaultCookiePolicy
from typing import Any

import requests

from .errors import AuthenticationFailed, TransportError, VoucherQueryFailed, VoucherRedeemFailed
from .models import AddResponse, AuthResponse, ListResponse, Session, Voucher, normalize_vouchers
from .session import get_password_hash

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://pizza.de/api/2/"
USER_AUTH_ENDPOINT = "user/auth"
VOUCHER_LIST_ENDPOINT = "voucher/list"
VOUCHER_ADD_ENDPOINT = "voucher/add"

# Signature of the Android app - pizza.de rejects requests from unknown clients
USER_AGENT = "Dalvik/2.1.0 (Linux; Android 5.0.2; samsung; SM-T800) de.pizza/3.0.19 xCore/3983"


class _RejectAllCookies(DefaultCookiePolicy):
    """Keeps the transport's own cookie jar empty; cookies travel only in a Session."""

    def set_ok(self, cookie, request) -> bool:
        return False


class PizzaClient:
    """Client for the pizza.de voucher API."""

    def __init__(self, api_url: str | None = None, timeout: float | None = None):
        """
        Initialize the pizza.de client.

        Args:
            api_url: Base URL of the API (default: $PIZZA_DE_API_URL, then pizza.de)
            timeout: Optional per-request timeout in seconds (default: none)
        """
        api_url = api_url or os.environ.get("PIZZA_DE_API_URL", DEFAULT_API_URL)
        self.api_url = api_url if api_url.endswith("/") else f"{api_url}/"
        self.timeout = timeout
        self._requests = requests.Session()
        self._requests.headers.update(
            {
                "User-Agent": USER_AGENT,
                "Accept": "application/json",
            }
        )
        self._requests.cookies.set_policy(_RejectAllCookies())

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> tuple[dict[str, Any], requests.Response]:
        """Send one request and return the decoded JSON body along with the response."""
        url = f"{self.api_url}{endpoint}"
        logger.debug(f"{method} {url}")

        try:
            response = self._requests.request(method, url, timeout=self.timeout, **kwargs)
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise TransportError(f"{method} {endpoint} failed: {e}") from e

        if not isinstance(data, dict) or "success" not in data:
            raise TransportError(f"Unexpected response from {endpoint} (HTTP {response.status_code})")

        logger.debug(f"{endpoint} -> HTTP {response.status_code}, success={data['success']}")
        return data, response

    def authenticate(self, username: str, password: str) -> Session:
        """Log in and return the session cookies to pass to later calls."""
        data, response = self._request(
            "POST",
            USER_AUTH_ENDPOINT,
            data={"username": username, "hash": get_password_hash(password)},
        )
        auth = AuthResponse.from_json(data)
        if not auth.success:
            logger.debug(f"Login rejected for {username}: {auth.error}")
            raise AuthenticationFailed(auth.error)

        session = Session(cookies=response.cookies)
        logger.info(f"Logged in as {username}")
        logger.debug(f"Received {session!r}")
        return session

    def list_vouchers(self, session: Session) -> list[Voucher]:
        """Fetch the account's vouchers, normalized."""
        data, _ = self._request("GET", VOUCHER_LIST_ENDPOINT, cookies=session.cookies)
        result = ListResponse.from_json(data)
        if not result.success:
            raise VoucherQueryFailed(result.error)

        normalize_vouchers(result.vouchers)
        logger.info(f"Found {len(result.vouchers)} vouchers")
        return result.vouchers

    def redeem_voucher(self, session: Session, code: str) -> AddResponse:
        """
        Redeem a voucher code.

        The API's error description (already redeemed, expired, unknown code...)
        is surfaced as-is through VoucherRedeemFailed.
        """
        data, _ = self._request("POST", VOUCHER_ADD_ENDPOINT, data={"voucher": code}, cookies=session.cookies)
        result = AddResponse.from_json(data)
        if not result.success:
            raise VoucherRedeemFailed(result.error)

        normalize_vouchers(result.vouchers)
        logger.info(f"Redeemed voucher {result.voucher}")
        return result
