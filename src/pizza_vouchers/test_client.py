"""
Unit tests for the pizza.de client module.

These tests use mocking and don't require internet connectivity.
Run with: pytest -m unit_build
"""

from datetime import datetime
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
import requests
from requests.cookies import RequestsCookieJar

from pizza_vouchers.client import USER_AGENT, PizzaClient
from pizza_vouchers.errors import (
    AuthenticationFailed,
    TransportError,
    VoucherQueryFailed,
    VoucherRedeemFailed,
)
from pizza_vouchers.models import Session
from pizza_vouchers.session import get_password_hash


def make_response(body: dict | None = None, status_code: int = 200, cookies: dict | None = None) -> Mock:
    """Build a fake requests.Response."""
    response = Mock()
    response.status_code = status_code
    if body is None:
        response.json.side_effect = requests.exceptions.JSONDecodeError("Expecting value", "", 0)
    else:
        response.json.return_value = body
    jar = RequestsCookieJar()
    for name, value in (cookies or {}).items():
        jar.set(name, value)
    response.cookies = jar
    return response


@pytest.fixture
def client() -> PizzaClient:
    return PizzaClient(api_url="https://pizza.example/api/2/")


@pytest.fixture
def session() -> Session:
    jar = RequestsCookieJar()
    jar.set("PHPSESSID", "abc123")
    return Session(cookies=jar)


@pytest.fixture
def raw_voucher() -> dict:
    return {
        "code": "PIZZA5",
        "label": "5 EUR",
        "desc": "5 EUR Gutschein",
        "original_value": 500,
        "remaining_value": 350,
        "limit_per_order": 1,
        "authorized_value": 0,
        "valid_from": "2024-01-01",
        "valid_until": "2024-12-31",
        "instance": 7,
        "def_id": 42,
    }


@pytest.mark.unit_build
class TestPizzaClientInit:
    """Test client initialization."""

    def test_client_sets_app_user_agent(self, client: PizzaClient) -> None:
        """Every request should carry the mobile app signature."""
        assert client._requests.headers["User-Agent"] == USER_AGENT

    def test_client_appends_trailing_slash(self) -> None:
        client = PizzaClient(api_url="https://pizza.example/api/2")
        assert client.api_url == "https://pizza.example/api/2/"

    def test_transport_jar_rejects_cookies(self, client: PizzaClient) -> None:
        """The transport session must not keep cookies of its own."""
        assert client._requests.cookies.get_policy().set_ok(Mock(), Mock()) is False


@pytest.mark.unit_build
class TestRequest:
    """Test the shared request method."""

    def test_request_builds_url_from_endpoint(self, client: PizzaClient) -> None:
        with patch.object(client._requests, "request", return_value=make_response({"success": True})) as mock_req:
            client._request("GET", "voucher/list")

            assert mock_req.call_args[0] == ("GET", "https://pizza.example/api/2/voucher/list")

    def test_request_wraps_network_errors(self, client: PizzaClient) -> None:
        with patch.object(client._requests, "request", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(TransportError, match="refused"):
                client._request("GET", "voucher/list")

    def test_request_rejects_non_json_body(self, client: PizzaClient) -> None:
        with patch.object(client._requests, "request", return_value=make_response(None, status_code=502)):
            with pytest.raises(TransportError):
                client._request("GET", "voucher/list")

    def test_request_rejects_body_without_success_flag(self, client: PizzaClient) -> None:
        with patch.object(client._requests, "request", return_value=make_response({"foo": "bar"})):
            with pytest.raises(TransportError, match="Unexpected response"):
                client._request("GET", "voucher/list")


@pytest.mark.unit_build
class TestAuthenticate:
    """Test login."""

    def test_authenticate_posts_username_and_hash(self, client: PizzaClient) -> None:
        response = make_response({"success": True, "token": "t"}, cookies={"PHPSESSID": "abc"})

        with patch.object(client._requests, "request", return_value=response) as mock_req:
            client.authenticate("alice", "secret")

            method, url = mock_req.call_args[0]
            assert method == "POST"
            assert url.endswith("/user/auth")
            assert mock_req.call_args[1]["data"] == {"username": "alice", "hash": get_password_hash("secret")}

    def test_authenticate_returns_response_cookies(self, client: PizzaClient) -> None:
        response = make_response({"success": True}, cookies={"PHPSESSID": "abc"})

        with patch.object(client._requests, "request", return_value=response):
            session = client.authenticate("alice", "secret")

            assert session.cookies is response.cookies
            assert session.cookies.get("PHPSESSID") == "abc"

    def test_authenticate_raises_on_rejected_login(self, client: PizzaClient) -> None:
        body = {"success": False, "error": {"code": "E1", "description": "bad credentials"}}

        with patch.object(client._requests, "request", return_value=make_response(body)):
            with pytest.raises(AuthenticationFailed, match="bad credentials") as exc_info:
                client.authenticate("alice", "wrong")

            assert exc_info.value.error.code == "E1"

    def test_authenticate_raises_transport_error_on_network_failure(self, client: PizzaClient) -> None:
        with patch.object(client._requests, "request", side_effect=requests.Timeout("timed out")):
            with pytest.raises(TransportError):
                client.authenticate("alice", "secret")


@pytest.mark.unit_build
class TestListVouchers:
    """Test fetching the voucher list."""

    def test_list_vouchers_sends_session_cookies(
        self, client: PizzaClient, session: Session, raw_voucher: dict
    ) -> None:
        body = {"success": True, "voucher": [raw_voucher], "vouchers": [raw_voucher]}

        with patch.object(client._requests, "request", return_value=make_response(body)) as mock_req:
            client.list_vouchers(session)

            assert mock_req.call_args[0][0] == "GET"
            assert mock_req.call_args[1]["cookies"] is session.cookies

    def test_list_vouchers_returns_normalized_vouchers(
        self, client: PizzaClient, session: Session, raw_voucher: dict
    ) -> None:
        body = {"success": True, "voucher": [], "vouchers": [raw_voucher]}

        with patch.object(client._requests, "request", return_value=make_response(body)):
            vouchers = client.list_vouchers(session)

            assert len(vouchers) == 1
            assert vouchers[0].code == "PIZZA5"
            assert vouchers[0].remaining_value == Decimal("3.50")
            assert vouchers[0].original_value == Decimal("5.00")
            assert vouchers[0].valid_until == datetime(2024, 12, 31)

    def test_list_vouchers_handles_empty_list(self, client: PizzaClient, session: Session) -> None:
        body = {"success": True, "voucher": [], "vouchers": []}

        with patch.object(client._requests, "request", return_value=make_response(body)):
            assert client.list_vouchers(session) == []

    def test_list_vouchers_does_not_touch_session(self, client: PizzaClient, session: Session) -> None:
        body = {"success": True, "vouchers": []}
        response = make_response(body, cookies={"tracking": "xyz"})

        with patch.object(client._requests, "request", return_value=response):
            client.list_vouchers(session)

        assert session.cookies.get_dict() == {"PHPSESSID": "abc123"}

    def test_list_vouchers_raises_on_api_error(self, client: PizzaClient, session: Session) -> None:
        body = {"success": False, "error": {"code": "401", "description": "not logged in"}}

        with patch.object(client._requests, "request", return_value=make_response(body)):
            with pytest.raises(VoucherQueryFailed, match="not logged in"):
                client.list_vouchers(session)


@pytest.mark.unit_build
class TestRedeemVoucher:
    """Test redeeming a voucher code."""

    def test_redeem_posts_voucher_code(self, client: PizzaClient, session: Session) -> None:
        body = {"success": True, "voucher": "ABC123", "vouchers": []}

        with patch.object(client._requests, "request", return_value=make_response(body)) as mock_req:
            client.redeem_voucher(session, "ABC123")

            method, url = mock_req.call_args[0]
            assert method == "POST"
            assert url.endswith("/voucher/add")
            assert mock_req.call_args[1]["data"] == {"voucher": "ABC123"}
            assert mock_req.call_args[1]["cookies"] is session.cookies

    def test_redeem_returns_code_and_normalized_list(
        self, client: PizzaClient, session: Session, raw_voucher: dict
    ) -> None:
        body = {"success": True, "voucher": "ABC123", "vouchers": [raw_voucher]}

        with patch.object(client._requests, "request", return_value=make_response(body)):
            result = client.redeem_voucher(session, "ABC123")

            assert result.voucher == "ABC123"
            assert result.vouchers[0].remaining_value == Decimal("3.50")

    def test_redeem_surfaces_remote_description(self, client: PizzaClient, session: Session) -> None:
        body = {"success": False, "error": {"code": "V3", "description": "Voucher already redeemed"}}

        with patch.object(client._requests, "request", return_value=make_response(body)):
            with pytest.raises(VoucherRedeemFailed, match="Voucher already redeemed"):
                client.redeem_voucher(session, "ABC123")
