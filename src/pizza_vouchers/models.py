import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from dateutil.parser import isoparse
from requests.cookies import RequestsCookieJar

logger = logging.getLogger(__name__)


@dataclass
class ApiError:
    """Error payload returned by pizza.de when `success` is false."""

    code: str
    description: str

    @classmethod
    def from_json(cls, raw: dict[str, Any] | None) -> "ApiError | None":
        if not raw:
            return None
        return cls(code=str(raw.get("code", "")), description=str(raw.get("description", "")))

    def __str__(self) -> str:
        return f"pizza.de responded with code {self.code}: {self.description}"


@dataclass
class Credentials:
    """Login credentials for one run. The password may be filled in by the prompt."""

    username: str
    password: str | None = None


@dataclass
class Session:
    """Cookies proving an authenticated identity, obtained from user/auth."""

    cookies: RequestsCookieJar = field(default_factory=RequestsCookieJar)

    def __repr__(self) -> str:
        # Cookie values are credentials, only show their names
        return f"Session(cookies={sorted(self.cookies.keys())!r})"


@dataclass
class Voucher:
    """
    A voucher as returned by the API.

    Freshly parsed vouchers hold integer minor units and ISO date strings;
    normalize_vouchers() turns them into Decimal major units and datetimes.
    """

    code: str
    label: str
    desc: str
    original_value: int | float | Decimal
    remaining_value: int | float | Decimal
    limit_per_order: float
    authorized_value: float
    valid_from: str | datetime
    valid_until: str | datetime
    instance: int
    def_id: int

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> "Voucher":
        return cls(
            code=raw.get("code", ""),
            label=raw.get("label", ""),
            desc=raw.get("desc", ""),
            original_value=raw.get("original_value", 0),
            remaining_value=raw.get("remaining_value", 0),
            limit_per_order=raw.get("limit_per_order", 0),
            authorized_value=raw.get("authorized_value", 0),
            valid_from=raw.get("valid_from", ""),
            valid_until=raw.get("valid_until", ""),
            instance=raw.get("instance", 0),
            def_id=raw.get("def_id", 0),
        )

    def __str__(self) -> str:
        return f"{self.code} - {self.desc} (remaining: {self.remaining_value}, valid until: {self.valid_until})"


def _parse_vouchers(raw: list[dict[str, Any]] | None) -> list[Voucher]:
    return [Voucher.from_json(v) for v in raw or []]


@dataclass
class AuthResponse:
    """Response of POST user/auth."""

    success: bool
    error: ApiError | None = None
    token: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "AuthResponse":
        if not data.get("success"):
            return cls(success=False, error=ApiError.from_json(data.get("error")))
        return cls(success=True, token=data.get("token"))


@dataclass
class ListResponse:
    """
    Response of GET voucher/list.

    The wire format repeats the list under a singular `voucher` key as well;
    only `vouchers` is read.
    """

    success: bool
    error: ApiError | None = None
    vouchers: list[Voucher] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "ListResponse":
        if not data.get("success"):
            return cls(success=False, error=ApiError.from_json(data.get("error")))
        return cls(success=True, vouchers=_parse_vouchers(data.get("vouchers")))


@dataclass
class AddResponse:
    """Response of POST voucher/add: the confirmed code and the updated voucher list."""

    success: bool
    error: ApiError | None = None
    voucher: str = ""
    vouchers: list[Voucher] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "AddResponse":
        if not data.get("success"):
            return cls(success=False, error=ApiError.from_json(data.get("error")))
        return cls(
            success=True,
            voucher=str(data.get("voucher") or ""),
            vouchers=_parse_vouchers(data.get("vouchers")),
        )


def _to_major_units(value: int | float | Decimal) -> int | float | Decimal:
    # bool is an int subclass but never a currency amount
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return Decimal(str(value)) / 100
    return value


def _to_datetime(value: str | datetime) -> str | datetime:
    if isinstance(value, str) and value:
        return isoparse(value)
    return value


def normalize_vouchers(vouchers: list[Voucher] | None) -> None:
    """
    Convert wire values in place: minor currency units to Decimal major units,
    ISO date strings to datetimes.

    Each field is only converted while it still has its wire type, so running
    this twice over the same list leaves it unchanged.
    """
    if not vouchers:
        return

    for v in vouchers:
        v.original_value = _to_major_units(v.original_value)
        v.remaining_value = _to_major_units(v.remaining_value)
        v.valid_from = _to_datetime(v.valid_from)
        v.valid_until = _to_datetime(v.valid_until)
    logger.debug(f"Normalized {len(vouchers)} vouchers")
