import logging
from datetime import datetime
from decimal import Decimal

from dateutil import tz
from dateutil.relativedelta import relativedelta

from .models import Voucher

logger = logging.getLogger(__name__)
# Separate logger for reports - can be configured with its own file handler
report_logger = logging.getLogger("pizza_vouchers.reports")

NO_VOUCHERS_MESSAGE = "no vouchers"
TOTAL_PREFIX = "Total: "

COLUMNS = ["Description", "Code", "Original Value", "Remaining Value", "Valid Until"]
RIGHT_ALIGNED = {"Original Value", "Remaining Value"}
COLUMN_GAP = "  "


def format_currency(value: Decimal | float) -> str:
    """Two decimal places, no thousands separator."""
    return f"{value:.2f}"


def _as_aware(value: datetime) -> datetime:
    # Dates without an offset are local times
    if value.tzinfo is None:
        return value.replace(tzinfo=tz.tzlocal())
    return value


def _amount(count: int, unit: str) -> str:
    if count == 1:
        return "an hour" if unit == "hour" else f"a {unit}"
    return f"{count} {unit}s"


def humanize_until(when: datetime | str, now: datetime | None = None) -> str:
    """Describe `when` relative to `now`, e.g. "in 3 days" or "2 months ago"."""
    if not isinstance(when, datetime):
        return str(when)

    when = _as_aware(when)
    now = _as_aware(now) if now else datetime.now(tz.tzlocal())
    future = when >= now
    delta = relativedelta(when, now) if future else relativedelta(now, when)

    if delta.years:
        amount = _amount(delta.years, "year")
    elif delta.months:
        amount = _amount(delta.months, "month")
    elif delta.days:
        amount = _amount(delta.days, "day")
    elif delta.hours:
        amount = _amount(delta.hours, "hour")
    elif delta.minutes:
        amount = _amount(delta.minutes, "minute")
    else:
        amount = "a few seconds"

    return f"in {amount}" if future else f"{amount} ago"


def _sort_key(voucher: Voucher) -> datetime:
    if isinstance(voucher.valid_until, datetime):
        return _as_aware(voucher.valid_until)
    return datetime.max.replace(tzinfo=tz.UTC)


def render_vouchers(vouchers: list[Voucher], now: datetime | None = None) -> str:
    """
    Render normalized vouchers as a fixed-width text table.

    Rows are ordered by expiry date, soonest first, followed by the total
    remaining value.
    """
    if not vouchers:
        return NO_VOUCHERS_MESSAGE

    rows = [
        [
            v.desc,
            v.code,
            format_currency(v.original_value),
            format_currency(v.remaining_value),
            humanize_until(v.valid_until, now),
        ]
        for v in sorted(vouchers, key=_sort_key)
    ]
    total = sum((Decimal(v.remaining_value) for v in vouchers), Decimal(0))
    total_row = ["", "", "", TOTAL_PREFIX + format_currency(total), ""]

    widths = [max(len(row[i]) for row in [COLUMNS, *rows, total_row]) for i in range(len(COLUMNS))]

    def format_row(cells: list[str]) -> str:
        padded = [
            cell.rjust(width) if name in RIGHT_ALIGNED else cell.ljust(width)
            for name, cell, width in zip(COLUMNS, cells, widths)
        ]
        return COLUMN_GAP.join(padded).rstrip()

    separator = COLUMN_GAP.join("-" * width for width in widths)
    lines = [format_row(COLUMNS), separator]
    lines.extend(format_row(row) for row in rows)
    lines.append(separator)
    lines.append(format_row(total_row))
    return "\n".join(lines)


def log_report(vouchers: list[Voucher]) -> str:
    """Log the report to the report logger and return the report text."""
    report = render_vouchers(vouchers)
    report_logger.info("\n" + report)
    return report
