import argparse
import logging
import os
import sys
from enum import Enum
from pathlib import Path

from .client import PizzaClient
from .errors import PizzaError
from .models import Credentials, Session, Voucher
from .report import log_report
from .session import get_credentials, request_password

logger = logging.getLogger(__name__)

# File logging is enabled by setting PIZZA_DE_LOG_DIR
LOG_DIR = os.environ.get("PIZZA_DE_LOG_DIR")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class State(Enum):
    AWAITING_PASSWORD = "awaiting_password"
    AUTHENTICATING = "authenticating"
    LISTING_VOUCHERS = "listing_vouchers"
    REDEEMING_VOUCHER = "redeeming_voucher"
    RENDERING = "rendering"
    DONE = "done"
    FAILED = "failed"


class Failure(Enum):
    """Why a run failed, with its exit code and the line shown to the user."""

    LOGIN_FAILED = (1, "An error occurred during login. You may have passed the wrong password/username combination.")
    LIST_FAILED = (2, "Could not fetch current voucher list.")
    REDEEM_FAILED = (3, "Could not redeem voucher.")
    LOGIN_CANCELLED = (4, "Login cancelled.")

    def __init__(self, exit_code: int, message: str):
        self.exit_code = exit_code
        self.message = message


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with a stderr console handler and optional file handlers."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Console handler - stdout is reserved for the voucher table
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(console_handler)

    if not LOG_DIR:
        return

    log_dir = Path(LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_dir / "pizza_vouchers.log")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(file_handler)

    # Report logger with its own file
    report_logger = logging.getLogger("pizza_vouchers.reports")
    report_handler = logging.FileHandler(log_dir / "reports.log")
    report_handler.setLevel(logging.INFO)
    report_handler.setFormatter(logging.Formatter("%(asctime)s\n%(message)s\n"))
    report_logger.addHandler(report_handler)


def report_failure(failure: Failure, error: Exception | None = None) -> int:
    """Print the failure to stderr and return its exit code."""
    print(failure.message, file=sys.stderr)
    if error is not None:
        print(error, file=sys.stderr)
    logger.debug(f"Run failed: {failure.name}", exc_info=error)
    return failure.exit_code


def run(
    command: str,
    credentials: Credentials,
    voucher_code: str | None = None,
    client: PizzaClient | None = None,
) -> int:
    """
    Run one `list` or `redeem` command and return the process exit code.

    Steps run strictly in order: password, login, list or redeem, render.
    The first failing step ends the run.
    """
    client = client or PizzaClient()
    state = State.AWAITING_PASSWORD
    password: str | None = None
    session: Session | None = None
    vouchers: list[Voucher] = []
    redeemed_code: str | None = None
    failure: Failure | None = None
    error: Exception | None = None

    while True:
        logger.debug(f"State: {state.value}")

        if state is State.AWAITING_PASSWORD:
            password = request_password(credentials)
            if password is None:
                failure, state = Failure.LOGIN_CANCELLED, State.FAILED
            else:
                state = State.AUTHENTICATING

        elif state is State.AUTHENTICATING:
            try:
                session = client.authenticate(credentials.username, password)
            except PizzaError as e:
                failure, error, state = Failure.LOGIN_FAILED, e, State.FAILED
            else:
                state = State.REDEEMING_VOUCHER if command == "redeem" else State.LISTING_VOUCHERS

        elif state is State.LISTING_VOUCHERS:
            try:
                vouchers = client.list_vouchers(session)
            except PizzaError as e:
                failure, error, state = Failure.LIST_FAILED, e, State.FAILED
            else:
                state = State.RENDERING

        elif state is State.REDEEMING_VOUCHER:
            try:
                result = client.redeem_voucher(session, voucher_code)
            except PizzaError as e:
                failure, error, state = Failure.REDEEM_FAILED, e, State.FAILED
            else:
                redeemed_code, vouchers = result.voucher, result.vouchers
                state = State.RENDERING

        elif state is State.RENDERING:
            if redeemed_code is not None:
                print(f"Code {redeemed_code} redeemed successfully!")
                print("Current vouchers:")
            print(log_report(vouchers))
            state = State.DONE

        elif state is State.DONE:
            return 0

        else:
            return report_failure(failure, error)


def build_parser() -> argparse.ArgumentParser:
    # --user/--password are accepted before and after the subcommand. The
    # subcommand copies use SUPPRESS so they don't overwrite the global values.
    account = argparse.ArgumentParser(add_help=False)
    account.add_argument("-u", "--user", default=argparse.SUPPRESS, help="pizza.de user name")
    account.add_argument(
        "-p",
        "--password",
        default=argparse.SUPPRESS,
        help="pizza.de password; will be prompted if not provided",
    )

    parser = argparse.ArgumentParser(prog="pizza-vouchers", description="List and redeem pizza.de vouchers")
    parser.add_argument("-u", "--user", default=None, help="pizza.de user name (default: $PIZZA_DE_USER)")
    parser.add_argument(
        "-p",
        "--password",
        default=None,
        help="pizza.de password; will be prompted if not provided",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("list", aliases=["ls"], parents=[account], help="List current available vouchers.")
    redeem = commands.add_parser("redeem", parents=[account], help="Redeem a pizza.de voucher code.")
    redeem.add_argument("-v", "--voucher", required=True, help="pizza.de voucher code to redeem")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose)

    try:
        credentials = get_credentials(args.user, args.password)
    except ValueError as e:
        parser.error(str(e))

    command = "redeem" if args.command == "redeem" else "list"
    return run(command, credentials, voucher_code=getattr(args, "voucher", None))


if __name__ == "__main__":
    sys.exit(main())
