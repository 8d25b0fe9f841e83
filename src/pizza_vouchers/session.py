import base64
import getpass
import hashlib
import logging
import os

from dotenv import load_dotenv

from .models import Credentials

logger = logging.getLogger(__name__)


def get_password_hash(password: str) -> str:
    """
    Hash a password the way the pizza.de app does: base64 of the MD5 digest,
    with the trailing '=' padding removed.
    """
    digest = hashlib.md5(password.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii").rstrip("=")


def get_credentials(username: str | None = None, password: str | None = None) -> Credentials:
    """
    Resolve credentials from explicit arguments, falling back to the environment (.env).

    The password may stay None; the caller prompts for it.
    """
    load_dotenv()
    username = username or os.environ.get("PIZZA_DE_USER")
    if not username:
        raise ValueError("A pizza.de user name is required (--user or PIZZA_DE_USER)")
    if password is None:
        password = os.environ.get("PIZZA_DE_PASSWORD")
    return Credentials(username=username, password=password)


def request_password(credentials: Credentials) -> str | None:
    """
    Return the password for the account, prompting for it if none was supplied.

    Returns None when the user cancels the prompt (Ctrl-C or end of input).
    """
    if credentials.password is not None:
        return credentials.password

    try:
        return getpass.getpass(f"Enter pizza.de password for account {credentials.username}: ")
    except (KeyboardInterrupt, EOFError):
        logger.debug("Password prompt cancelled")
        return None
