"""
xeroview — a small Xero OAuth2 demo service.

Connect once, then browse contacts, invoices, accounts and friends
across every organisation the token is authorised for.
"""

__version__ = "0.1.0"
__all__ = ["create_app"]

from xeroview.web.app import create_app  # noqa: E402
