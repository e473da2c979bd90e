"""
HTML pages for the web front end.

Plain functions from data to markup; every dynamic value is escaped.
"""

from __future__ import annotations

import html
from typing import Any

from xeroview.auth.tokens import TokenData
from xeroview.connectors.accounting import Resource

# (header, dotted key) pairs shown for each resource; unknown resources
# fall back to the keys of the first item.
_COLUMNS: dict[str, list[tuple[str, str]]] = {
    "Accounts": [("Code", "Code"), ("Name", "Name"), ("Type", "Type"),
                 ("Status", "Status"), ("Updated", "UpdatedDateUTC")],
    "BankTransactions": [("Type", "Type"), ("Contact", "Contact.Name"), ("Date", "Date"),
                         ("Total", "Total"), ("Status", "Status")],
    "BankTransfers": [("From", "FromBankAccount.Name"), ("To", "ToBankAccount.Name"),
                      ("Amount", "Amount"), ("Date", "Date")],
    "BrandingThemes": [("Name", "Name"), ("Sort order", "SortOrder"), ("Created", "CreatedDateUTC")],
    "ContactGroups": [("Name", "Name"), ("Status", "Status")],
    "Contacts": [("Name", "Name"), ("Email", "EmailAddress"), ("Status", "ContactStatus"),
                 ("Updated", "UpdatedDateUTC")],
    "CreditNotes": [("Number", "CreditNoteNumber"), ("Contact", "Contact.Name"), ("Date", "Date"),
                    ("Total", "Total"), ("Status", "Status")],
    "Currencies": [("Code", "Code"), ("Description", "Description")],
    "Employees": [("First name", "FirstName"), ("Last name", "LastName"), ("Status", "Status")],
    "InvoiceReminders": [("Enabled", "Enabled")],
    "Invoices": [("Number", "InvoiceNumber"), ("Contact", "Contact.Name"), ("Date", "Date"),
                 ("Due", "DueDate"), ("Total", "Total"), ("Status", "Status")],
    "Items": [("Code", "Code"), ("Name", "Name"), ("Description", "Description")],
    "Organisations": [("Name", "Name"), ("Legal name", "LegalName"), ("Country", "CountryCode"),
                      ("Currency", "BaseCurrency"), ("Created", "CreatedDateUTC")],
}

_NAV = [
    ("/connections", "Connections"),
    ("/organisations", "Organisations"),
    ("/contacts", "Contacts"),
    ("/contacts/create", "Create test contact"),
    ("/contactGroups", "Contact groups"),
    ("/invoices", "Invoices"),
    ("/invoiceItems", "Invoice items"),
    ("/invoiceReminders", "Invoice reminders"),
    ("/creditNotes", "Credit notes"),
    ("/accounts", "Accounts"),
    ("/bankTransactions", "Bank transactions"),
    ("/bankTransfers", "Bank transfers"),
    ("/brandingThemes", "Branding themes"),
    ("/currencies", "Currencies"),
    ("/employees", "Employees"),
    ("/refresh", "Refresh token"),
    ("/logout", "Disconnect"),
]


def _escape(text: Any) -> str:
    """HTML-escape a value."""
    return html.escape("" if text is None else str(text))


def _lookup(item: dict[str, Any], dotted: str) -> Any:
    value: Any = item
    for part in dotted.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _layout(title: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>xeroview — {_escape(title)}</title>
    <style>
        body {{ font-family: -apple-system, BlinkMacSystemFont, sans-serif; margin: 2rem; color: #1f2937; }}
        table {{ border-collapse: collapse; margin-top: 1rem; }}
        th, td {{ border: 1px solid #e5e7eb; padding: 4px 10px; text-align: left; }}
        th {{ background: #f3f4f6; }}
        .error {{ color: #dc2626; }}
        nav a {{ margin-right: 10px; }}
    </style>
</head>
<body>
    <h1>{_escape(title)}</h1>
{body}
    <p><a href="/">Home</a></p>
</body>
</html>
"""


def render_index() -> str:
    """Status page shown when no Xero session exists."""
    body = """    <p>Not connected to Xero.</p>
    <p><a href="/auth/xero">Connect to Xero</a></p>"""
    return _layout("Not connected", body)


def render_connected(token: TokenData) -> str:
    """Status page with the current token's metadata."""
    nav = "\n".join(f'        <a href="{href}">{_escape(label)}</a>' for href, label in _NAV)
    body = f"""    <p>Connected to Xero.</p>
    <table>
        <tr><th>Token type</th><td>{_escape(token.token_type)}</td></tr>
        <tr><th>Expires at</th><td>{_escape(token.expiry.isoformat())}</td></tr>
        <tr><th>Scope</th><td>{_escape(token.scope)}</td></tr>
        <tr><th>Refresh token</th><td>{"present" if token.refresh_token else "missing"}</td></tr>
    </table>
    <nav>
{nav}
    </nav>"""
    return _layout("Connected", body)


def render_list(resource: Resource, items: list[dict[str, Any]]) -> str:
    """Table of *items* for one resource type."""
    columns = _COLUMNS.get(resource.name)
    if columns is None:
        keys = [k for k, v in items[0].items() if not isinstance(v, (dict, list))] if items else []
        columns = [(k, k) for k in keys]

    header = "".join(f"<th>{_escape(name)}</th>" for name, _ in columns)
    rows = "\n".join(
        "        <tr>" + "".join(f"<td>{_escape(_lookup(item, key))}</td>" for _, key in columns) + "</tr>"
        for item in items
    )
    body = f"""    <p>{len(items)} record(s)</p>
    <table>
        <tr>{header}</tr>
{rows}
    </table>"""
    return _layout(resource.label, body)


def render_error(status_code: int, message: str) -> str:
    body = f'    <p class="error">{_escape(message)}</p>'
    return _layout(f"Error {status_code}", body)
